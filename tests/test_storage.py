import pytest

from refshelf.services.identity import InvalidIdError
from refshelf.services.storage import default_storage_root, resolve_storage


def test_default_root_macos(tmp_path):
    assert default_storage_root("darwin", home=tmp_path, env={}) == tmp_path / "Documents" / "UIReferenceApp"


def test_default_root_windows(tmp_path):
    appdata = tmp_path / "Roaming"
    assert (default_storage_root("win32", home=tmp_path, env={"APPDATA": str(appdata)})
            == appdata / "UIReferenceApp" / "images")
    assert (default_storage_root("win32", home=tmp_path, env={})
            == tmp_path / "AppData" / "Roaming" / "UIReferenceApp" / "images")


def test_default_root_linux(tmp_path):
    xdg = tmp_path / "xdg"
    assert (default_storage_root("linux", home=tmp_path, env={"XDG_CONFIG_HOME": str(xdg)})
            == xdg / "UIReferenceApp" / "images")
    assert (default_storage_root("linux", home=tmp_path, env={})
            == tmp_path / ".config" / "UIReferenceApp" / "images")


def test_resolve_creates_layout(tmp_path):
    ctx = resolve_storage(tmp_path / "root", platform="linux")
    assert ctx.root == (tmp_path / "root").resolve()
    for d in (ctx.active.images, ctx.active.metadata, ctx.trash.images, ctx.trash.metadata, ctx.journal_dir):
        assert d.is_dir()
    assert ctx.trash.base == ctx.root / ".trash"
    assert not (ctx.root / "README.txt").exists()


def test_resolve_writes_readme_on_macos(tmp_path):
    ctx = resolve_storage(tmp_path / "root", platform="darwin")
    readme = ctx.root / "README.txt"
    assert readme.is_file()
    assert str(ctx.root) in readme.read_text(encoding="utf-8")


def test_resolve_is_idempotent(tmp_path):
    a = resolve_storage(tmp_path / "root", platform="linux")
    (a.active.images / "keep.png").write_bytes(b"x")
    b = resolve_storage(tmp_path / "root", platform="linux")
    assert a == b
    assert (b.active.images / "keep.png").read_bytes() == b"x"


def test_area_paths(ctx):
    assert ctx.active.media_path("vid_1_a") == ctx.root / "images" / "vid_1_a.mp4"
    assert ctx.active.metadata_path("img_1_a") == ctx.root / "metadata" / "img_1_a.json"
    assert ctx.trash.media_path("img_1_a") == ctx.root / ".trash" / "images" / "img_1_a.png"
    assert ctx.active.asset_path("og_1.jpg") == ctx.root / "images" / "og_1.jpg"


@pytest.mark.parametrize("bad", ["../x", "a/b", ".journal"])
def test_area_rejects_escaping_ids(ctx, bad):
    with pytest.raises(InvalidIdError):
        ctx.active.media_path(bad)
    with pytest.raises(InvalidIdError):
        ctx.active.asset_path(bad)
