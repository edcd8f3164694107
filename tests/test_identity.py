import pytest

from refshelf.services.identity import (
    InvalidIdError,
    derive_kind,
    extension_for,
    media_filename,
    metadata_filename,
    new_id,
    validate_id,
)


def test_kind_from_prefix():
    assert derive_kind("vid_1700000000000_abc") == "video"
    assert derive_kind("img_1700000000000_abc") == "image"
    # anything not starting with vid_ is an image, link ids included
    assert derive_kind("link_1") == "image"
    assert derive_kind("VID_1") == "image"


def test_extension_and_filenames():
    assert extension_for("video") == ".mp4"
    assert extension_for("image") == ".png"
    assert extension_for("link") == ".png"
    assert media_filename("vid_1_a") == "vid_1_a.mp4"
    assert media_filename("img_1_a") == "img_1_a.png"
    assert metadata_filename("vid_1_a") == "vid_1_a.json"


def test_new_id_shape():
    out = new_id("video", now_ms=1700000000000)
    assert out.startswith("vid_1700000000000_")
    suffix = out.rsplit("_", 1)[1]
    assert len(suffix) == 8
    assert all(c in "0123456789abcdefghijklmnopqrstuvwxyz" for c in suffix)

    img = new_id(now_ms=5)
    assert img.startswith("img_5_")
    assert derive_kind(img) == "image"


def test_new_ids_differ():
    assert new_id(now_ms=1) != new_id(now_ms=1)


@pytest.mark.parametrize("bad", ["", "   ", "../evil", "a/b", "a\\b", ".hidden", "..", "x\x00y"])
def test_validate_id_rejects_path_escapes(bad):
    with pytest.raises(InvalidIdError):
        validate_id(bad)


def test_validate_id_passthrough():
    assert validate_id("img_1000_abc") == "img_1000_abc"
    assert validate_id("og_image.final.png") == "og_image.final.png"
