import asyncio

from refshelf.cli import main, print_table
from refshelf.services.storage import resolve_storage
from refshelf.services.store import ContentStore


def test_print_table(capsys):
    print_table(["id", "type"], [["img_1", "image"], ["link_22", None]])
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "  id      | type "
    assert lines[1] == "  --------+------"
    assert lines[3] == "  link_22 |      "


def test_where(tmp_path, capsys):
    root = tmp_path / "store"
    assert main(["--root", str(root), "where"]) == 0
    out = capsys.readouterr().out
    assert str(root.resolve()) in out
    assert ".journal" in out


def test_list_delete_restore(tmp_path, capsys, png_bytes, data_url):
    root = tmp_path / "store"
    store = ContentStore(resolve_storage(root, platform="linux"))
    asyncio.run(store.writer.save("img_1_a", data_url(png_bytes()), {"type": "image", "title": "Login"}))
    asyncio.run(store.writer.save("link_1", None, {"type": "link", "title": "Docs",
                                                   "sourceUrl": "https://example.com"}))

    assert main(["--root", str(root), "list"]) == 0
    out = capsys.readouterr().out
    assert "img_1_a" in out and "Login" in out and "10x10" in out
    assert "https://example.com" in out
    assert "2 item(s)" in out

    assert main(["--root", str(root), "delete", "img_1_a"]) == 0
    assert "delete img_1_a: ok (2 file(s) moved)" in capsys.readouterr().out

    assert main(["--root", str(root), "trash"]) == 0
    assert "img_1_a" in capsys.readouterr().out

    assert main(["--root", str(root), "restore", "img_1_a"]) == 0
    assert main(["--root", str(root), "empty-trash"]) == 0
    assert main(["--root", str(root), "recover"]) == 0
    assert "No interrupted operations." in capsys.readouterr().out


def test_failures_exit_nonzero(tmp_path, capsys):
    root = tmp_path / "store"
    assert main(["--root", str(root), "delete", "img_missing"]) == 1
    assert "nothing_to_delete" in capsys.readouterr().err


def test_bad_config(tmp_path, capsys):
    cfg = tmp_path / "refshelf.toml"
    cfg.write_text("[server]\nport = \"x\"\n", encoding="utf-8")
    assert main(["--config", str(cfg), "--root", str(tmp_path / "s"), "where"]) == 2
    assert "config error" in capsys.readouterr().err
