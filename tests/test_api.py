import urllib.parse

import pytest
from fastapi.testclient import TestClient

from refshelf.core.config import Settings
from refshelf.main import create_app


@pytest.fixture
def client(ctx):
    app = create_app(Settings({}), ctx, configure_logging=False)
    with TestClient(app) as c:
        yield c


def _save_png(client, png_bytes, data_url, item_id="img_1000_abc"):
    return client.post("/api/items", json={
        "id": item_id,
        "payload": data_url(png_bytes()),
        "metadata": {"type": "image", "width": 10, "height": 10, "createdAt": "2024-01-01T00:00:00Z"},
    })


def test_storage_info(client, ctx):
    r = client.get("/api/storage")
    assert r.status_code == 200
    assert r.json() == {"root": str(ctx.root), "trash": str(ctx.trash.base), "journal": str(ctx.journal_dir)}


def test_save_list_and_serve(client, ctx, png_bytes, data_url):
    r = _save_png(client, png_bytes, data_url)
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    assert body["path"] == str(ctx.active.media_path("img_1000_abc"))

    items = client.get("/api/items").json()
    assert len(items) == 1
    item = items[0]
    assert item["id"] == "img_1000_abc"
    assert item["type"] == "image"
    assert item["metadata"]["width"] == 10
    assert item["metadata"]["filePath"] == body["path"]
    assert item["url"].startswith("local-file://")
    assert item["mediaUrl"].endswith("/local-file/images/img_1000_abc.png")

    media = client.get(urllib.parse.urlsplit(item["mediaUrl"]).path)
    assert media.status_code == 200
    assert media.content == png_bytes()

    one = client.get("/api/items/img_1000_abc")
    assert one.status_code == 200 and one.json()["id"] == "img_1000_abc"
    assert client.get("/api/items/img_unknown").status_code == 404


def test_link_card(client):
    r = client.post("/api/items", json={"id": "link_1", "payload": None,
                                        "metadata": {"type": "link", "title": "Example"}})
    assert r.status_code == 201
    assert r.json()["path"] is None
    items = client.get("/api/items").json()
    assert [(i["id"], i["type"], i["metadata"]["title"]) for i in items] == [("link_1", "link", "Example")]
    assert items[0]["mediaUrl"] is None


def test_delete_restore_cycle(client, png_bytes, data_url):
    _save_png(client, png_bytes, data_url)

    r = client.delete("/api/items/img_1000_abc")
    assert r.status_code == 200 and len(r.json()["moved"]) == 2
    assert client.get("/api/items").json() == []
    assert [i["id"] for i in client.get("/api/trash").json()] == ["img_1000_abc"]

    r = client.post("/api/items/img_1000_abc/restore")
    assert r.status_code == 200
    assert [i["id"] for i in client.get("/api/items").json()] == ["img_1000_abc"]
    assert client.get("/api/trash").json() == []


def test_failure_status_codes(client, png_bytes, data_url):
    r = client.delete("/api/items/img_missing")
    assert r.status_code == 404
    assert r.json()["detail"]["code"] == "nothing_to_delete"

    assert client.post("/api/items/img_missing/restore").status_code == 404
    assert client.delete("/api/items/.hidden").status_code == 400

    r = client.post("/api/items", json={"id": "vid_1_a", "payload": data_url(png_bytes()),
                                        "metadata": {"type": "image"}})
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "invalid"


def test_update_metadata(client, ctx, png_bytes, data_url):
    _save_png(client, png_bytes, data_url)
    r = client.put("/api/items/img_1000_abc/metadata", json={"metadata": {"type": "image", "title": "Login"}})
    assert r.status_code == 200
    assert r.json()["path"] == str(ctx.active.metadata_path("img_1000_abc"))
    assert client.get("/api/items").json()[0]["metadata"]["title"] == "Login"

    bad = client.put("/api/items/img_1000_abc/metadata", json={"metadata": {"type": "bogus"}})
    assert bad.status_code == 400


def test_empty_trash_endpoint(client, png_bytes, data_url):
    _save_png(client, png_bytes, data_url)
    client.delete("/api/items/img_1000_abc")
    r = client.delete("/api/trash")
    assert r.status_code == 200 and r.json()["success"] is True
    assert client.get("/api/trash").json() == []


def test_save_asset_endpoint(client, ctx, png_bytes, data_url):
    r = client.post("/api/assets", json={"filename": "og_link_1.png", "payload": data_url(png_bytes(2, 2))})
    assert r.status_code == 201
    assert (ctx.active.images / "og_link_1.png").exists()
    assert client.post("/api/assets", json={"filename": "../x.png", "payload": "data:,x"}).status_code == 400


def test_file_access(client, tmp_path):
    f = tmp_path / "shot.png"
    f.write_bytes(b"x")
    ok = client.get("/api/files/access", params={"path": str(f)}).json()
    assert ok == {"path": str(f), "accessible": True, "error": None}

    via_url = client.get("/api/files/access", params={"path": "local-file://" + f.as_posix()}).json()
    assert via_url["accessible"] is True

    missing = client.get("/api/files/access", params={"path": str(tmp_path / "nope.png")}).json()
    assert missing["accessible"] is False and missing["error"] == "file not found"

    rel = client.get("/api/files/access", params={"path": "shot.png"}).json()
    assert rel["accessible"] is False


def test_local_file_guard(client, ctx, tmp_path):
    outside = tmp_path / "secret.txt"
    outside.write_text("secret", encoding="utf-8")
    (ctx.active.images / "link.png").symlink_to(outside)

    assert client.get("/local-file/images/link.png").status_code == 403
    assert client.get("/local-file/images/nope.png").status_code == 404


def test_trash_listing_has_media_urls(client, ctx, png_bytes, data_url):
    _save_png(client, png_bytes, data_url)
    client.delete("/api/items/img_1000_abc")

    item = client.get("/api/trash").json()[0]
    assert item["mediaUrl"].endswith("/local-file/.trash/images/img_1000_abc.png")
    media = client.get(urllib.parse.urlsplit(item["mediaUrl"]).path)
    assert media.status_code == 200
    assert media.content == png_bytes()


def test_local_file_serves_images_only(client, ctx, png_bytes, data_url):
    _save_png(client, png_bytes, data_url)
    (ctx.journal_dir / "img_x.json").write_text('{"moves": []}', encoding="utf-8")
    (ctx.root / "logs").mkdir(exist_ok=True)
    (ctx.root / "logs" / "refshelf.log").write_text("log line", encoding="utf-8")

    assert client.get("/local-file/images/img_1000_abc.png").status_code == 200
    for rel in (".journal/img_x.json", "metadata/img_1000_abc.json", "logs/refshelf.log",
                ".trash/metadata/img_1000_abc.json"):
        assert client.get("/local-file/" + rel).status_code == 403, rel


def test_lifespan_purges_trash(ctx):
    (ctx.trash.images / "img_old.png").write_bytes(b"x")
    app = create_app(Settings({}), ctx, configure_logging=False)
    with TestClient(app):
        assert list(ctx.trash.images.iterdir()) == []
        (ctx.trash.images / "img_new.png").write_bytes(b"y")
    assert list(ctx.trash.images.iterdir()) == []
