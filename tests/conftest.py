import base64
import io
import logging

import pytest
from PIL import Image

from refshelf.core.log_setup import LOGGER_NAME
from refshelf.services.storage import resolve_storage
from refshelf.services.store import ContentStore


def _png_bytes(w=10, h=10, color=(255, 0, 0, 255)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGBA", (w, h), color).save(buf, format="PNG")
    return buf.getvalue()


def _jpeg_bytes(w=12, h=8) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (w, h), (0, 128, 255)).save(buf, format="JPEG")
    return buf.getvalue()


def _data_url(data: bytes, mime="image/png") -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


@pytest.fixture
def png_bytes():
    return _png_bytes


@pytest.fixture
def jpeg_bytes():
    return _jpeg_bytes


@pytest.fixture
def data_url():
    return _data_url


@pytest.fixture
def ctx(tmp_path):
    return resolve_storage(tmp_path / "store", platform="linux")


@pytest.fixture
def store(ctx):
    return ContentStore(ctx)


@pytest.fixture(autouse=True)
def _restore_refshelf_logger():
    # setup_logging() replaces handlers and turns propagation off; undo that per test
    logger = logging.getLogger(LOGGER_NAME)
    handlers, propagate, level = list(logger.handlers), logger.propagate, logger.level
    yield
    for h in list(logger.handlers):
        if h not in handlers:
            logger.removeHandler(h)
            h.close()
    for h in handlers:
        if h not in logger.handlers:
            logger.addHandler(h)
    logger.propagate = propagate
    logger.setLevel(level)
