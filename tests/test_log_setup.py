import json
import logging

import pytest

from refshelf.core.log_setup import LOGGER_NAME, item_logger, setup_logging


def _flush():
    for h in logging.getLogger(LOGGER_NAME).handlers:
        h.flush()


def test_json_file_log_carries_item_id(tmp_path):
    logs = tmp_path / "logs"
    setup_logging(logs, level="debug", json_logs=True, console=False)
    item_logger("img_1_a", "refshelf.services.trash").info("Moved to trash")
    logging.getLogger("refshelf.services.reader").debug("no item here")
    _flush()

    lines = [json.loads(l) for l in (logs / "refshelf.log").read_text(encoding="utf-8").splitlines()]
    by_msg = {l["msg"]: l for l in lines}
    assert by_msg["Moved to trash"]["item_id"] == "img_1_a"
    assert by_msg["Moved to trash"]["level"] == "INFO"
    assert by_msg["Moved to trash"]["name"] == "refshelf.services.trash"
    assert by_msg["no item here"]["item_id"] == "-"


def test_plain_format_and_level(tmp_path):
    logs = tmp_path / "logs"
    setup_logging(logs, level="WARNING", console=False)
    item_logger("vid_2_b").info("dropped")
    item_logger("vid_2_b").warning("Media file not found")
    _flush()

    text = (logs / "refshelf.log").read_text(encoding="utf-8")
    assert "dropped" not in text
    assert "[WARNING] [refshelf:vid_2_b] Media file not found" in text


def test_rerun_replaces_handlers(tmp_path):
    setup_logging(tmp_path / "a", console=True)
    logger = setup_logging(tmp_path / "b", console=True)
    assert len(logger.handlers) == 2
    assert logger.propagate is False


def test_unknown_level():
    with pytest.raises(ValueError):
        setup_logging(None, level="LOUD")
