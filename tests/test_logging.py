from __future__ import annotations

import logging
from daily_kpi.logging_config import configure_logging


def test_configure_logging_adds_stream_handler() -> None:
    configure_logging(None)
    root = logging.getLogger()
    assert any(isinstance(h, logging.StreamHandler) for h in root.handlers)


def test_configure_logging_writes_file_and_accepts_level_name(tmp_path) -> None:
    log_path = tmp_path / "logs" / "daily_kpi.log"
    configure_logging(log_path, "debug")
    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert any(isinstance(h, logging.FileHandler) for h in root.handlers)

    logging.getLogger("daily_kpi.test").info("hello")
    for h in root.handlers:
        h.flush()
    assert "daily_kpi.test | hello" in log_path.read_text(encoding="utf-8")
    configure_logging(None)
