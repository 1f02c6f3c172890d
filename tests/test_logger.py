"""Tests for asninfo.utils.logger."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator
from unittest.mock import MagicMock, patch

import pytest

from asninfo.core.config import ServerConfig, SourcesConfig
from asninfo.utils.logger import configure_logging, get_logger


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    yield
    configure_logging()


def test_uvicorn_shares_asninfo_handlers() -> None:
    configure_logging()
    asninfo_handlers = logging.getLogger("asninfo").handlers
    assert len(asninfo_handlers) == 1
    assert logging.getLogger("uvicorn").handlers == asninfo_handlers
    for name in ("uvicorn.error", "uvicorn.access"):
        child = logging.getLogger(name)
        assert child.handlers == []
        assert child.propagate


def test_library_loggers_stay_at_warning() -> None:
    configure_logging(verbose=True)
    assert logging.getLogger("asninfo").level == logging.DEBUG
    assert logging.getLogger("uvicorn").level == logging.DEBUG
    assert logging.getLogger("botocore").level == logging.WARNING


def test_reconfigure_replaces_handlers(tmp_path: Path) -> None:
    configure_logging(log_file=str(tmp_path / "a.log"))
    configure_logging(log_file=str(tmp_path / "b.log"))
    assert len(logging.getLogger("asninfo").handlers) == 2
    assert len(logging.getLogger("uvicorn").handlers) == 2


def test_server_logs_reach_log_file(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "asninfo.log"
    configure_logging(log_file=str(log_file))
    logging.getLogger("uvicorn.error").info("Application startup complete.")
    get_logger("cli").warning("refresh failed")
    for handler in logging.getLogger("asninfo").handlers:
        handler.flush()

    text = log_file.read_text()
    assert "[uvicorn.error] Application startup complete." in text
    assert "[asninfo.cli] refresh failed" in text


def test_get_logger_prefixes_names() -> None:
    assert get_logger("providers.adapter").name == "asninfo.providers.adapter"
    assert get_logger("asninfo.core.store").name == "asninfo.core.store"


def test_run_server_keeps_logging_config() -> None:
    from asninfo.api.server import run_server

    app = MagicMock()
    with patch("asninfo.api.server.build_app", return_value=app), patch(
        "asninfo.api.server.uvicorn.run"
    ) as run:
        run_server(ServerConfig(host="127.0.0.1", port=3000), SourcesConfig())

    run.assert_called_once_with(
        app, host="127.0.0.1", port=3000, log_config=None, access_log=False
    )
