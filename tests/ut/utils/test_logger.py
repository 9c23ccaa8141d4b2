"""logger.py 单元测试"""

from __future__ import annotations

import json
import logging
import sys

import pytest

from nest.core.exceptions import PackageNotFoundError
from nest.utils.logger import (
    JSONFormatter,
    reset_logging,
    setup_logging,
    setup_logging_from_env,
)


class TestSetupLogging:
    def teardown_method(self) -> None:
        reset_logging()

    def test_level_and_single_handler(self) -> None:
        setup_logging(level="debug")
        setup_logging(level="INFO")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1

    def test_unknown_level_falls_back(self) -> None:
        setup_logging(level="LOUD")
        assert logging.getLogger().level == logging.WARNING

    def test_json_output(self) -> None:
        setup_logging(json_output=True)
        assert isinstance(logging.getLogger().handlers[0].formatter, JSONFormatter)

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NEST_LOG_LEVEL", "debug")
        monkeypatch.setenv("NEST_LOG_JSON", "1")
        assert setup_logging_from_env("ERROR") == "DEBUG"
        assert isinstance(logging.getLogger().handlers[0].formatter, JSONFormatter)

    def test_from_env_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NEST_LOG_LEVEL", raising=False)
        monkeypatch.delenv("NEST_LOG_JSON", raising=False)
        assert setup_logging_from_env("ERROR") == "ERROR"
        assert not isinstance(logging.getLogger().handlers[0].formatter, JSONFormatter)


class TestJSONFormatter:
    def test_fields_and_unicode(self) -> None:
        record = logging.LogRecord(
            name="nest.core.fetcher", level=logging.INFO, pathname=__file__, lineno=10,
            msg="克隆: %s", args=("repo",), exc_info=None,
        )
        data = json.loads(JSONFormatter().format(record))
        assert data["message"] == "克隆: repo"
        assert data["level"] == "INFO"
        assert data["logger"] == "nest.core.fetcher"
        assert "克隆" in JSONFormatter().format(record)
        assert "error_code" not in data

    def test_error_code_from_exception(self) -> None:
        try:
            raise PackageNotFoundError("tool")
        except PackageNotFoundError:
            record = logging.LogRecord(
                name="nest", level=logging.ERROR, pathname=__file__, lineno=1,
                msg="卸载失败", args=(), exc_info=sys.exc_info(),
            )
        data = json.loads(JSONFormatter().format(record))
        assert data["error_code"] == "PACKAGE_NOT_FOUND"
        assert "PackageNotFoundError" in data["exception"]
