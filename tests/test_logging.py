"""Tests for attack log sinks."""

import json
from logging.handlers import TimedRotatingFileHandler

import pytest

from csrf_protector.config import CSRFConfig
from csrf_protector.exceptions import LogDirectoryNotFoundError
from csrf_protector.logging_config import (
    ATTACK_LOG_FILENAME,
    VALIDATION_FAILURE_EVENT,
    AppLogger,
    FileLogger,
)
from csrf_protector.protector import CSRFProtector


def test_file_logger_writes_json_lines(tmp_path):
    logger = FileLogger(str(tmp_path))

    logger.log(VALIDATION_FAILURE_EVENT, {"HOST": "example.com", "requestType": "POST"})
    logger.log(VALIDATION_FAILURE_EVENT, {"HOST": "example.com", "requestType": "GET"})

    log_files = list(tmp_path.glob("*.log"))
    assert len(log_files) == 1

    lines = log_files[0].read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    entry = json.loads(lines[0])
    assert entry["message"] == VALIDATION_FAILURE_EVENT
    assert entry["HOST"] == "example.com"
    assert "timestamp" in entry


def test_file_logger_requires_existing_directory(tmp_path):
    with pytest.raises(LogDirectoryNotFoundError):
        FileLogger(str(tmp_path / "missing"))


def test_protector_uses_file_logger_when_configured(config_data, tmp_path):
    config_data["log_directory"] = str(tmp_path)
    protector = CSRFProtector(CSRFConfig.from_mapping(config_data))

    assert isinstance(protector.logger, FileLogger)


def test_protector_defaults_to_app_logger(config):
    protector = CSRFProtector(config)

    assert isinstance(protector.logger, AppLogger)


def test_missing_log_directory_is_fatal(config_data, tmp_path):
    config_data["log_directory"] = str(tmp_path / "missing")

    with pytest.raises(LogDirectoryNotFoundError):
        CSRFProtector(CSRFConfig.from_mapping(config_data))


def test_file_logger_shares_handler_per_directory(tmp_path):
    first = FileLogger(str(tmp_path))
    second = FileLogger(str(tmp_path))

    first.log(VALIDATION_FAILURE_EVENT, {"REQUEST_URI": "/one"})
    second.log(VALIDATION_FAILURE_EVENT, {"REQUEST_URI": "/two"})

    assert len(second.logger.handlers) == 1
    assert isinstance(second.logger.handlers[0], TimedRotatingFileHandler)
    lines = (tmp_path / ATTACK_LOG_FILENAME).read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["REQUEST_URI"] for line in lines] == ["/one", "/two"]
