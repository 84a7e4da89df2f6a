import logging

from bluepic import config


def test_timestamp_format_matches_server_records():
    assert config.TIMESTAMP_FORMAT == "%Y-%m-%dT%H:%M:%S"


def test_configure_logging_sets_level(monkeypatch):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))

    config.configure_logging("debug")

    assert calls == [{"level": logging.DEBUG, "format": config.LOG_FORMAT}]


def test_configure_logging_falls_back_to_info(monkeypatch):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))

    config.configure_logging("chatty")

    assert calls[0]["level"] == logging.INFO
