import json
import logging

from objstore.common.logging import JsonFormatter


def _record(**kwargs) -> logging.LogRecord:
    record = logging.LogRecord(
        name="objstore.storage",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="uploaded object key=%s",
        args=("a.txt",),
        exc_info=None,
    )
    for key, value in kwargs.items():
        setattr(record, key, value)
    return record


def test_json_formatter_merges_extra_payload():
    payload = json.loads(
        JsonFormatter().format(_record(extra={"bucket": "b", "size_bytes": 3}))
    )

    assert payload == {
        "level": "INFO",
        "logger": "objstore.storage",
        "message": "uploaded object key=a.txt",
        "bucket": "b",
        "size_bytes": 3,
    }


def test_json_formatter_without_extra():
    payload = json.loads(JsonFormatter().format(_record()))

    assert set(payload) == {"level", "logger", "message"}


def test_setup_logging_routes_library_logger_through_json(capsys):
    from objstore.common.logging import get_storage_logger, setup_logging

    setup_logging("DEBUG")
    package_logger = logging.getLogger("objstore")
    try:
        get_storage_logger().info("storage ready", extra={"extra": {"provider": "r2"}})
    finally:
        package_logger.handlers.clear()
        package_logger.propagate = True

    line = capsys.readouterr().err.strip().splitlines()[-1]
    assert json.loads(line) == {
        "level": "INFO",
        "logger": "objstore.storage",
        "message": "storage ready",
        "provider": "r2",
    }


def test_setup_logging_defaults_to_log_level_setting(monkeypatch):
    from objstore.common.config import get_settings
    from objstore.common.logging import setup_logging

    monkeypatch.setenv("LOG_LEVEL", "warning")
    get_settings.cache_clear()
    package_logger = logging.getLogger("objstore")
    try:
        setup_logging()
        assert package_logger.level == logging.WARNING
    finally:
        package_logger.handlers.clear()
        package_logger.propagate = True
        package_logger.setLevel(logging.NOTSET)
        get_settings.cache_clear()
