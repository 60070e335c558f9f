from loguru import logger

from dockhand.models.enums import LogLevel
from dockhand.utils.logger import configure_logging, get_logger


def test_get_logger_binds_module_name():
    records = []
    sink_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    try:
        get_logger("dockhand.engine.client").info("hello")
    finally:
        logger.remove(sink_id)

    assert records[-1]["extra"]["name"] == "dockhand.engine.client"
    assert records[-1]["message"] == "hello"


def test_configure_logging_writes_file(tmp_path):
    log_file = tmp_path / "dockhand.log"
    configure_logging(LogLevel.WARNING, str(log_file))
    try:
        log = get_logger("tests")
        log.info("quiet")
        log.warning("loud")
        logger.complete()
    finally:
        logger.remove()

    text = log_file.read_text()
    assert "loud" in text
    assert "quiet" not in text
    assert "tests" in text


def test_unbound_logger_uses_record_name(tmp_path):
    log_file = tmp_path / "dockhand.log"
    configure_logging(LogLevel.INFO, str(log_file))
    try:
        logger.warning("from a plain logger")
        logger.complete()
    finally:
        logger.remove()

    line = log_file.read_text().splitlines()[0]
    assert "from a plain logger" in line
    assert __name__ in line
