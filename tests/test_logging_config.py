import logging

from trivia_app.utils.logging_config import configure_logging


def _file_handlers(logger: logging.Logger) -> list[logging.FileHandler]:
    return [h for h in logger.handlers if isinstance(h, logging.FileHandler)]


def test_log_file_receives_package_records(tmp_path):
    path = tmp_path / "logs" / "trivia.log"
    logger = configure_logging(logging.INFO, log_file=path)
    try:
        configure_logging(logging.INFO, log_file=path)
        handlers = _file_handlers(logger)
        assert [h.baseFilename for h in handlers] == [str(path.resolve())]

        logging.getLogger("trivia_app.core.quiz_manager").info("Started round %d of %d", 1, 5)
        handlers[0].flush()

        assert "Started round 1 of 5" in path.read_text(encoding="utf-8")
    finally:
        for handler in _file_handlers(logger):
            logger.removeHandler(handler)
            handler.close()
        logger.setLevel(logging.NOTSET)


def test_access_log_is_quiet_unless_debugging():
    configure_logging(logging.INFO)
    assert logging.getLogger("uvicorn.access").level == logging.WARNING

    configure_logging(logging.DEBUG)
    assert logging.getLogger("uvicorn.access").level == logging.DEBUG
    logging.getLogger("trivia_app").setLevel(logging.NOTSET)
    logging.getLogger("uvicorn.access").setLevel(logging.NOTSET)
