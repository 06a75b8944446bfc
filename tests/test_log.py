import logging

from sitesync.log import LOGGER_NAME, ContextFormatter, configure_logging, fields


def make_record(**extra):
    record = logging.LogRecord("sitesync.test", logging.INFO, __file__, 1, "uploaded", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_context_rendered_as_key_values():
    formatter = ContextFormatter("%(levelname)s %(message)s")
    record = make_record(**fields(key="posts/a.html", error="access denied"))
    assert formatter.format(record) == "INFO uploaded key=posts/a.html error='access denied'"


def test_record_without_context():
    assert ContextFormatter("%(message)s").format(make_record()) == "uploaded"


def test_configure_logging_does_not_stack_handlers():
    logger = configure_logging(verbose=True)
    configure_logging(verbose=False)
    owned = [h for h in logger.handlers if getattr(h, "_sitesync", False)]
    assert len(owned) == 1
    assert logger.name == LOGGER_NAME
    assert logger.level == logging.INFO
