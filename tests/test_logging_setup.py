import io
import logging

import pytest

import tb_reconcile.logging_setup as logging_setup


@pytest.fixture
def fresh_logging(monkeypatch):
    pkg = logging.getLogger("tb_reconcile")
    saved = (list(pkg.handlers), pkg.level, pkg.propagate)
    monkeypatch.setattr(logging_setup, "_CONFIGURED", False)
    pkg.handlers.clear()
    yield pkg
    pkg.handlers[:] = saved[0]
    pkg.setLevel(saved[1])
    pkg.propagate = saved[2]


def test_unconfigured_package_logger_gets_null_handler(fresh_logging):
    logging_setup.get_logger("tb_reconcile.matching")
    assert any(isinstance(h, logging.NullHandler) for h in fresh_logging.handlers)


def test_configure_logging_writes_structured_messages(fresh_logging):
    stream = io.StringIO()
    logging_setup.configure_logging("info", fmt="%(name)s %(message)s", stream=stream)
    logging_setup.get_logger("tb_reconcile.api").info("clean_grid:done rows=%d", 3)
    assert stream.getvalue().strip() == "tb_reconcile.api clean_grid:done rows=3"
    assert not any(isinstance(h, logging.NullHandler) for h in fresh_logging.handlers)


def test_configure_logging_only_once(fresh_logging):
    logging_setup.configure_logging("debug", stream=io.StringIO())
    logging_setup.configure_logging("debug", stream=io.StringIO())
    assert len(fresh_logging.handlers) == 1


def test_level_from_environment(fresh_logging, monkeypatch):
    monkeypatch.setenv("TB_RECONCILE_LOG_LEVEL", "error")
    logging_setup.configure_logging(stream=io.StringIO())
    assert fresh_logging.level == logging.ERROR


def test_unknown_level_rejected(fresh_logging):
    with pytest.raises(ValueError, match="unknown log level"):
        logging_setup.configure_logging("LOUD", stream=io.StringIO())
