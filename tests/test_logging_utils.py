# tests/test_logging_utils.py
# PURPOSE: logging setup targets the foxlist logger and is repeatable.

import logging

import pytest

from foxlist.logging_utils import HANDLER_NAME, setup_logging


@pytest.fixture(autouse=True)
def _restore_loggers():
    pkg = logging.getLogger("foxlist")
    sa = logging.getLogger("sqlalchemy.engine")
    saved = (pkg.level, list(pkg.handlers), sa.level)
    yield
    pkg.setLevel(saved[0])
    pkg.handlers[:] = saved[1]
    sa.setLevel(saved[2])


def test_sets_package_level_case_insensitively():
    logger = setup_logging(" debug ")
    assert logger.name == "foxlist"
    assert logger.level == logging.DEBUG
    assert logging.getLogger("sqlalchemy.engine").level == logging.DEBUG


def test_sqlalchemy_echo_stays_quiet_above_debug():
    setup_logging("INFO")
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_adds_a_single_handler_when_root_is_bare(monkeypatch):
    monkeypatch.setattr(logging.getLogger(), "handlers", [])

    setup_logging("INFO")
    setup_logging("WARNING")

    own = [h for h in logging.getLogger("foxlist").handlers if h.get_name() == HANDLER_NAME]
    assert len(own) == 1
    assert logging.getLogger("foxlist").level == logging.WARNING


def test_unknown_level_is_rejected():
    with pytest.raises(ValueError):
        setup_logging("LOUD")
