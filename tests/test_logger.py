from __future__ import annotations

import logging

import pytest

from trevee_supply.logger import TRACE, ColoredFormatter, resolve_level, setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    noisy = {name: logging.getLogger(name).level for name in ("web3", "urllib3")}
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, noisy_level in noisy.items():
        logging.getLogger(name).setLevel(noisy_level)


@pytest.mark.parametrize(
    "name,expected",
    [
        ("trace", TRACE),
        ("DEBUG", logging.DEBUG),
        ("warning", logging.WARNING),
        ("bogus", logging.INFO),
    ],
)
def test_resolve_level(name, expected):
    assert resolve_level(name) == expected


def test_debug_quiets_noisy_loggers(restore_logging):
    setup_logging("DEBUG")

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("web3").level == logging.WARNING


def test_trace_shows_noisy_loggers(restore_logging):
    setup_logging("TRACE")

    assert logging.getLogger("urllib3").level == TRACE


def test_colored_formatter_restores_levelname():
    record = logging.LogRecord("x", logging.ERROR, __file__, 1, "boom", None, None)

    output = ColoredFormatter("%(levelname)s %(message)s").format(record)

    assert "\033[31m" in output
    assert output.endswith("boom")
    assert record.levelname == "ERROR"
