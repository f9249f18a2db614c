# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import io
import logging
from datetime import datetime

from rich.console import Console
from rich.logging import RichHandler

from ksub_lib.core.logger import CFG, get_logger


def test_logger_debug_mode(monkeypatch):
    monkeypatch.setenv(CFG.env_vars.debug_mode, "1")
    logger = get_logger("test_debug")

    assert logger.level == logging.DEBUG


def test_logger_non_debug_mode(monkeypatch):
    monkeypatch.delenv(CFG.env_vars.debug_mode, raising=False)
    logger = get_logger("test_info")

    assert logger.level == logging.INFO


def test_logger_does_not_stack_handlers():
    get_logger("test_handlers")
    logger = get_logger("test_handlers")

    assert len([h for h in logger.handlers if isinstance(h, RichHandler)]) == 1
    assert logger.propagate is False


def _make_stringio_logger(monkeypatch, *, show_time=False):
    """Return a logger writing into a StringIO buffer."""
    buf = io.StringIO()

    monkeypatch.setitem(
        get_logger.__globals__,
        "Console",
        lambda **kwargs: Console(file=buf, force_terminal=False, **kwargs),
    )

    logger = get_logger(f"test_logger_{show_time}", show_time=show_time)
    return logger, buf


def test_logger_outputs_time_in_debug_mode(monkeypatch):
    monkeypatch.setenv(CFG.env_vars.debug_mode, "1")
    logger, buf = _make_stringio_logger(monkeypatch)
    logger.info("hello")

    # ignore seconds
    timestamp = datetime.now().strftime(CFG.date_formats.standard)[:-3]
    assert timestamp in buf.getvalue()


def test_logger_does_not_output_time_by_default(monkeypatch):
    monkeypatch.delenv(CFG.env_vars.debug_mode, raising=False)
    logger, buf = _make_stringio_logger(monkeypatch)
    logger.info("hello")

    timestamp = datetime.now().strftime(CFG.date_formats.standard)[:-3]
    output = buf.getvalue()
    assert "hello" in output
    assert timestamp not in output


def test_logger_does_not_interpret_markup(monkeypatch):
    monkeypatch.delenv(CFG.env_vars.debug_mode, raising=False)
    logger, buf = _make_stringio_logger(monkeypatch)
    logger.info("pod [bold]name[/bold]")

    assert "[bold]name[/bold]" in buf.getvalue()
