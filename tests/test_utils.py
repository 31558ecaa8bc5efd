"""Unit tests for shared utilities."""

from __future__ import annotations

import logging

from fragmentlog.utils import configure_logging, slugify, trim_newlines


def test_slugify_collapses_separators() -> None:
    assert slugify("Fix the  Parser_crash!") == "fix-the-parser-crash"
    assert slugify("---") == ""


def test_trim_newlines_keeps_other_whitespace() -> None:
    assert trim_newlines("  text  \r\n\n") == "  text  "


def test_configure_logging_levels() -> None:
    assert configure_logging(debug=True).level == logging.DEBUG
    assert configure_logging(quiet=True).level == logging.ERROR
    assert configure_logging().level == logging.INFO
