"""Tests for level taxonomy, severity mapping and filtering."""

import logging

import pytest
from opentelemetry._logs import SeverityNumber

from shared.severity import (
    LEVELS,
    is_admitted,
    level_from_stdlib,
    map_severity,
    normalize_level,
    stdlib_level,
)


@pytest.mark.parametrize(
    "level,expected",
    [
        ("error", SeverityNumber.ERROR),
        ("warn", SeverityNumber.WARN),
        ("info", SeverityNumber.INFO),
        ("http", SeverityNumber.DEBUG3),
        ("verbose", SeverityNumber.DEBUG2),
        ("debug", SeverityNumber.DEBUG),
        ("silly", SeverityNumber.TRACE),
    ],
)
def test_map_severity_known_levels(level, expected):
    assert map_severity(level) is expected


def test_every_level_maps_into_the_enumeration():
    for level in LEVELS:
        assert isinstance(map_severity(level), SeverityNumber)


@pytest.mark.parametrize("level", ["loud", "", None, 42, "INFOO"])
def test_map_severity_unknown_defaults_to_info(level):
    assert map_severity(level) is SeverityNumber.INFO


def test_map_severity_is_case_insensitive():
    assert map_severity("ERROR") is SeverityNumber.ERROR


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("WARNING", "warn"),
        ("critical", "error"),
        ("fatal", "error"),
        ("trace", "silly"),
        (" Debug ", "debug"),
        ("bogus", "info"),
        (None, "info"),
    ],
)
def test_normalize_level(raw, expected):
    assert normalize_level(raw) == expected


def test_info_threshold_admits_info_and_more_severe():
    for level in ("error", "warn", "info", "http"):
        assert is_admitted(level, "info"), level
    for level in ("verbose", "debug", "silly"):
        assert not is_admitted(level, "info"), level


def test_error_threshold_only_admits_error():
    assert is_admitted("error", "error")
    assert not is_admitted("warn", "error")


def test_silly_threshold_admits_everything():
    assert all(is_admitted(level, "silly") for level in LEVELS)


def test_unknown_threshold_behaves_like_info():
    assert is_admitted("info", "nonsense")
    assert not is_admitted("debug", "nonsense")


@pytest.mark.parametrize(
    "levelno,expected",
    [
        (logging.CRITICAL, "error"),
        (logging.ERROR, "error"),
        (logging.WARNING, "warn"),
        (logging.INFO, "info"),
        (15, "http"),
        (13, "verbose"),
        (logging.DEBUG, "debug"),
        (5, "silly"),
        (1, "silly"),
    ],
)
def test_level_from_stdlib(levelno, expected):
    assert level_from_stdlib(levelno) == expected


def test_custom_stdlib_level_names_are_registered():
    assert logging.getLevelName(stdlib_level("http")) == "HTTP"
    assert logging.getLevelName(stdlib_level("verbose")) == "VERBOSE"
    assert logging.getLevelName(stdlib_level("silly")) == "SILLY"


def test_map_severity_accepts_aliases():
    assert map_severity("warning") is SeverityNumber.WARN
    assert map_severity("critical") is SeverityNumber.ERROR
