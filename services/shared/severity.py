"""Log level taxonomy and severity mapping.

Levels follow the npm-style ordering used by the demo service
(error > warn > info > http > verbose > debug > silly). Each level maps to
an OpenTelemetry SeverityNumber for the remote log pipeline and to a
stdlib logging level so third-party loggers can share the same pipeline.
"""

import logging
from typing import Dict, Optional

from opentelemetry._logs import SeverityNumber

DEFAULT_LEVEL = "info"

# Rank 0 is the most severe.
LEVELS: Dict[str, int] = {
    "error": 0,
    "warn": 1,
    "info": 2,
    "http": 3,
    "verbose": 4,
    "debug": 5,
    "silly": 6,
}

SEVERITY_NUMBERS: Dict[str, SeverityNumber] = {
    "error": SeverityNumber.ERROR,
    "warn": SeverityNumber.WARN,
    "info": SeverityNumber.INFO,
    "http": SeverityNumber.DEBUG3,
    "verbose": SeverityNumber.DEBUG2,
    "debug": SeverityNumber.DEBUG,
    "silly": SeverityNumber.TRACE,
}

_ALIASES = {
    "warning": "warn",
    "critical": "error",
    "fatal": "error",
    "exception": "error",
    "trace": "silly",
}

# Custom stdlib levels for the tiers logging does not define
HTTP = 15
VERBOSE = 13
SILLY = 5

logging.addLevelName(HTTP, "HTTP")
logging.addLevelName(VERBOSE, "VERBOSE")
logging.addLevelName(SILLY, "SILLY")

_STDLIB_LEVELS: Dict[str, int] = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "http": HTTP,
    "verbose": VERBOSE,
    "debug": logging.DEBUG,
    "silly": SILLY,
}


def normalize_level(level: Optional[str]) -> str:
    """Return the canonical level name, falling back to ``info``."""
    if not isinstance(level, str):
        return DEFAULT_LEVEL
    name = level.strip().lower()
    name = _ALIASES.get(name, name)
    return name if name in LEVELS else DEFAULT_LEVEL


def map_severity(level: Optional[str]) -> SeverityNumber:
    """Map a level name to an OTel SeverityNumber. Never raises."""
    return SEVERITY_NUMBERS[normalize_level(level)]


def level_rank(level: Optional[str]) -> int:
    return LEVELS[normalize_level(level)]


def _filter_rank(level: Optional[str]) -> int:
    # http request logs are filtered alongside info
    name = normalize_level(level)
    return LEVELS["info"] if name == "http" else LEVELS[name]


def is_admitted(level: Optional[str], min_level: Optional[str]) -> bool:
    """True when a record at ``level`` passes a ``min_level`` threshold.

    A threshold admits its own tier and everything more severe; ``http``
    shares the ``info`` tier, so an info threshold admits http records.
    """
    return _filter_rank(level) <= _filter_rank(min_level)


def stdlib_level(level: Optional[str]) -> int:
    """Stdlib numeric level for a taxonomy level."""
    return _STDLIB_LEVELS[normalize_level(level)]


def level_from_stdlib(levelno: int) -> str:
    """Map a stdlib numeric level onto the taxonomy.

    The most severe tier whose stdlib threshold is <= ``levelno`` wins, so
    CRITICAL lands on error and anything below SILLY lands on silly.
    """
    for name in LEVELS:
        if levelno >= _STDLIB_LEVELS[name]:
            return name
    return "silly"
