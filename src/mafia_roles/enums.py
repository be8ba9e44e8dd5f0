"""Enumerations for role registry and validation entities."""

from __future__ import annotations

from enum import Enum


class Team(str, Enum):
    """Team affiliation of a role."""

    MAFIA = "mafia"
    SPECIAL = "special"
    VILLAGER = "villager"


class Severity(str, Enum):
    """Severity attached to a validation result."""

    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"
