"""YAML game file loader for player rosters and role counts."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml  # type: ignore[import-untyped]

from .exceptions import ConfigurationError
from .roles import get_role_by_id
from .validation import (
    DEFAULT_MIN_VILLAGERS,
    AggregatedValidationState,
    validate_role_configuration,
)


@dataclass(frozen=True, slots=True)
class GameFile:
    """Player roster and role configuration loaded from a game file."""

    player_names: tuple[str, ...]
    role_configuration: Mapping[str, int]
    min_villagers: int = DEFAULT_MIN_VILLAGERS
    audit_log_enabled: bool = False

    @property
    def player_count(self) -> int:
        return len(self.player_names)

    def validate(self) -> AggregatedValidationState:
        """Run the validation rules against this file's roster size."""

        return validate_role_configuration(
            self.role_configuration,
            self.player_count,
            min_villagers=self.min_villagers,
        )


def load_game_file(config_path: str | Path) -> GameFile:
    """Load a roster and role counts from a YAML file.

    Args:
        config_path: Path to the YAML game file.

    Returns:
        GameFile with trimmed player names and canonical role ids.

    Raises:
        ConfigurationError: If the file is invalid or missing required fields.
        FileNotFoundError: If the file doesn't exist.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Game file not found: {config_path}")

    with path.open("r", encoding="utf-8") as f:
        try:
            data: Any = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML file: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError("Game file must contain a YAML mapping")

    return parse_game_data(data)


def parse_game_data(data: Mapping[str, Any]) -> GameFile:
    """Build a :class:`GameFile` from already-parsed mapping data."""

    player_data = data.get("players")
    if not player_data:
        raise ConfigurationError("Game file must specify 'players' list")
    if not isinstance(player_data, list):
        raise ConfigurationError("'players' must be a list")

    names: list[str] = []
    seen: set[str] = set()
    for idx, entry in enumerate(player_data):
        # Accept both "Alice" and {name: "Alice"}.
        if isinstance(entry, dict):
            entry = entry.get("name")
        if not isinstance(entry, str) or not entry.strip():
            raise ConfigurationError(f"Player entry {idx + 1} must be a non-empty name")
        name = entry.strip()
        lowered = name.casefold()
        if lowered in seen:
            raise ConfigurationError(f"Duplicate player name detected: {name}")
        seen.add(lowered)
        names.append(name)

    roles_raw = data.get("roles", {}) or {}
    if not isinstance(roles_raw, dict):
        raise ConfigurationError("'roles' must be a mapping of role name to count")

    role_configuration: dict[str, int] = {}
    for role_key, count in roles_raw.items():
        role = get_role_by_id(str(role_key))
        if role is None:
            raise ConfigurationError(f"Unknown role type: {role_key}")
        if role.is_villager:
            raise ConfigurationError(
                f"'{role_key}': villagers fill the remaining seats and cannot be configured"
            )
        if not isinstance(count, int) or isinstance(count, bool):
            raise ConfigurationError(f"Role {role_key}: count must be an integer")
        if role.id in role_configuration:
            raise ConfigurationError(f"Role {role.id} specified multiple times")
        role_configuration[role.id] = count

    min_villagers = data.get("min_villagers", DEFAULT_MIN_VILLAGERS)
    if not isinstance(min_villagers, int) or isinstance(min_villagers, bool) or min_villagers < 0:
        raise ConfigurationError("'min_villagers' must be a non-negative integer")

    audit_log = data.get("audit_log", False)
    if not isinstance(audit_log, bool):
        raise ConfigurationError("'audit_log' must be true or false")

    return GameFile(
        player_names=tuple(names),
        role_configuration=MappingProxyType(role_configuration),
        min_villagers=min_villagers,
        audit_log_enabled=audit_log,
    )
