"""Role metadata registry and single-role count checks."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional, Tuple, Union

from .enums import Team
from .exceptions import ConfigurationError

DEFAULT_PRIORITY = 999
VILLAGER_DEFAULT_SENTINEL = -1


@dataclass(frozen=True, slots=True)
class RoleColor:
    """Five-slot palette used by display layers."""

    primary: str
    secondary: str
    border: str
    text: str
    accent: str


@dataclass(frozen=True, slots=True)
class RoleConstraints:
    """Count bounds for a role. ``max_count`` of ``None`` means unbounded."""

    min_count: int = 0
    max_count: Optional[int] = None
    default: int = 0

    def __post_init__(self) -> None:
        if self.min_count < 0:
            raise ConfigurationError("Role minimum count may not be negative")
        if self.max_count is not None and self.max_count < self.min_count:
            raise ConfigurationError("Role maximum count may not be below its minimum")
        if self.default == VILLAGER_DEFAULT_SENTINEL:
            return
        if self.default < self.min_count or not self.allows(self.default):
            raise ConfigurationError(
                f"Role default count {self.default} lies outside "
                f"[{self.min_count}, {self.max_label}]"
            )

    @property
    def is_unbounded(self) -> bool:
        return self.max_count is None

    @property
    def max_label(self) -> str:
        """Human-readable maximum, used in messages."""

        return "unlimited" if self.max_count is None else str(self.max_count)

    def allows(self, count: int) -> bool:
        """Return True if ``count`` does not exceed the maximum."""

        return self.max_count is None or count <= self.max_count


@dataclass(frozen=True, slots=True)
class RoleDefinition:
    """Canonical metadata for a single role."""

    id: str
    name: str
    team: Team
    color: RoleColor
    constraints: RoleConstraints
    description: str
    priority: Optional[int] = None

    @property
    def sort_priority(self) -> int:
        return DEFAULT_PRIORITY if self.priority is None else self.priority

    @property
    def is_villager(self) -> bool:
        """Return True for the overflow role that is never configured directly."""

        return self.team is Team.VILLAGER

    @property
    def is_special(self) -> bool:
        return not self.is_villager


@dataclass(frozen=True, slots=True)
class RoleCountCheck:
    """Outcome of a single-role bounds check."""

    is_valid: bool
    error: Optional[str] = None
    details: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


class RoleRegistry:
    """Read-only catalogue of role definitions keyed by uppercase id."""

    __slots__ = ("_roles", "_ordered")

    def __init__(self, definitions: Iterable[RoleDefinition]) -> None:
        roles: dict[str, RoleDefinition] = {}
        for definition in definitions:
            role_id = definition.id
            if not role_id or role_id != role_id.upper():
                raise ConfigurationError(f"Role id must be non-empty uppercase: {role_id!r}")
            if role_id in roles:
                raise ConfigurationError(f"Duplicate role id: {role_id}")
            roles[role_id] = definition

        villagers = [role for role in roles.values() if role.is_villager]
        if len(villagers) != 1:
            raise ConfigurationError(
                f"Registry requires exactly one villager-team role, found {len(villagers)}"
            )

        self._roles: Mapping[str, RoleDefinition] = MappingProxyType(roles)
        # sorted() is stable, so equal priorities keep declaration order.
        self._ordered: Tuple[RoleDefinition, ...] = tuple(
            sorted(roles.values(), key=lambda role: role.sort_priority)
        )

    def __len__(self) -> int:
        return len(self._roles)

    def __contains__(self, role_id: object) -> bool:
        return self.get_role_by_id(role_id) is not None

    @property
    def definitions(self) -> Mapping[str, RoleDefinition]:
        return self._roles

    def get_roles(self) -> Tuple[RoleDefinition, ...]:
        """Return every role sorted ascending by priority."""

        return self._ordered

    def get_role_by_id(self, role_id: object) -> Optional[RoleDefinition]:
        """Case-insensitive lookup; returns ``None`` for unknown or non-string ids."""

        if not isinstance(role_id, str) or not role_id:
            return None
        return self._roles.get(role_id.strip().upper())

    def get_roles_by_team(self, team: Union[Team, str, None]) -> Tuple[RoleDefinition, ...]:
        """Return roles for ``team``; unknown teams yield an empty tuple."""

        if isinstance(team, Team):
            resolved = team
        elif isinstance(team, str):
            try:
                resolved = Team(team.strip().lower())
            except ValueError:
                return ()
        else:
            return ()
        return tuple(role for role in self._ordered if role.team is resolved)

    def get_special_roles(self) -> Tuple[RoleDefinition, ...]:
        """Return the configurable roles, i.e. everything except the villager entry."""

        return tuple(role for role in self._ordered if role.is_special)

    def villager_role(self) -> RoleDefinition:
        for role in self._ordered:
            if role.is_villager:
                return role
        raise AssertionError("registry invariant violated: no villager role")

    def validate_role_count(
        self, role_id: object, count: object, total_players: object
    ) -> RoleCountCheck:
        """Check one role's count against its own bounds and the player ceiling.

        This is a convenience for per-field feedback; multi-role checks live in
        :mod:`mafia_roles.validation`.
        """

        if not isinstance(role_id, str) or not role_id:
            return RoleCountCheck(False, "Role ID must be a non-empty string")
        if not _is_whole_number(count) or count < 0:  # type: ignore[operator]
            return RoleCountCheck(False, "Count must be a non-negative integer")
        if not _is_whole_number(total_players) or total_players <= 0:  # type: ignore[operator]
            return RoleCountCheck(False, "Total players must be a positive integer")

        assert isinstance(count, int) and isinstance(total_players, int)
        role = self.get_role_by_id(role_id)
        if role is None:
            return RoleCountCheck(False, f'Role with ID "{role_id}" not found in registry')

        constraints = role.constraints
        if count < constraints.min_count:
            return RoleCountCheck(
                False,
                f"{role.name} count must be at least {constraints.min_count}",
                _frozen({"min": constraints.min_count, "actual": count}),
            )

        if not constraints.allows(count):
            return RoleCountCheck(
                False,
                f"{role.name} count cannot exceed {constraints.max_count} "
                f"for {total_players} players",
                _frozen(
                    {"max": constraints.max_count, "actual": count, "total_players": total_players}
                ),
            )

        if count > total_players:
            return RoleCountCheck(
                False,
                f"{role.name} count ({count}) cannot exceed total players ({total_players})",
                _frozen({"count": count, "total_players": total_players}),
            )

        return RoleCountCheck(
            True,
            details=_frozen({"role": role.name, "count": count, "total_players": total_players}),
        )


def _is_whole_number(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _frozen(data: dict[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(data)


ROLE_DEFINITIONS: Tuple[RoleDefinition, ...] = (
    RoleDefinition(
        id="MAFIA",
        name="Mafia",
        team=Team.MAFIA,
        color=RoleColor(
            primary="red-600",
            secondary="red-50",
            border="red-500",
            text="red-800",
            accent="red-700",
        ),
        constraints=RoleConstraints(min_count=0, max_count=None, default=1),
        description="Eliminate villagers to win",
        priority=1,
    ),
    RoleDefinition(
        id="POLICE",
        name="Police",
        team=Team.SPECIAL,
        color=RoleColor(
            primary="blue-600",
            secondary="blue-50",
            border="blue-500",
            text="blue-800",
            accent="blue-700",
        ),
        constraints=RoleConstraints(min_count=0, max_count=2, default=0),
        description="Investigate one player each night",
        priority=2,
    ),
    RoleDefinition(
        id="DOCTOR",
        name="Doctor",
        team=Team.SPECIAL,
        color=RoleColor(
            primary="green-600",
            secondary="green-50",
            border="green-500",
            text="green-800",
            accent="green-700",
        ),
        constraints=RoleConstraints(min_count=0, max_count=2, default=0),
        description="Protect one player each night",
        priority=3,
    ),
    RoleDefinition(
        id="VILLAGER",
        name="Villager",
        team=Team.VILLAGER,
        color=RoleColor(
            primary="gray-500",
            secondary="gray-50",
            border="gray-300",
            text="gray-700",
            accent="gray-600",
        ),
        constraints=RoleConstraints(
            min_count=0, max_count=None, default=VILLAGER_DEFAULT_SENTINEL
        ),
        description="Work with others to identify Mafia",
        priority=4,
    ),
)


ROLE_REGISTRY = RoleRegistry(ROLE_DEFINITIONS)


def get_roles() -> Tuple[RoleDefinition, ...]:
    """Return all registered roles sorted by priority."""

    return ROLE_REGISTRY.get_roles()


def get_role_by_id(role_id: object) -> Optional[RoleDefinition]:
    """Return the role with ``role_id`` (case-insensitive) or ``None``."""

    return ROLE_REGISTRY.get_role_by_id(role_id)


def get_roles_by_team(team: Union[Team, str, None]) -> Tuple[RoleDefinition, ...]:
    """Return the roles belonging to ``team``."""

    return ROLE_REGISTRY.get_roles_by_team(team)


def get_special_roles() -> Tuple[RoleDefinition, ...]:
    """Return every configurable (non-villager) role."""

    return ROLE_REGISTRY.get_special_roles()


def villager_role() -> RoleDefinition:
    """Return the unique overflow role."""

    return ROLE_REGISTRY.villager_role()


def validate_role_count(role_id: object, count: object, total_players: object) -> RoleCountCheck:
    """Bounds-check a single role count against the default registry."""

    return ROLE_REGISTRY.validate_role_count(role_id, count, total_players)
