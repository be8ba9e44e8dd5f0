"""Role assignment using a Fisher-Yates shuffle over a CSPRNG."""

from __future__ import annotations

import secrets
import time
from collections import Counter
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from types import MappingProxyType
from typing import (
    Any,
    Callable,
    List,
    Mapping,
    MutableSequence,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
    Union,
)

from .exceptions import ConfigurationError, EntropyUnavailableError
from .roles import ROLE_REGISTRY, RoleDefinition, RoleRegistry

T = TypeVar("T")

RandBelow = Callable[[int], int]


@dataclass(frozen=True, slots=True)
class AssignedPlayer:
    """A named player bound to exactly one role."""

    id: str
    name: str
    index: int
    role: RoleDefinition
    revealed: bool = False


@dataclass(frozen=True, slots=True)
class AssignmentMetadata:
    """Bookkeeping captured when an assignment is created."""

    timestamp: str
    total_players: int
    role_counts: Mapping[str, int]
    assignment_id: str


@dataclass(frozen=True, slots=True)
class Assignment:
    """Outcome of one allocation request. Never mutated; see :meth:`with_revealed`."""

    players: Tuple[AssignedPlayer, ...]
    metadata: AssignmentMetadata

    @property
    def assignment_id(self) -> str:
        return self.metadata.assignment_id

    @property
    def statistics(self) -> Mapping[str, Tuple[str, ...]]:
        """Return player names grouped by role id, in player order."""

        grouped: dict[str, list[str]] = {role_id: [] for role_id in self.metadata.role_counts}
        for player in self.players:
            grouped.setdefault(player.role.id, []).append(player.name)
        return MappingProxyType({role_id: tuple(names) for role_id, names in grouped.items()})

    def players_with_role(self, role_id: str) -> Tuple[AssignedPlayer, ...]:
        wanted = role_id.upper()
        return tuple(player for player in self.players if player.role.id == wanted)

    def player_at(self, index: int) -> AssignedPlayer:
        for player in self.players:
            if player.index == index:
                return player
        raise KeyError(f"No player at index {index}")

    def with_revealed(self, index: int) -> "Assignment":
        """Return a copy with the player at ``index`` marked as revealed."""

        target = self.player_at(index)
        players = tuple(
            replace(player, revealed=True) if player is target else player
            for player in self.players
        )
        return replace(self, players=players)

    @property
    def all_revealed(self) -> bool:
        return all(player.revealed for player in self.players)


@dataclass(frozen=True, slots=True)
class AssignmentCheck:
    """Result of an integrity check on an existing assignment."""

    valid: bool
    message: str
    details: Optional[Mapping[str, Any]] = None


@dataclass(frozen=True, slots=True)
class PlayerDistribution:
    """How often one player received each role across repeated allocations."""

    name: str
    counts: Mapping[str, int]
    rates: Mapping[str, float]


@dataclass(frozen=True, slots=True)
class DistributionReport:
    """Empirical role distribution gathered by :func:`measure_distribution`."""

    iterations: int
    total_players: int
    expected_rates: Mapping[str, float]
    players: Tuple[PlayerDistribution, ...] = field(default_factory=tuple)

    @property
    def max_deviation(self) -> float:
        """Largest absolute gap between an observed and expected rate."""

        deviation = 0.0
        for player in self.players:
            for role_id, expected in self.expected_rates.items():
                deviation = max(deviation, abs(player.rates.get(role_id, 0.0) - expected))
        return deviation


def secure_randbelow(bound: int) -> int:
    """Return a uniform integer in ``[0, bound)`` from the OS entropy source."""

    try:
        return secrets.randbelow(bound)
    except (NotImplementedError, OSError) as exc:
        raise EntropyUnavailableError(
            "Cryptographically strong randomness is unavailable; refusing to assign roles"
        ) from exc


def fisher_yates_shuffle(
    items: MutableSequence[T], randbelow: RandBelow = secure_randbelow
) -> MutableSequence[T]:
    """Shuffle ``items`` in place and return the same sequence."""

    for i in range(len(items) - 1, 0, -1):
        j = randbelow(i + 1)
        items[i], items[j] = items[j], items[i]
    return items


def _normalize_names(player_names: Sequence[str]) -> Tuple[str, ...]:
    if isinstance(player_names, (str, bytes)) or not isinstance(player_names, Sequence):
        raise ConfigurationError("Player names must be a sequence of strings")
    if not player_names:
        raise ConfigurationError("Player names cannot be empty")

    names: list[str] = []
    for position, name in enumerate(player_names, start=1):
        if not isinstance(name, str) or not name.strip():
            raise ConfigurationError(f"Player {position} must have a non-empty name")
        names.append(name.strip())
    return tuple(names)


def _resolve_counts(
    role_configuration: Mapping[str, int], registry: RoleRegistry
) -> List[Tuple[RoleDefinition, int]]:
    if not isinstance(role_configuration, Mapping):
        raise ConfigurationError("Role configuration must be a mapping of role id to count")

    resolved: dict[str, Tuple[RoleDefinition, int]] = {}
    for role_id, count in role_configuration.items():
        role = registry.get_role_by_id(role_id)
        if role is None:
            raise ConfigurationError(f"Unknown role id: {role_id}")
        if role.is_villager:
            raise ConfigurationError(f"{role.name} count cannot be configured directly")
        if not isinstance(count, int) or isinstance(count, bool):
            raise ConfigurationError(f"{role.name} count must be an integer, received {count!r}")
        if count < 0:
            raise ConfigurationError(f"{role.name} count cannot be negative (received {count})")
        if role.id in resolved:
            raise ConfigurationError(f"Role {role.id} specified multiple times")
        resolved[role.id] = (role, count)

    return [
        resolved[role.id] for role in registry.get_special_roles() if role.id in resolved
    ]


def build_role_pool(
    player_count: int,
    role_configuration: Mapping[str, int],
    *,
    registry: RoleRegistry = ROLE_REGISTRY,
) -> List[RoleDefinition]:
    """Expand a configuration into one role per player, padded with villagers."""

    pool: list[RoleDefinition] = []
    for role, count in _resolve_counts(role_configuration, registry):
        pool.extend([role] * count)

    if len(pool) > player_count:
        raise ConfigurationError(
            f"Configured roles ({len(pool)}) exceed player count ({player_count})"
        )

    pool.extend([registry.villager_role()] * (player_count - len(pool)))
    if len(pool) != player_count:
        raise ConfigurationError(
            f"Role pool size {len(pool)} does not match player count {player_count}"
        )
    return pool


def _generate_assignment_id() -> str:
    return f"assign_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


def assign_roles(
    player_names: Sequence[str],
    role_configuration: Mapping[str, int],
    *,
    registry: RoleRegistry = ROLE_REGISTRY,
) -> Assignment:
    """Assign one role per player using a cryptographically strong shuffle.

    The configuration is expected to have passed
    :func:`mafia_roles.validation.validate_role_configuration`; only structural
    problems are rechecked here.

    Args:
        player_names: Player names in seating order. Names are trimmed.
        role_configuration: Mapping of special-role id to count. Villagers fill
            the remaining slots.
        registry: Role registry to resolve ids against.

    Returns:
        A fresh Assignment; names keep their input order and only roles are permuted.

    Raises:
        ConfigurationError: If names or counts are malformed.
        EntropyUnavailableError: If the OS randomness source fails.
    """
    names = _normalize_names(player_names)
    pool = build_role_pool(len(names), role_configuration, registry=registry)
    fisher_yates_shuffle(pool)

    players = tuple(
        AssignedPlayer(id=f"player_{index + 1}", name=name, index=index, role=role)
        for index, (name, role) in enumerate(zip(names, pool))
    )

    counts = Counter(role.id for role in pool)
    role_counts = {role.id: counts.get(role.id, 0) for role in registry.get_roles()}

    metadata = AssignmentMetadata(
        timestamp=datetime.now(timezone.utc).isoformat(),
        total_players=len(players),
        role_counts=MappingProxyType(role_counts),
        assignment_id=_generate_assignment_id(),
    )
    return Assignment(players=players, metadata=metadata)


def reassign_roles(
    source: Union[Assignment, Sequence[str]],
    role_configuration: Mapping[str, int],
    *,
    registry: RoleRegistry = ROLE_REGISTRY,
) -> Assignment:
    """Discard a previous allocation and produce an entirely new one."""

    if isinstance(source, Assignment):
        ordered = sorted(source.players, key=lambda player: player.index)
        names: Sequence[str] = [player.name for player in ordered]
    else:
        names = source
    return assign_roles(names, role_configuration, registry=registry)


def verify_assignment(assignment: Assignment) -> AssignmentCheck:
    """Check that players and metadata of ``assignment`` agree with each other."""

    players = assignment.players
    metadata = assignment.metadata

    if len(players) != metadata.total_players:
        return AssignmentCheck(False, "Metadata mismatch: total players")

    if sorted(player.index for player in players) != list(range(len(players))):
        return AssignmentCheck(False, "Player indexes are not a contiguous sequence")

    if len({player.id for player in players}) != len(players):
        return AssignmentCheck(False, "Player ids are not unique")

    observed = Counter(player.role.id for player in players)
    for role_id, expected in metadata.role_counts.items():
        if observed.get(role_id, 0) != expected:
            return AssignmentCheck(False, f"Metadata mismatch: {role_id} count")
    if set(observed) - set(metadata.role_counts):
        return AssignmentCheck(False, "Assignment contains roles missing from metadata")

    return AssignmentCheck(
        True,
        "Assignment is valid",
        MappingProxyType({"total_players": len(players), **dict(observed)}),
    )


def measure_distribution(
    player_names: Sequence[str],
    role_configuration: Mapping[str, int],
    iterations: int = 1000,
    *,
    registry: RoleRegistry = ROLE_REGISTRY,
) -> DistributionReport:
    """Run ``iterations`` independent allocations and tally who received what."""

    if iterations <= 0:
        raise ConfigurationError("Iterations must be a positive integer")

    names = _normalize_names(player_names)
    tallies: list[Counter[str]] = [Counter() for _ in names]
    for _ in range(iterations):
        assignment = assign_roles(names, role_configuration, registry=registry)
        for player in assignment.players:
            tallies[player.index][player.role.id] += 1

    pool = Counter(
        role.id for role in build_role_pool(len(names), role_configuration, registry=registry)
    )
    expected = {role_id: count / len(names) for role_id, count in pool.items()}

    players = tuple(
        PlayerDistribution(
            name=name,
            counts=MappingProxyType(dict(tally)),
            rates=MappingProxyType({role_id: tally[role_id] / iterations for role_id in expected}),
        )
        for name, tally in zip(names, tallies)
    )
    return DistributionReport(
        iterations=iterations,
        total_players=len(names),
        expected_rates=MappingProxyType(expected),
        players=players,
    )
