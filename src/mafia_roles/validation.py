"""Composable multi-role configuration validation.

Every rule is a pure function ``(role_config, total_players, registry)`` that
returns a :class:`ValidationResult` when it finds a problem and ``None``
otherwise. All rules run on every call so callers receive the complete set of
problems at once.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

from .enums import Severity
from .roles import ROLE_REGISTRY, RoleRegistry

RoleConfiguration = Mapping[str, int]

MIN_PLAYERS = 1
MAX_PLAYERS = 50
DEFAULT_MIN_VILLAGERS = 1


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Problem reported by a single rule."""

    is_valid: bool
    severity: Severity
    rule_type: str
    message: str
    details: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "severity": self.severity.value,
            "rule_type": self.rule_type,
            "message": self.message,
            "details": dict(self.details),
        }


@dataclass(frozen=True, slots=True)
class AggregatedValidationState:
    """Combined outcome of every rule for one configuration."""

    is_valid: bool
    has_errors: bool
    has_warnings: bool
    errors: Tuple[ValidationResult, ...]
    warnings: Tuple[ValidationResult, ...]
    villager_count: int
    requires_confirmation: bool

    @property
    def messages(self) -> Tuple[str, ...]:
        """Return error messages followed by warning messages."""

        return tuple(result.message for result in self.errors + self.warnings)

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "has_errors": self.has_errors,
            "has_warnings": self.has_warnings,
            "errors": [result.to_dict() for result in self.errors],
            "warnings": [result.to_dict() for result in self.warnings],
            "villager_count": self.villager_count,
            "requires_confirmation": self.requires_confirmation,
        }


ValidationRule = Callable[[RoleConfiguration, int, RoleRegistry], Optional[ValidationResult]]


def _whole(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _count_for(role_config: RoleConfiguration, role_id: str) -> int:
    """Return the configured count, treating missing or non-integer entries as 0."""

    value = role_config.get(role_id, 0)
    return value if _whole(value) else 0


def _special_role_total(
    role_config: RoleConfiguration, registry: RoleRegistry = ROLE_REGISTRY
) -> int:
    return sum(_count_for(role_config, role.id) for role in registry.get_special_roles())


def calculate_villager_count(
    role_config: RoleConfiguration,
    total_players: int,
    registry: RoleRegistry = ROLE_REGISTRY,
) -> int:
    """Return the villagers left after special roles; negative when over-allocated."""

    players = total_players if _whole(total_players) else 0
    return players - _special_role_total(role_config, registry)


def _result(
    severity: Severity, rule_type: str, message: str, **details: Any
) -> ValidationResult:
    return ValidationResult(
        is_valid=False,
        severity=severity,
        rule_type=rule_type,
        message=message,
        details=MappingProxyType(details),
    )


def _combined(
    severity: Severity, rule_type: str, violations: Sequence[tuple[str, dict[str, Any]]]
) -> Optional[ValidationResult]:
    """Fold per-role violations into one result naming every offending role."""

    if not violations:
        return None
    _, first_details = violations[0]
    return _result(
        severity,
        rule_type,
        " ".join(message for message, _ in violations),
        **first_details,
        violations=tuple(MappingProxyType(details) for _, details in violations),
    )


def negative_count_rule(
    role_config: RoleConfiguration, total_players: int, registry: RoleRegistry
) -> Optional[ValidationResult]:
    violations: list[tuple[str, dict[str, Any]]] = []
    for role in registry.get_special_roles():
        count = _count_for(role_config, role.id)
        if count < 0:
            violations.append(
                (
                    f"{role.name} count cannot be negative (currently: {count})",
                    {"role_id": role.id, "count": count},
                )
            )
    return _combined(Severity.ERROR, "NegativeCountRule", violations)


def total_role_count_rule(
    role_config: RoleConfiguration, total_players: int, registry: RoleRegistry
) -> Optional[ValidationResult]:
    if not _whole(total_players):
        return None
    total_roles = _special_role_total(role_config, registry)
    if total_roles > total_players:
        excess = total_roles - total_players
        return _result(
            Severity.ERROR,
            "TotalRoleCountRule",
            f"Total roles ({total_roles}) cannot exceed total players ({total_players}). "
            f"Reduce role counts by {excess}.",
            total_roles=total_roles,
            total_players=total_players,
            excess=excess,
        )
    return None


def individual_min_max_rule(
    role_config: RoleConfiguration, total_players: int, registry: RoleRegistry
) -> Optional[ValidationResult]:
    violations: list[tuple[str, dict[str, Any]]] = []
    for role in registry.get_special_roles():
        count = _count_for(role_config, role.id)
        constraints = role.constraints
        details = {
            "role_id": role.id,
            "count": count,
            "min": constraints.min_count,
            "max": constraints.max_count,
        }
        if count < constraints.min_count:
            violations.append(
                (
                    f"{role.name} count ({count}) is below minimum ({constraints.min_count})",
                    details,
                )
            )
        elif not constraints.allows(count):
            assert constraints.max_count is not None
            over = count - constraints.max_count
            violations.append(
                (
                    f"{role.name} count ({count}) exceeds maximum ({constraints.max_count}). "
                    f"Reduce {role.name} count by {over}.",
                    details,
                )
            )
    return _combined(Severity.ERROR, "IndividualMinMaxRule", violations)


def make_minimum_villagers_rule(min_villagers: int = DEFAULT_MIN_VILLAGERS) -> ValidationRule:
    """Build the villager-count rule for a given minimum."""

    def minimum_villagers_rule(
        role_config: RoleConfiguration, total_players: int, registry: RoleRegistry
    ) -> Optional[ValidationResult]:
        if not _whole(total_players):
            return None
        villager_count = calculate_villager_count(role_config, total_players, registry)

        if villager_count < 0:
            return _result(
                Severity.ERROR,
                "MinimumVillagersRule",
                f"Configuration allocates {abs(villager_count)} more roles than players. "
                "Reduce special role counts.",
                villager_count=villager_count,
                total_players=total_players,
            )

        if villager_count == 0:
            return _result(
                Severity.WARNING,
                "MinimumVillagersRule",
                "Configuration leaves 0 villagers. All players assigned special roles. "
                "Consider adding villagers for balanced gameplay.",
                villager_count=villager_count,
                total_players=total_players,
            )

        if villager_count < min_villagers:
            return _result(
                Severity.WARNING,
                "MinimumVillagersRule",
                f"Configuration leaves only {villager_count} villager(s). "
                "Consider reducing special roles for better balance.",
                villager_count=villager_count,
                min_villagers=min_villagers,
                total_players=total_players,
            )

        return None

    return minimum_villagers_rule


minimum_villagers_rule = make_minimum_villagers_rule()


def all_special_roles_rule(
    role_config: RoleConfiguration, total_players: int, registry: RoleRegistry
) -> Optional[ValidationResult]:
    if not _whole(total_players) or total_players < MIN_PLAYERS:
        return None
    if calculate_villager_count(role_config, total_players, registry) == 0:
        return _result(
            Severity.WARNING,
            "AllSpecialRolesRule",
            "All players assigned special roles. No villagers in game. "
            "This configuration may affect gameplay balance.",
            villager_count=0,
            total_players=total_players,
        )
    return None


def unknown_role_rule(
    role_config: RoleConfiguration, total_players: int, registry: RoleRegistry
) -> Optional[ValidationResult]:
    configurable = {role.id for role in registry.get_special_roles()}
    for key in role_config:
        if key in configurable:
            continue
        role = registry.get_role_by_id(key)
        if role is not None and role.is_villager:
            message = f"{role.name} count is calculated automatically and cannot be configured"
        elif role is not None:
            message = f'Unknown role "{key}". Did you mean "{role.id}"?'
        else:
            message = f'Unknown role "{key}"'
        return _result(Severity.ERROR, "UnknownRoleRule", message, role_id=key)
    return None


def whole_number_count_rule(
    role_config: RoleConfiguration, total_players: int, registry: RoleRegistry
) -> Optional[ValidationResult]:
    for key, value in role_config.items():
        if not _whole(value):
            role = registry.get_role_by_id(key)
            label = role.name if role is not None else str(key)
            return _result(
                Severity.ERROR,
                "WholeNumberCountRule",
                f"{label} count must be a whole number (currently: {value!r})",
                role_id=key,
                count=value,
            )
    return None


def player_count_rule(
    role_config: RoleConfiguration, total_players: int, registry: RoleRegistry
) -> Optional[ValidationResult]:
    if not _whole(total_players):
        return _result(
            Severity.ERROR,
            "PlayerCountRule",
            "Total players must be a whole number",
            total_players=total_players,
        )
    if total_players < MIN_PLAYERS:
        return _result(
            Severity.ERROR,
            "PlayerCountRule",
            f"Need at least {MIN_PLAYERS} player to play (currently: {total_players})",
            total_players=total_players,
            min_players=MIN_PLAYERS,
        )
    if total_players > MAX_PLAYERS:
        return _result(
            Severity.ERROR,
            "PlayerCountRule",
            f"Maximum {MAX_PLAYERS} players supported (currently: {total_players})",
            total_players=total_players,
            max_players=MAX_PLAYERS,
        )
    return None


VALIDATION_RULES: Tuple[ValidationRule, ...] = (
    negative_count_rule,
    total_role_count_rule,
    individual_min_max_rule,
    minimum_villagers_rule,
    all_special_roles_rule,
    unknown_role_rule,
    whole_number_count_rule,
    player_count_rule,
)

# Rule types that describe the same user-visible condition.
_EQUIVALENT_WARNINGS: Dict[str, str] = {
    "MinimumVillagersRule": "villagers",
    "AllSpecialRolesRule": "villagers",
}


def _deduplicate(warnings: Sequence[ValidationResult]) -> Tuple[ValidationResult, ...]:
    seen: set[str] = set()
    unique: list[ValidationResult] = []
    for warning in warnings:
        key = _EQUIVALENT_WARNINGS.get(warning.rule_type, warning.rule_type)
        if key in seen:
            continue
        seen.add(key)
        unique.append(warning)
    return tuple(unique)


def validate_role_configuration(
    role_config: RoleConfiguration,
    total_players: int,
    *,
    min_villagers: int = DEFAULT_MIN_VILLAGERS,
    rules: Optional[Sequence[ValidationRule]] = None,
    registry: RoleRegistry = ROLE_REGISTRY,
) -> AggregatedValidationState:
    """Run every rule against ``role_config`` and aggregate the results.

    Args:
        role_config: Mapping of special-role id to requested count.
        total_players: Number of players in the game.
        min_villagers: Villager count below which a warning is raised.
        rules: Rule sequence to run instead of :data:`VALIDATION_RULES`.
        registry: Role registry to validate against.

    Returns:
        AggregatedValidationState with errors, deduplicated warnings and the
        derived villager count, which is reported even when invalid.
    """
    if rules is None:
        rules = VALIDATION_RULES
    if min_villagers != DEFAULT_MIN_VILLAGERS:
        custom_rule = make_minimum_villagers_rule(min_villagers)
        rules = tuple(custom_rule if rule is minimum_villagers_rule else rule for rule in rules)

    results: list[ValidationResult] = []
    if not isinstance(role_config, Mapping):
        results.append(
            _result(
                Severity.ERROR,
                "ConfigurationShapeRule",
                "Role configuration must be a mapping of role id to count",
                received=type(role_config).__name__,
            )
        )
        role_config = {}

    results.extend(
        result
        for result in (rule(role_config, total_players, registry) for rule in rules)
        if result is not None
    )

    errors = tuple(result for result in results if result.severity is Severity.ERROR)
    warnings = _deduplicate(
        [result for result in results if result.severity is Severity.WARNING]
    )
    villager_count = calculate_villager_count(role_config, total_players, registry)

    return AggregatedValidationState(
        is_valid=not errors,
        has_errors=bool(errors),
        has_warnings=bool(warnings),
        errors=errors,
        warnings=warnings,
        villager_count=villager_count,
        requires_confirmation=bool(warnings) and not errors,
    )
