from __future__ import annotations

from typing import Optional

import pytest

from mafia_roles.enums import Severity, Team
from mafia_roles.roles import (
    VILLAGER_DEFAULT_SENTINEL,
    RoleColor,
    RoleConstraints,
    RoleDefinition,
    RoleRegistry,
)
from mafia_roles.validation import (
    MAX_PLAYERS,
    VALIDATION_RULES,
    RoleConfiguration,
    ValidationResult,
    calculate_villager_count,
    validate_role_configuration,
)


def _rule_types(results: tuple[ValidationResult, ...]) -> list[str]:
    return [result.rule_type for result in results]


def _capped_mafia_registry(max_mafia: int) -> RoleRegistry:
    color = RoleColor("red", "red", "red", "red", "red")
    return RoleRegistry(
        [
            RoleDefinition(
                id="MAFIA",
                name="Mafia",
                team=Team.MAFIA,
                color=color,
                constraints=RoleConstraints(min_count=1, max_count=max_mafia, default=1),
                description="",
                priority=1,
            ),
            RoleDefinition(
                id="VILLAGER",
                name="Villager",
                team=Team.VILLAGER,
                color=color,
                constraints=RoleConstraints(default=VILLAGER_DEFAULT_SENTINEL),
                description="",
                priority=2,
            ),
        ]
    )


def test_five_players_two_mafia_is_clean() -> None:
    state = validate_role_configuration({"MAFIA": 2}, 5)

    assert state.is_valid
    assert not state.has_errors
    assert not state.has_warnings
    assert state.villager_count == 3
    assert state.warnings == ()
    assert not state.requires_confirmation


def test_police_above_maximum_reports_single_error() -> None:
    state = validate_role_configuration({"POLICE": 3}, 10)

    assert not state.is_valid
    assert len(state.errors) == 1
    error = state.errors[0]
    assert error.severity is Severity.ERROR
    assert error.rule_type == "IndividualMinMaxRule"
    assert "Police" in error.message
    assert "3" in error.message and "2" in error.message
    assert error.message.startswith("Police count (3) exceeds maximum (2).")
    assert error.details["max"] == 2
    assert state.villager_count == 7


def test_all_mafia_is_valid_with_one_warning() -> None:
    state = validate_role_configuration({"MAFIA": 5}, 5)

    assert state.is_valid
    assert state.villager_count == 0
    assert len(state.warnings) == 1
    assert state.warnings[0].severity is Severity.WARNING
    assert "0 villagers" in state.warnings[0].message
    assert state.requires_confirmation


def test_zero_villager_warning_deduplicated_across_rules() -> None:
    state = validate_role_configuration({"MAFIA": 3, "POLICE": 1, "DOCTOR": 1}, 5)

    assert _rule_types(state.warnings) == ["MinimumVillagersRule"]


def test_all_special_rules_alone_still_reports() -> None:
    rules = [rule for rule in VALIDATION_RULES if rule.__name__ != "minimum_villagers_rule"]
    state = validate_role_configuration({"MAFIA": 4}, 4, rules=rules)

    assert _rule_types(state.warnings) == ["AllSpecialRolesRule"]


def test_exceeding_player_count_is_error() -> None:
    state = validate_role_configuration({"MAFIA": 6}, 5)

    assert not state.is_valid
    assert "TotalRoleCountRule" in _rule_types(state.errors)
    assert "MinimumVillagersRule" in _rule_types(state.errors)
    assert state.villager_count == -1
    assert state.warnings == ()
    assert not state.requires_confirmation


def test_total_role_message_reports_excess() -> None:
    state = validate_role_configuration({"MAFIA": 4, "POLICE": 2, "DOCTOR": 2}, 6)

    total = next(error for error in state.errors if error.rule_type == "TotalRoleCountRule")
    assert total.message == (
        "Total roles (8) cannot exceed total players (6). Reduce role counts by 2."
    )


def test_negative_count_reported_by_name() -> None:
    state = validate_role_configuration({"DOCTOR": -1}, 5)

    assert not state.is_valid
    negative = state.errors[0]
    assert negative.rule_type == "NegativeCountRule"
    assert negative.message == "Doctor count cannot be negative (currently: -1)"


def test_rules_do_not_short_circuit() -> None:
    state = validate_role_configuration({"POLICE": 3, "DOCTOR": 3, "MAFIA": 2}, 6)

    assert _rule_types(state.errors) == [
        "TotalRoleCountRule",
        "IndividualMinMaxRule",
        "MinimumVillagersRule",
    ]


def test_low_villager_minimum_produces_warning() -> None:
    state = validate_role_configuration({"MAFIA": 3}, 5, min_villagers=3)

    assert state.is_valid
    assert len(state.warnings) == 1
    assert state.warnings[0].message.startswith("Configuration leaves only 2 villager(s).")
    assert state.requires_confirmation


def test_villager_cannot_be_configured() -> None:
    state = validate_role_configuration({"VILLAGER": 3}, 5)

    assert not state.is_valid
    assert _rule_types(state.errors) == ["UnknownRoleRule"]
    assert "calculated automatically" in state.errors[0].message
    assert state.villager_count == 5


def test_unknown_and_miscased_roles_are_errors() -> None:
    unknown = validate_role_configuration({"WEREWOLF": 1}, 5)
    miscased = validate_role_configuration({"mafia": 1}, 5)

    assert unknown.errors[0].message == 'Unknown role "WEREWOLF"'
    assert miscased.errors[0].message == 'Unknown role "mafia". Did you mean "MAFIA"?'


def test_non_integer_count_is_error_not_exception() -> None:
    state = validate_role_configuration({"MAFIA": 1.5}, 5)  # type: ignore[dict-item]

    assert not state.is_valid
    assert _rule_types(state.errors) == ["WholeNumberCountRule"]
    assert state.villager_count == 5


@pytest.mark.parametrize("total_players", [0, -3, MAX_PLAYERS + 1])
def test_player_count_out_of_range(total_players: int) -> None:
    state = validate_role_configuration({}, total_players)

    assert not state.is_valid
    assert "PlayerCountRule" in _rule_types(state.errors)


def test_validation_is_idempotent() -> None:
    config = {"MAFIA": 2, "POLICE": 1}

    first = validate_role_configuration(config, 7)
    second = validate_role_configuration(config, 7)

    assert first == second
    assert first.to_dict() == second.to_dict()


def test_validation_does_not_mutate_configuration() -> None:
    config = {"MAFIA": 2, "POLICE": 3}
    validate_role_configuration(config, 5)
    assert config == {"MAFIA": 2, "POLICE": 3}


def test_custom_rule_appended_without_affecting_builtins() -> None:
    def police_needs_doctor_rule(
        role_config: RoleConfiguration, total_players: int, registry: RoleRegistry
    ) -> Optional[ValidationResult]:
        if role_config.get("POLICE", 0) and not role_config.get("DOCTOR", 0):
            return ValidationResult(
                is_valid=False,
                severity=Severity.WARNING,
                rule_type="PoliceNeedsDoctorRule",
                message="Police without a Doctor",
            )
        return None

    rules = (*VALIDATION_RULES, police_needs_doctor_rule)
    state = validate_role_configuration({"MAFIA": 1, "POLICE": 1}, 6, rules=rules)

    assert state.is_valid
    assert _rule_types(state.warnings) == ["PoliceNeedsDoctorRule"]
    assert state.requires_confirmation


def test_custom_registry_limits_mafia() -> None:
    registry = _capped_mafia_registry(max_mafia=2)

    allowed = validate_role_configuration({"MAFIA": 2}, 5, registry=registry)
    too_many = validate_role_configuration({"MAFIA": 3}, 5, registry=registry)
    too_few = validate_role_configuration({}, 5, registry=registry)

    assert allowed.is_valid
    assert too_many.errors[0].message.startswith("Mafia count (3) exceeds maximum (2).")
    assert too_few.errors[0].message == "Mafia count (0) is below minimum (1)"


def test_calculate_villager_count() -> None:
    assert calculate_villager_count({"MAFIA": 5, "POLICE": 1, "DOCTOR": 1}, 20) == 13
    assert calculate_villager_count({}, 4) == 4
    assert calculate_villager_count({"MAFIA": 5}, 3) == -2


def test_messages_lists_errors_before_warnings() -> None:
    state = validate_role_configuration({"POLICE": 3, "MAFIA": 2}, 5)
    assert state.messages[0].startswith("Police count (3) exceeds maximum (2).")
    assert len(state.messages) == len(state.errors) + len(state.warnings)


@pytest.mark.parametrize("role_config", [None, ["MAFIA"], "MAFIA", 3])
def test_non_mapping_configuration_reported_not_raised(role_config: object) -> None:
    state = validate_role_configuration(role_config, 5)  # type: ignore[arg-type]

    assert not state.is_valid
    assert state.errors[0].rule_type == "ConfigurationShapeRule"
    assert state.errors[0].message == "Role configuration must be a mapping of role id to count"
    assert _rule_types(state.errors) == ["ConfigurationShapeRule"]
    assert state.villager_count == 5


def test_min_villagers_applies_to_custom_rule_sequence() -> None:
    def always_passes_rule(
        role_config: RoleConfiguration, total_players: int, registry: RoleRegistry
    ) -> Optional[ValidationResult]:
        return None

    state = validate_role_configuration(
        {"MAFIA": 3}, 5, min_villagers=3, rules=(*VALIDATION_RULES, always_passes_rule)
    )

    assert _rule_types(state.warnings) == ["MinimumVillagersRule"]
    assert state.warnings[0].message.startswith("Configuration leaves only 2 villager(s).")


def test_min_max_rule_names_every_offending_role() -> None:
    state = validate_role_configuration({"POLICE": 3, "DOCTOR": 4}, 10)

    assert _rule_types(state.errors) == ["IndividualMinMaxRule"]
    message = state.errors[0].message
    assert "Police count (3) exceeds maximum (2)." in message
    assert "Doctor count (4) exceeds maximum (2)." in message
    details = state.errors[0].details
    assert details["role_id"] == "POLICE"
    assert [violation["role_id"] for violation in details["violations"]] == ["POLICE", "DOCTOR"]


def test_negative_rule_names_every_offending_role() -> None:
    state = validate_role_configuration({"MAFIA": -1, "DOCTOR": -2}, 5)

    negative = state.errors[0]
    assert negative.rule_type == "NegativeCountRule"
    assert negative.message == (
        "Mafia count cannot be negative (currently: -1) "
        "Doctor count cannot be negative (currently: -2)"
    )
    assert len(negative.details["violations"]) == 2
