"""Role registry, configuration validation and fair role assignment for Mafia games."""

from .assignment import (
    AssignedPlayer,
    Assignment,
    AssignmentCheck,
    AssignmentMetadata,
    DistributionReport,
    assign_roles,
    fisher_yates_shuffle,
    measure_distribution,
    reassign_roles,
    verify_assignment,
)
from .audit_log import AuditLogger
from .config_loader import GameFile, load_game_file
from .enums import Severity, Team
from .exceptions import ConfigurationError, EntropyUnavailableError
from .roles import (
    ROLE_DEFINITIONS,
    ROLE_REGISTRY,
    RoleColor,
    RoleConstraints,
    RoleCountCheck,
    RoleDefinition,
    RoleRegistry,
    get_role_by_id,
    get_roles,
    get_roles_by_team,
    get_special_roles,
    validate_role_count,
    villager_role,
)
from .validation import (
    VALIDATION_RULES,
    AggregatedValidationState,
    ValidationResult,
    calculate_villager_count,
    validate_role_configuration,
)

__all__ = [
    "AggregatedValidationState",
    "AssignedPlayer",
    "Assignment",
    "AssignmentCheck",
    "AssignmentMetadata",
    "AuditLogger",
    "ConfigurationError",
    "DistributionReport",
    "EntropyUnavailableError",
    "GameFile",
    "ROLE_DEFINITIONS",
    "ROLE_REGISTRY",
    "RoleColor",
    "RoleConstraints",
    "RoleCountCheck",
    "RoleDefinition",
    "RoleRegistry",
    "Severity",
    "Team",
    "VALIDATION_RULES",
    "ValidationResult",
    "assign_roles",
    "calculate_villager_count",
    "fisher_yates_shuffle",
    "get_role_by_id",
    "get_roles",
    "get_roles_by_team",
    "get_special_roles",
    "load_game_file",
    "measure_distribution",
    "reassign_roles",
    "validate_role_configuration",
    "validate_role_count",
    "verify_assignment",
    "villager_role",
]
