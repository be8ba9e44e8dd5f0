"""Opt-in plain-text audit trail for validations and allocations."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Mapping

if TYPE_CHECKING:
    from .assignment import Assignment
    from .validation import AggregatedValidationState

RECORD_SEPARATOR = "-" * 72
SESSION_DIR_FORMAT = "session_%Y%m%d_%H%M%S"


class AuditLogger:
    """Appends validation and allocation records to a per-session directory.

    A disabled logger never touches the filesystem.
    """

    def __init__(self, enabled: bool = False, base_dir: Path | None = None) -> None:
        self.enabled = enabled
        if enabled:
            root = Path("audit") if base_dir is None else Path(base_dir)
            self.log_dir = root / datetime.now().strftime(SESSION_DIR_FORMAT)
            self.log_dir.mkdir(parents=True, exist_ok=True)

    @property
    def validation_file(self) -> Path:
        return self.log_dir / "validation.log"

    @property
    def assignment_file(self) -> Path:
        return self.log_dir / "assignments.log"

    def _append_record(self, log_file: Path, body: str) -> None:
        if not self.enabled:
            return

        stamp = datetime.now().isoformat(timespec="seconds")
        record = f"{RECORD_SEPARATOR}\n@ {stamp}\n{body}\n"
        with log_file.open("a", encoding="utf-8") as handle:
            handle.write(record)

    def log_validation(
        self,
        role_configuration: Mapping[str, int],
        total_players: int,
        state: AggregatedValidationState,
    ) -> None:
        """Log a validation pass and everything it reported."""
        if not self.enabled:
            return

        lines = [
            "VALIDATION",
            "",
            f"  Total Players: {total_players}",
            f"  Configuration: {dict(role_configuration)}",
            f"  Villagers: {state.villager_count}",
            f"  Valid: {state.is_valid}",
            f"  Requires Confirmation: {state.requires_confirmation}",
        ]
        for result in state.errors + state.warnings:
            lines.append(f"  - [{result.severity.value}] {result.rule_type}: {result.message}")
        self._append_record(self.validation_file, "\n".join(lines))

    def log_assignment(self, assignment: Assignment, *, include_roles: bool = False) -> None:
        """Log an allocation. Individual roles are only written with ``include_roles``."""
        if not self.enabled:
            return

        metadata = assignment.metadata
        lines = [
            "ASSIGNMENT",
            "",
            f"  Assignment ID: {metadata.assignment_id}",
            f"  Created: {metadata.timestamp}",
            f"  Total Players: {metadata.total_players}",
            f"  Role Counts: {dict(metadata.role_counts)}",
            "  Players:",
        ]
        for player in assignment.players:
            suffix = f" -> {player.role.name}" if include_roles else ""
            lines.append(f"    {player.index + 1}. {player.name}{suffix}")
        self._append_record(self.assignment_file, "\n".join(lines))
