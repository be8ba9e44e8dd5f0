"""CLI helper for validating a game file and dealing roles for a private reveal."""

import sys
from getpass import getpass

from mafia_roles.assignment import assign_roles
from mafia_roles.audit_log import AuditLogger
from mafia_roles.config_loader import load_game_file
from mafia_roles.exceptions import ConfigurationError, EntropyUnavailableError


def main() -> None:
    """Validate the configured roles, confirm warnings, then reveal roles one by one."""
    args = [arg for arg in sys.argv[1:] if arg != "--yes"]
    auto_confirm = "--yes" in sys.argv[1:]
    if len(args) != 1:
        print("Usage: python run_allocation.py <game-file> [--yes]")
        print("Example: python run_allocation.py game.yaml")
        sys.exit(1)

    config_path = args[0]

    try:
        game = load_game_file(config_path)
    except (ConfigurationError, FileNotFoundError) as exc:
        print(f"Error loading game file: {exc}")
        sys.exit(1)

    state = game.validate()
    log = AuditLogger(enabled=game.audit_log_enabled)
    log.log_validation(game.role_configuration, game.player_count, state)
    if log.enabled:
        print(f"Audit logging enabled: {log.log_dir}")

    print("\n=== Role Allocation ===")
    print(f"Game file: {config_path}")
    print(f"Players: {game.player_count}")
    for role_id, count in game.role_configuration.items():
        print(f"  {role_id.title()}: {count}")
    print(f"  Villager: {state.villager_count}")
    print()

    if not state.is_valid:
        print("Configuration is invalid:")
        for error in state.errors:
            print(f"  - {error.message}")
        sys.exit(1)

    if state.requires_confirmation:
        print("Please review:")
        for warning in state.warnings:
            print(f"  - {warning.message}")
        if not auto_confirm:
            answer = input("Continue anyway? [y/N] ").strip().lower()
            if answer not in ("y", "yes"):
                print("Allocation cancelled")
                sys.exit(0)

    try:
        assignment = assign_roles(game.player_names, game.role_configuration)
    except (ConfigurationError, EntropyUnavailableError) as exc:
        print(f"Error assigning roles: {exc}")
        sys.exit(1)

    log.log_assignment(assignment)

    print("\nPass the device to each player in turn.")
    try:
        for player in assignment.players:
            getpass(f"\n{player.name}, press Enter to see your role...")
            print(f"  You are: {player.role.name} ({player.role.description})")
            getpass("  Press Enter to hide it and pass the device on...")
            print("\n" * 40)
            assignment = assignment.with_revealed(player.index)
    except KeyboardInterrupt:
        print("\n\nReveal interrupted by user")
        sys.exit(0)

    if assignment.all_revealed:
        print("=== All roles revealed ===")
        print(f"Assignment: {assignment.assignment_id}")


if __name__ == "__main__":
    main()
