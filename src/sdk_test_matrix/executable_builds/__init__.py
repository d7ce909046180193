"""Executable build exports."""

from .go_builds import (
    BuildError,
    CommandRunner,
    ServiceBinary,
    ensure_service_executable,
    run_checked_command,
)

__all__ = [
    "BuildError",
    "CommandRunner",
    "ServiceBinary",
    "ensure_service_executable",
    "run_checked_command",
]
