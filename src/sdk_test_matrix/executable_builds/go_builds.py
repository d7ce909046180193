"""Locate service executables and build them in place when missing."""

from __future__ import annotations

import logging
import shlex
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

LOGGER = logging.getLogger(__name__)

CommandRunner = Callable[[tuple[str, ...], Path], None]


class BuildError(Exception):
    """Raised when a build command fails."""


@dataclass(frozen=True)
class ServiceBinary:
    """Where a fabric service executable lives and how it is built."""

    name: str
    fabric_dir: Path

    @property
    def release_path(self) -> Path:
        """Output of the regular fabric build."""
        return self.fabric_dir / "build" / "bin" / self.name

    @property
    def source_dir(self) -> Path:
        return self.fabric_dir / self.name

    @property
    def in_place_path(self) -> Path:
        """Output of ``go build`` run inside the source directory."""
        return self.source_dir / self.name

    def locate(self) -> Path | None:
        for candidate in (self.release_path, self.in_place_path):
            if candidate.is_file():
                return candidate
        return None


def ensure_service_executable(
    binary: ServiceBinary,
    *,
    go_executable: str = "go",
    run_command: CommandRunner | None = None,
) -> Path:
    """Return the executable for ``binary``, running ``go build`` when none exists."""
    existing = binary.locate()
    if existing is not None:
        return existing

    LOGGER.info("Building %s...", binary.name)
    command_runner = run_command or run_checked_command
    try:
        command_runner((go_executable, "build"), binary.source_dir)
    except BuildError as exc:
        raise BuildError(f"Build of {binary.name} failed: {exc}") from exc
    if not binary.in_place_path.is_file():
        raise BuildError(
            f"Build of {binary.name} did not produce {binary.in_place_path}"
        )
    return binary.in_place_path


def run_checked_command(command: tuple[str, ...], cwd: Path) -> None:
    """Run one build command and wrap subprocess errors with domain-friendly messages."""
    try:
        subprocess.run(list(command), cwd=cwd, check=True)
    except FileNotFoundError as exc:
        command_text = shlex.join(command)
        raise BuildError(f"Build command or directory not found: {command_text} in {cwd}") from exc
    except subprocess.CalledProcessError as exc:
        command_text = shlex.join(command)
        raise BuildError(
            f"Build command failed with exit code {exc.returncode}: {command_text}"
        ) from exc
