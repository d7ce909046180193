"""Background process start, liveness check and termination."""

from __future__ import annotations

import logging
import os
import shlex
import signal
import subprocess
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO

import psutil

LOGGER = logging.getLogger(__name__)

_REAP_TIMEOUT_SECONDS = 10.0


class StartError(Exception):
    """Raised when a supervised process exits during its liveness grace period."""


@dataclass
class ProcessHandle:
    """A process started by the supervisor."""

    description: str
    command: tuple[str, ...]
    log_path: Path
    process: subprocess.Popen = field(repr=False)
    _log_file: IO[bytes] | None = field(default=None, repr=False)

    @property
    def pid(self) -> int:
        return self.process.pid

    def is_alive(self) -> bool:
        return self.process.poll() is None

    def close_log(self) -> None:
        if self._log_file is not None and not self._log_file.closed:
            self._log_file.close()


class ProcessSupervisor:
    """Starts detached processes with their output appended to a log file."""

    def __init__(
        self,
        *,
        liveness_grace_seconds: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._grace = liveness_grace_seconds
        self._sleep = sleep

    def start(
        self,
        command: Sequence[str],
        log_path: Path | str,
        *,
        description: str,
        env: Mapping[str, str] | None = None,
        cwd: Path | str | None = None,
    ) -> ProcessHandle:
        """Launch ``command`` and confirm it survives the grace period."""
        resolved_log = Path(log_path)
        resolved_log.parent.mkdir(parents=True, exist_ok=True)
        log_file = resolved_log.open("ab")
        LOGGER.info("starting %s: %s (log: %s)", description, shlex.join(command), resolved_log)
        try:
            process = subprocess.Popen(  # pylint: disable=consider-using-with
                list(command),
                stdout=log_file,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
                env=dict(env) if env is not None else None,
                cwd=cwd,
                start_new_session=True,
            )
        except OSError as exc:
            log_file.close()
            raise StartError(f"{description} failed to start: {exc}") from exc

        handle = ProcessHandle(
            description=description,
            command=tuple(command),
            log_path=resolved_log,
            process=process,
            _log_file=log_file,
        )
        self._sleep(self._grace)
        if not handle.is_alive():
            handle.close_log()
            raise StartError(
                f"{description} failed to start (exit code {process.returncode}); "
                f"see {resolved_log}"
            )
        LOGGER.info("%s is started (pid %s)", description, handle.pid)
        return handle

    def stop(self, handle: ProcessHandle) -> None:
        """Kill a started process together with its process group, then reap it."""
        if handle.is_alive():
            LOGGER.info("killing pid %s running %s", handle.pid, handle.description)
        # Started with start_new_session, so the process group id is the leader's pid.
        try:
            os.killpg(handle.pid, signal.SIGKILL)
        except ProcessLookupError:
            LOGGER.debug("process group %s of %s already gone", handle.pid, handle.description)
        except PermissionError as exc:
            LOGGER.warning("cannot kill process group %s: %s", handle.pid, exc)
            if handle.is_alive():
                handle.process.kill()
        try:
            handle.process.wait(timeout=_REAP_TIMEOUT_SECONDS)
        except subprocess.TimeoutExpired:
            LOGGER.error("%s (pid %s) did not exit after kill", handle.description, handle.pid)
        handle.close_log()

    def stop_matching(self, pattern: str) -> list[int]:
        """Kill every process whose command line contains ``pattern``.

        Used only to clear leftovers from earlier runs that this supervisor
        holds no handle for.
        """
        own_pid = os.getpid()
        killed: list[int] = []
        for process in psutil.process_iter(["pid", "cmdline"]):
            try:
                cmdline = process.info["cmdline"]
                if not cmdline or process.info["pid"] == own_pid:
                    continue
                if pattern not in " ".join(cmdline):
                    continue
                LOGGER.info("killing PID %s running %s ...", process.info["pid"], pattern)
                process.kill()
                killed.append(process.info["pid"])
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                continue
        return killed
