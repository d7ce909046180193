"""Chaincode staging for net mode and standalone launch for dev mode."""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Mapping
from pathlib import Path

from sdk_test_matrix.configuration.runtime_settings import DeployMode, PathSettings
from sdk_test_matrix.executable_builds import BuildError, CommandRunner, run_checked_command
from sdk_test_matrix.process_supervision import ProcessHandle, ProcessSupervisor

LOGGER = logging.getLogger(__name__)


class PrepareError(Exception):
    """Raised when chaincode cannot be staged or built for a test."""


class ChaincodePreparer:
    """Gets sample chaincode ready before a test and cleans up after it."""

    def __init__(
        self,
        paths: PathSettings,
        *,
        supervisor: ProcessSupervisor,
        ca_cert_file: Path,
        peer_port: int,
        run_command: CommandRunner | None = None,
        base_environ: Mapping[str, str] | None = None,
    ) -> None:
        self._paths = paths
        self._supervisor = supervisor
        self._ca_cert_file = ca_cert_file
        self._peer_port = peer_port
        self._run_command = run_command or run_checked_command
        self._base_environ = dict(os.environ if base_environ is None else base_environ)
        self._dev_handles: dict[str, ProcessHandle] = {}

    def source_dir(self, source_name: str) -> Path:
        return self._paths.chaincode_examples_dir / source_name

    def staging_dir(self, source_name: str) -> Path:
        """Where net-mode chaincode is assembled for deployment by the peer."""
        return self._paths.gopath / "src" / "github.com" / source_name

    def prepare_for_network_deploy(self, source_name: str, *, tls_enabled: bool) -> Path:
        """Copy, vendor and build ``source_name`` under the staging directory."""
        staging = self.staging_dir(source_name)
        if staging.exists():
            LOGGER.info("%s already exists", staging)
            return staging

        source = self.source_dir(source_name)
        if not source.is_dir():
            raise PrepareError(f"directory does not exist: {source}")

        try:
            self._assemble_staging_tree(source_name, source, staging, tls_enabled=tls_enabled)
            LOGGER.info("Building chaincode...")
            self._run_command((self._paths.go_executable, "build"), staging)
        except (OSError, BuildError) as exc:
            shutil.rmtree(staging, ignore_errors=True)
            raise PrepareError(f"Cannot prepare {source_name} for deploy: {exc}") from exc
        return staging

    def launch_in_dev_mode(self, source_name: str, chaincode_id: str) -> ProcessHandle:
        """Build ``source_name`` if needed and run it as a standalone chaincode process."""
        source = self.source_dir(source_name)
        if not source.is_dir():
            raise PrepareError(f"directory does not exist: {source}")

        executable = source / source_name
        if not executable.is_file():
            try:
                self._run_command((self._paths.go_executable, "build"), source)
            except BuildError as exc:
                raise PrepareError(f"Cannot build {source_name}: {exc}") from exc

        previous = self._dev_handles.pop(source_name, None)
        if previous is not None:
            self._supervisor.stop(previous)

        environment = dict(self._base_environ)
        environment["CORE_CHAINCODE_ID_NAME"] = chaincode_id
        environment["CORE_PEER_ADDRESS"] = f"localhost:{self._peer_port}"
        handle = self._supervisor.start(
            (str(executable),),
            self._paths.log_dir / f"{source_name}.log",
            description=source_name,
            env=environment,
            cwd=source,
        )
        self._dev_handles[source_name] = handle
        return handle

    def teardown(self, source_name: str, mode: DeployMode) -> None:
        if mode is DeployMode.NET:
            LOGGER.info("finished %s", source_name)
            return

        LOGGER.info("stopping %s", source_name)
        handle = self._dev_handles.pop(source_name, None)
        if handle is not None:
            self._supervisor.stop(handle)
        else:
            self._supervisor.stop_matching(str(self.source_dir(source_name) / source_name))

    def _assemble_staging_tree(
        self, source_name: str, source: Path, staging: Path, *, tls_enabled: bool
    ) -> None:
        staging.mkdir(parents=True)
        shutil.copy(source / f"{source_name}.go", staging)
        if tls_enabled:
            shutil.copy(self._ca_cert_file, staging)

        vendor = staging / "vendor" / "github.com"
        (vendor / "hyperledger").mkdir(parents=True)
        LOGGER.info("copying %s; please wait ...", self._paths.fabric_dir)
        shutil.copytree(self._paths.fabric_dir, vendor / "hyperledger" / "fabric", symlinks=True)
        shutil.copytree(
            self._paths.fabric_dir / "vendor" / "github.com" / "op",
            vendor / "op",
            symlinks=True,
        )
