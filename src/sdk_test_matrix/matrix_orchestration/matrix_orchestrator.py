"""TLS x deploy-mode matrix driver."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence

from sdk_test_matrix.configuration.runtime_settings import (
    Configuration,
    DeployMode,
    RunConfiguration,
)
from sdk_test_matrix.service_control import FatalSetupError, ServiceController, peer_arguments
from sdk_test_matrix.test_dispatch import RunResult, TestRunner

from .keystore_purge import KeystorePurger

LOGGER = logging.getLogger(__name__)

_SEPARATOR = "*" * 62


class MatrixOrchestrator:  # pylint: disable=too-many-instance-attributes
    """Runs the test set once per matrix cell, restarting services between cells."""

    def __init__(
        self,
        settings: Configuration,
        *,
        authority: ServiceController,
        peer: ServiceController,
        test_runner: TestRunner,
        result: RunResult,
        keystore: KeystorePurger,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._settings = settings
        self._authority = authority
        self._peer = peer
        self._test_runner = test_runner
        self._result = result
        self._keystore = keystore
        self._sleep = sleep

    def run_configurations(self, tls_enabled: bool) -> list[RunConfiguration]:
        """Cells for one TLS setting; dev mode needs a locally managed peer."""
        configurations = []
        for mode in self._settings.matrix.modes:
            if mode is DeployMode.DEV and not self._peer.is_local:
                LOGGER.info("peer is remote; skipping dev mode")
                continue
            waits = self._settings.waits[mode]
            configurations.append(
                RunConfiguration(
                    tls_enabled=tls_enabled,
                    deploy_mode=mode,
                    deploy_wait=waits.deploy_seconds,
                    invoke_wait=waits.invoke_seconds,
                )
            )
        return configurations

    def run(self, test_set: Sequence[str]) -> RunResult:
        """Drive every matrix cell; on any error or interrupt, stop managed services first."""
        self._keystore.purge_unless_persisted()
        try:
            for tls_enabled in self._settings.matrix.tls_values:
                self._run_tls_iteration(tls_enabled, test_set)
        except FatalSetupError:
            self._stop_managed_services()
            raise
        except BaseException:
            LOGGER.error("run interrupted; stopping managed services")
            self._stop_managed_services()
            raise
        return self._result

    def _run_tls_iteration(self, tls_enabled: bool, test_set: Sequence[str]) -> None:
        LOGGER.info(
            "Running TLS-enabled tests..." if tls_enabled else "Running NON-TLS-enabled tests..."
        )
        tls = self._settings.tls
        for controller in (self._authority, self._peer):
            controller.configure_tls(
                tls_enabled, tls.ca_cert_file, tls.ca_key_file, tls.server_host_override
            )

        if self._authority.is_local:
            self._authority.restart()
            self._authority.publish_tls_material(self._settings.paths.fabric_dir)

        for configuration in self.run_configurations(tls_enabled):
            self._run_cell(configuration, test_set)

        self._stop_managed_services()
        self._keystore.purge_unless_persisted()

    def _run_cell(self, configuration: RunConfiguration, test_set: Sequence[str]) -> None:
        mode = configuration.deploy_mode.value
        LOGGER.info("Begin running tests in %s mode ...", mode)
        if self._peer.is_local:
            self._peer.restart(peer_arguments(configuration.deploy_mode))

        for identifier in test_set:
            self._test_runner.dispatch(identifier, configuration)
            LOGGER.info(_SEPARATOR)

        LOGGER.info("End running tests in %s mode", mode)
        self._sleep(self._settings.timing.mode_cooldown_seconds)

    def _stop_managed_services(self) -> None:
        if self._peer.is_local:
            self._peer.stop()
        if self._authority.is_local:
            self._authority.stop()
