"""Dispatch of test identifiers to their pre-conditions, invocation and clean-up."""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path

from sdk_test_matrix.chaincode_preparation import ChaincodePreparer, PrepareError
from sdk_test_matrix.configuration.runtime_settings import (
    Configuration,
    DeployMode,
    RunConfiguration,
)
from sdk_test_matrix.process_supervision import StartError

from .dispatch_outcomes import DispatchRecord, RunResult
from .test_cases import (
    TEST_REGISTRY,
    ChaincodeRequirement,
    TestCase,
    normalize_identifier,
)

LOGGER = logging.getLogger(__name__)
_TEST_OUTPUT_LOGGER = logging.getLogger("sdk_test_matrix.unit_test_output")

TestCommandRunner = Callable[[Sequence[str], Mapping[str, str], Path], int]

_SYSTEM_NODE_PATHS = (
    "/usr/local/lib/node_modules",
    "/usr/lib/nodejs",
    "/usr/lib/node_modules",
    "/usr/share/javascript",
)
_COMMAND_NOT_FOUND_EXIT_CODE = 127


class TestRunner:
    """Runs registered unit tests against the network of the current matrix cell."""

    __test__ = False

    def __init__(
        self,
        settings: Configuration,
        *,
        preparer: ChaincodePreparer,
        result: RunResult,
        registry: Mapping[str, TestCase] | None = None,
        run_test_command: TestCommandRunner | None = None,
        base_environ: Mapping[str, str] | None = None,
    ) -> None:
        self._settings = settings
        self._preparer = preparer
        self._result = result
        self._registry = TEST_REGISTRY if registry is None else registry
        self._run_test_command = run_test_command or stream_test_command
        self._base_environ = dict(os.environ if base_environ is None else base_environ)

    def dispatch(self, identifier: str, configuration: RunConfiguration) -> DispatchRecord:
        """Run one test in ``configuration`` and record its outcome."""
        name = normalize_identifier(identifier)
        test_case = self._registry.get(name)
        if test_case is None:
            LOGGER.warning("NO case statement for %s, skipping...", name)
            record = DispatchRecord.unknown(configuration, name)
        elif test_case.skip_rule is not None and test_case.skip_rule.applies(configuration):
            LOGGER.info("%s; SKIPPING %s", test_case.skip_rule.reason, name)
            record = DispatchRecord.skipped(configuration, name, test_case.skip_rule.reason)
        else:
            record = self._run_test_case(test_case, configuration)

        if record.is_failure:
            LOGGER.error("*******  %s failed!  *******", name)
        self._result.record(record)
        return record

    def test_environment(self, configuration: RunConfiguration) -> dict[str, str]:
        """Environment the unit test scripts read their settings from."""
        settings = self._settings
        node_path = [str(settings.paths.sdk_dir), str(settings.paths.sdk_dir / "lib")]
        node_path.extend(_SYSTEM_NODE_PATHS)

        environment = dict(self._base_environ)
        environment.update(
            {
                "NODE_PATH": os.pathsep.join(node_path),
                "SDK_TLS": "1" if configuration.tls_enabled else "0",
                "SDK_DEPLOY_MODE": configuration.deploy_mode.value,
                "SDK_DEPLOYWAIT": str(configuration.deploy_wait),
                "SDK_INVOKEWAIT": str(configuration.invoke_wait),
                "SDK_MEMBERSRVC_ADDRESS": str(settings.authority),
                "SDK_PEER_ADDRESS": str(settings.peer),
                "SDK_KEYSTORE_PERSIST": "1" if settings.keystore.persist else "0",
                "SDK_CA_CERT_HOST": settings.tls.server_host_override,
            }
        )
        if configuration.tls_enabled:
            environment["SDK_CA_CERT_FILE"] = str(settings.tls.ca_cert_file)
        optional_values = {
            "SDK_KEYSTORE": settings.keystore.directory,
            "SDK_DEFAULT_USER": settings.credentials.default_user,
            "SDK_DEFAULT_SECRET": settings.credentials.default_secret,
            "SDK_CHAINCODE_PATH": settings.chaincode.path,
            "SDK_CHAINCODE_ID": settings.chaincode.chaincode_id,
            "GRPC_SSL_CIPHER_SUITES": settings.tls.cipher_suites,
        }
        for key, value in optional_values.items():
            if value is not None:
                environment[key] = str(value)
        return environment

    def _run_test_case(
        self, test_case: TestCase, configuration: RunConfiguration
    ) -> DispatchRecord:
        LOGGER.info("BEGIN running %s ...", test_case.description)
        requirement = test_case.required_chaincode
        try:
            if requirement is not None:
                self._prepare_chaincode(requirement, configuration)
        except (PrepareError, StartError) as exc:
            LOGGER.error("setup failed: %s", exc)
            record = DispatchRecord.setup_failed(configuration, test_case.identifier, exc)
        else:
            try:
                exit_code = self._run_test_command(
                    (
                        self._settings.paths.node_executable,
                        str(self._settings.paths.unit_test_dir / test_case.identifier),
                    ),
                    self.test_environment(configuration),
                    self._settings.paths.unit_test_dir,
                )
            finally:
                if requirement is not None:
                    self._preparer.teardown(requirement.source_name, configuration.deploy_mode)
            record = DispatchRecord.completed(configuration, test_case.identifier, exit_code)
        LOGGER.info("END running %s", test_case.description)
        return record

    def _prepare_chaincode(
        self, requirement: ChaincodeRequirement, configuration: RunConfiguration
    ) -> None:
        if configuration.deploy_mode is DeployMode.NET:
            staging = self._preparer.prepare_for_network_deploy(
                requirement.source_name, tls_enabled=configuration.tls_enabled
            )
            if not staging.is_dir():
                raise PrepareError(f"staged chaincode missing: {staging}")
        else:
            self._preparer.launch_in_dev_mode(requirement.source_name, requirement.chaincode_id)


def stream_test_command(command: Sequence[str], env: Mapping[str, str], cwd: Path) -> int:
    """Run a unit test, copying its output line by line into the run transcript."""
    try:
        process = subprocess.Popen(  # pylint: disable=consider-using-with
            list(command),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            stdin=subprocess.DEVNULL,
            env=dict(env),
            cwd=cwd if cwd.is_dir() else None,
            text=True,
            errors="replace",
        )
    except OSError as exc:
        LOGGER.error("cannot run %s: %s", command[0], exc)
        return _COMMAND_NOT_FOUND_EXIT_CODE

    with process:
        assert process.stdout is not None
        for line in process.stdout:
            _TEST_OUTPUT_LOGGER.info("%s", line.rstrip("\n"))
    return process.returncode
