"""Chaincode preparation tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from sdk_test_matrix.chaincode_preparation import ChaincodePreparer, PrepareError
from sdk_test_matrix.configuration.runtime_settings import DeployMode, PathSettings
from sdk_test_matrix.executable_builds import BuildError


class _FakeHandle:
    def __init__(self, pid: int) -> None:
        self.pid = pid


class _FakeSupervisor:
    def __init__(self) -> None:
        self.starts: list[dict] = []
        self.stopped: list[_FakeHandle] = []
        self.patterns: list[str] = []

    def start(self, command, log_path, *, description, env=None, cwd=None):
        self.starts.append(
            {"command": tuple(command), "log_path": log_path, "env": dict(env or {}), "cwd": cwd}
        )
        return _FakeHandle(pid=2000 + len(self.starts))

    def stop(self, handle) -> None:
        self.stopped.append(handle)

    def stop_matching(self, pattern: str) -> list[int]:
        self.patterns.append(pattern)
        return []


def _paths(tmp_path: Path) -> PathSettings:
    gopath = tmp_path / "go"
    fabric_dir = gopath / "src" / "github.com" / "hyperledger" / "fabric"
    sdk_dir = fabric_dir / "sdk" / "node"
    return PathSettings(
        gopath=gopath,
        fabric_dir=fabric_dir,
        sdk_dir=sdk_dir,
        unit_test_dir=sdk_dir / "test" / "unit",
        chaincode_examples_dir=fabric_dir / "examples" / "chaincode" / "go",
        log_dir=tmp_path / "logs",
        node_executable="node",
        go_executable="go",
    )


def _write_fabric_tree(paths: PathSettings, source_name: str) -> Path:
    source = paths.chaincode_examples_dir / source_name
    source.mkdir(parents=True)
    (source / f"{source_name}.go").write_text("package main\n", encoding="utf-8")
    op_vendor = paths.fabric_dir / "vendor" / "github.com" / "op"
    op_vendor.mkdir(parents=True)
    (op_vendor / "go-logging.go").write_text("package logging\n", encoding="utf-8")
    return source


def _preparer(tmp_path: Path, supervisor: _FakeSupervisor, run_command) -> ChaincodePreparer:
    ca_cert = tmp_path / "tlsca.cert"
    ca_cert.write_text("cert", encoding="utf-8")
    return ChaincodePreparer(
        _paths(tmp_path),
        supervisor=supervisor,  # type: ignore[arg-type]
        ca_cert_file=ca_cert,
        peer_port=7051,
        run_command=run_command,
        base_environ={"PATH": "/usr/bin"},
    )


def test_network_deploy_stages_vendored_tree_and_builds_it(tmp_path: Path) -> None:
    paths = _paths(tmp_path)
    _write_fabric_tree(paths, "chaincode_example02")
    captured_calls: list[tuple[tuple[str, ...], Path]] = []
    preparer = _preparer(
        tmp_path, _FakeSupervisor(), lambda command, cwd: captured_calls.append((command, cwd))
    )

    staging = preparer.prepare_for_network_deploy("chaincode_example02", tls_enabled=True)

    assert staging == paths.gopath / "src" / "github.com" / "chaincode_example02"
    assert (staging / "chaincode_example02.go").is_file()
    assert (staging / "tlsca.cert").is_file()
    assert (staging / "vendor" / "github.com" / "hyperledger" / "fabric" / "examples").is_dir()
    assert (staging / "vendor" / "github.com" / "op" / "go-logging.go").is_file()
    assert captured_calls == [(("go", "build"), staging)]


def test_network_deploy_without_tls_leaves_certificate_out(tmp_path: Path) -> None:
    paths = _paths(tmp_path)
    _write_fabric_tree(paths, "asset_management")
    preparer = _preparer(tmp_path, _FakeSupervisor(), lambda command, cwd: None)

    staging = preparer.prepare_for_network_deploy("asset_management", tls_enabled=False)

    assert not (staging / "tlsca.cert").exists()


def test_existing_staging_directory_is_reused(tmp_path: Path) -> None:
    paths = _paths(tmp_path)
    staging = paths.gopath / "src" / "github.com" / "asset_management"
    staging.mkdir(parents=True)
    captured_calls: list[tuple[tuple[str, ...], Path]] = []
    preparer = _preparer(
        tmp_path, _FakeSupervisor(), lambda command, cwd: captured_calls.append((command, cwd))
    )

    assert preparer.prepare_for_network_deploy("asset_management", tls_enabled=False) == staging
    assert captured_calls == []


def test_missing_source_directory_is_a_prepare_error(tmp_path: Path) -> None:
    preparer = _preparer(tmp_path, _FakeSupervisor(), lambda command, cwd: None)

    with pytest.raises(PrepareError, match="directory does not exist"):
        preparer.prepare_for_network_deploy("chaincode_example02", tls_enabled=False)


def test_failed_build_removes_partial_staging_tree(tmp_path: Path) -> None:
    paths = _paths(tmp_path)
    _write_fabric_tree(paths, "chaincode_example02")

    def _failing_build(command: tuple[str, ...], cwd: Path) -> None:
        raise BuildError("Build command failed with exit code 2: go build")

    preparer = _preparer(tmp_path, _FakeSupervisor(), _failing_build)

    with pytest.raises(PrepareError, match="exit code 2"):
        preparer.prepare_for_network_deploy("chaincode_example02", tls_enabled=False)
    assert not preparer.staging_dir("chaincode_example02").exists()


def test_dev_mode_builds_and_launches_chaincode_with_identity(tmp_path: Path) -> None:
    paths = _paths(tmp_path)
    source = _write_fabric_tree(paths, "chaincode_example02")
    supervisor = _FakeSupervisor()
    captured_calls: list[tuple[tuple[str, ...], Path]] = []

    def _fake_build(command: tuple[str, ...], cwd: Path) -> None:
        captured_calls.append((command, cwd))
        (cwd / "chaincode_example02").touch()

    preparer = _preparer(tmp_path, supervisor, _fake_build)

    handle = preparer.launch_in_dev_mode("chaincode_example02", "mycc1")

    assert captured_calls == [(("go", "build"), source)]
    started = supervisor.starts[0]
    assert started["command"] == (str(source / "chaincode_example02"),)
    assert started["log_path"] == tmp_path / "logs" / "chaincode_example02.log"
    assert started["env"]["CORE_CHAINCODE_ID_NAME"] == "mycc1"
    assert started["env"]["CORE_PEER_ADDRESS"] == "localhost:7051"
    assert started["env"]["PATH"] == "/usr/bin"

    preparer.teardown("chaincode_example02", DeployMode.DEV)

    assert supervisor.stopped == [handle]


def test_dev_mode_relaunch_stops_previous_instance(tmp_path: Path) -> None:
    paths = _paths(tmp_path)
    source = _write_fabric_tree(paths, "asset_management_with_roles")
    (source / "asset_management_with_roles").touch()
    supervisor = _FakeSupervisor()
    preparer = _preparer(tmp_path, supervisor, lambda command, cwd: None)

    first = preparer.launch_in_dev_mode("asset_management_with_roles", "mycc3")
    preparer.launch_in_dev_mode("asset_management_with_roles", "mycc4")

    assert supervisor.stopped == [first]


def test_dev_teardown_without_handle_kills_by_executable_path(tmp_path: Path) -> None:
    supervisor = _FakeSupervisor()
    preparer = _preparer(tmp_path, supervisor, lambda command, cwd: None)

    preparer.teardown("asset_management", DeployMode.DEV)

    assert supervisor.patterns == [
        str(_paths(tmp_path).chaincode_examples_dir / "asset_management" / "asset_management")
    ]


def test_net_teardown_leaves_processes_alone(tmp_path: Path) -> None:
    supervisor = _FakeSupervisor()
    preparer = _preparer(tmp_path, supervisor, lambda command, cwd: None)

    preparer.teardown("asset_management", DeployMode.NET)

    assert supervisor.stopped == []
    assert supervisor.patterns == []
