"""CLI smoke tests."""

from click.testing import CliRunner
from sdk_test_matrix.cli import cli


def test_cli_displays_help() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    for command in ("run", "list-tests", "check-network", "generate-config"):
        assert command in result.output


def test_list_tests_shows_chaincode_and_skip_rules() -> None:
    result = CliRunner().invoke(cli, ["list-tests"])

    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert lines[0] == "registrar.js"
    assert "chain-tests.js  chaincode=chaincode_example02 id=mycc1" in lines
    assert any(
        line.startswith("asset-mgmt-with-roles.js") and "FAB-392" in line for line in lines
    )
