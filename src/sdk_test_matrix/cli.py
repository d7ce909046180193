"""Command line interface entry point."""

from __future__ import annotations

import sys

import click

from sdk_test_matrix.configuration import (
    DEFAULT_CONFIG_FILENAME,
    ConfigurationError,
    load_configuration,
    write_placeholder_configuration,
)
from sdk_test_matrix.matrix_orchestration import (
    RunExecutionError,
    RunRequest,
    execute_matrix_run,
)
from sdk_test_matrix.network_probe import NetworkProbe, inspect_endpoint
from sdk_test_matrix.service_control import AUTHORITY_NAME, PEER_NAME, FatalSetupError
from sdk_test_matrix.test_dispatch import TEST_REGISTRY, normalize_identifier

_MAX_EXIT_STATUS = 255


class CliError(Exception):
    """Custom CLI error."""


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="sdk-test-matrix")
def cli() -> None:
    """Run the node SDK unit tests across the TLS x deploy-mode matrix."""


@cli.command(name="generate-config")
@click.option(
    "--output",
    "output_path",
    required=False,
    default=DEFAULT_CONFIG_FILENAME,
    show_default=True,
    type=click.Path(path_type=str),
    help="Path to the YAML harness configuration template to write",
)
def generate_config(output_path: str) -> None:
    """Generate a YAML harness configuration with guidance comments."""
    try:
        resolved_output = write_placeholder_configuration(output_path)
    except (FileExistsError, OSError) as exc:
        raise CliError(str(exc)) from exc
    click.echo(str(resolved_output))


@cli.command(name="list-tests")
def list_tests() -> None:
    """List the unit tests the harness knows how to run."""
    for test_case in TEST_REGISTRY.values():
        line = test_case.identifier
        if test_case.required_chaincode is not None:
            chaincode = test_case.required_chaincode
            line += f"  chaincode={chaincode.source_name} id={chaincode.chaincode_id}"
        if test_case.skip_rule is not None:
            line += f"  skip-with-tls ({test_case.skip_rule.reason})"
        click.echo(line)


@cli.command(name="check-network")
@click.option(
    "--config",
    "config_path",
    required=False,
    type=click.Path(path_type=str),
    help="Path to YAML harness configuration file",
)
def check_network(config_path: str | None) -> None:
    """Report where the membership authority and peer live and whether they listen."""
    try:
        settings = load_configuration(config_path)
    except ConfigurationError as exc:
        raise CliError(str(exc)) from exc

    probe = NetworkProbe()
    unusable = []
    for name, endpoint in ((AUTHORITY_NAME, settings.authority), (PEER_NAME, settings.peer)):
        status = inspect_endpoint(name, endpoint, probe)
        if status.address is None:
            click.echo(f"{name} {endpoint}: {status.error}")
        else:
            locality = "local" if status.is_local else "remote"
            reachability = "reachable" if status.reachable else "unreachable"
            click.echo(f"{name} {endpoint} ({status.address}): {locality}, {reachability}")
        if not status.usable:
            unusable.append(f"{name} ({endpoint})")
    if unusable:
        raise CliError(f"unusable endpoints: {', '.join(unusable)}")


@cli.command(name="run")
@click.argument("tests", nargs=-1)
@click.option(
    "--config",
    "config_path",
    required=False,
    type=click.Path(path_type=str),
    help="Path to YAML harness configuration file",
)
@click.option(
    "--log-dir",
    "log_dir",
    required=False,
    type=click.Path(path_type=str),
    help="Directory for the run transcript and service logs (recreated on every run)",
)
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Reject test identifiers that have no dispatch entry instead of skipping them.",
)
@click.option(
    "--no-report",
    is_flag=True,
    default=False,
    help="Do not write the results workbook.",
)
@click.pass_context
def run_tests(
    ctx: click.Context,
    tests: tuple[str, ...],
    config_path: str | None,
    log_dir: str | None,
    strict: bool,
    no_report: bool,
) -> None:
    """Run TESTS (unit test file names; all known tests when omitted) across the matrix.

    The exit status is the number of failed dispatches.
    """
    if strict:
        unknown = [test for test in tests if normalize_identifier(test) not in TEST_REGISTRY]
        if unknown:
            raise click.BadParameter(
                f"no dispatch entry for: {', '.join(unknown)}", param_hint="TESTS"
            )
    try:
        outcome = execute_matrix_run(
            RunRequest(
                test_identifiers=tests,
                config_path=config_path,
                log_dir=log_dir,
                write_report=not no_report,
            )
        )
    except (RunExecutionError, FatalSetupError) as exc:
        raise CliError(str(exc)) from exc

    verdict = "PASSED" if outcome.passed else "FAILED"
    click.echo(
        f"UT tests {verdict}: {outcome.failure_count} of {outcome.dispatch_count} "
        f"dispatches failed; transcript: {outcome.transcript_path}"
    )
    if outcome.report_path is not None:
        click.echo(str(outcome.report_path))
    ctx.exit(min(outcome.failure_count, _MAX_EXIT_STATUS))


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for console_scripts wiring."""
    argv = argv if argv is not None else sys.argv[1:]
    try:
        result = cli.main(args=list(argv), standalone_mode=False)
    except CliError as exc:
        click.echo(str(exc), err=True)
        return 1
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except click.Abort:
        click.echo("Aborted.", err=True)
        return 1
    return result if isinstance(result, int) else 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
