import logging
import os
from typing import List, Optional

import click
import sentry_sdk
import typer
from pythonjsonlogger import jsonlogger
from typer.core import TyperCommand

from .config import Settings
from .errors import UsageError, VerificationFailed, ZkBuildError
from .pipeline import run_pipeline
from .validate import validate

PROG = "zkbuild"

HELP = """Build and test circom circuits with witness calculation and optional
proof generation.
"""

EPILOG = """\b
WORKFLOW:
  Without -i and -p:
    - Compiles circuit to C++ with circom
    - Builds witness calculator library and executable
  With -i (no -p):
    - All of the above, plus generates witness from input JSON
  With -i and -p:
    - All of the above, plus:
    - Generates r1cs constraint file
    - Creates or reuses cached zkey file (cached by r1cs MD5)
    - Generates zero-knowledge proof
    - Exports verification key (cached)
    - Verifies the generated proof

\b
OUTPUT DIRECTORY BEHAVIOR:
  WITHOUT -o: a temporary directory is created and REMOVED on exit.
  WITH -o: the directory is created if needed and persists; zkey and
  verification key are cached there for reuse.

\b
REQUIREMENTS:
  circom; cmake, make, nasm (for building);
  snarkjs and prover (rapidsnark) if using -p

\b
EXAMPLES:
  zkbuild -l ~/circomlib/circuits circuit.circom
  zkbuild -l ~/circomlib/circuits -o ./build -i inputs.json circuit.circom
  zkbuild -l ~/circomlib/circuits -o ./build -i inputs.json \\
          -p powersOfTau28_hez_final_18.ptau circuit.circom
"""

class HelpFirstCommand(TyperCommand):
    """Show help as soon as -h/--help appears, ignoring whatever follows."""

    def parse_args(self, ctx, args):
        takes_value = {
            opt
            for param in self.get_params(ctx)
            if isinstance(param, click.Option) and not param.is_flag
            for opt in param.opts
        }
        help_names = set(self.get_help_option_names(ctx))
        skip = False
        for i, arg in enumerate(args):
            if skip:
                skip = False
                continue
            if arg == "--":
                break
            if arg in help_names:
                args = args[:i + 1]
                break
            skip = arg in takes_value
        return super().parse_args(ctx, args)


app = typer.Typer(
    add_completion=False,
    rich_markup_mode=None,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def configure_logging(settings: Settings) -> None:
    handler = logging.StreamHandler()
    if settings.log_format == "text":
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    else:
        handler.setFormatter(jsonlogger.JsonFormatter())
    logger = logging.getLogger("zkbuild")
    for old in list(logger.handlers):
        logger.removeHandler(old)
    logger.addHandler(handler)
    logger.setLevel(settings.log_level)


def _report(exc: ZkBuildError) -> None:
    if isinstance(exc, VerificationFailed):
        typer.echo(exc.message)
        return
    typer.echo(f"Error: {exc.message}", err=True)
    if exc.hint:
        typer.echo(exc.hint, err=True)
    elif isinstance(exc, UsageError):
        typer.echo(f"Try '{PROG} -h' for more information.", err=True)


@app.command(cls=HelpFirstCommand, help=HELP, epilog=EPILOG)
def main(
    circuit: Optional[List[str]] = typer.Argument(None, metavar="<circuit.circom>", show_default=False),
    include: Optional[List[str]] = typer.Option(
        None, "-l", metavar="<path>", help="Include path for circom compilation; may repeat."
    ),
    output: Optional[List[str]] = typer.Option(
        None, "-o", metavar="<directory>", help="Persistent output directory (default: temporary, removed on exit)."
    ),
    inputs: Optional[List[str]] = typer.Option(
        None, "-i", metavar="<inputs.json>", help="Input JSON for witness calculation; required by -p."
    ),
    ptau: Optional[List[str]] = typer.Option(
        None, "-p", metavar="<ptau_file>", help="Powers of Tau file; enables zkey, proof and verification. Requires -i."
    ),
    target_platform: Optional[str] = typer.Option(
        None, "--target-platform", help="Value for -DTARGET_PLATFORM (default: $ZKBUILD_TARGET_PLATFORM)."
    ),
    build_type: Optional[str] = typer.Option(
        None, "--build-type", help="CMake build type (default: $ZKBUILD_BUILD_TYPE or Debug)."
    ),
):
    if os.getenv("SENTRY_DSN"):
        sentry_sdk.init(dsn=os.getenv("SENTRY_DSN"))

    try:
        settings = Settings.from_env()
        configure_logging(settings)
        request = validate(
            circuit or [],
            settings,
            includes=include or [],
            outputs=output or [],
            inputs=inputs or [],
            ptaus=ptau or [],
            target_platform=target_platform,
            build_type=build_type,
        )
        artifacts = run_pipeline(request, settings)
    except ZkBuildError as exc:
        _report(exc)
        raise typer.Exit(code=exc.exit_code)

    typer.echo(f"Witness calculator built: {artifacts['witness_calculator']}")
    if "witness" in artifacts:
        typer.echo(f"Witness generated: {artifacts['witness']}")
    if "proof" in artifacts:
        typer.echo(f"Proof generated: {artifacts['proof']}")
        typer.echo("Proof verification: SUCCESS")
    if artifacts["ephemeral"]:
        typer.echo(f"Removed temporary directory: {artifacts['workspace']}")


if __name__ == "__main__":
    app()
