"""Turn raw command-line values into a checked InvocationRequest.

Option tokenising is left to the CLI framework; every option arrives here as a
list of the values it was given, in order. Nothing on disk is modified.
"""

from pathlib import Path
from typing import Optional, Sequence

from .config import Settings
from .errors import PreconditionError, UsageError
from .schemas import CIRCUIT_EXT, InvocationRequest
from .toolchain import find_executable

_VALUE_NAMES = {
    "-l": "a path",
    "-o": "a directory",
    "-i": "a JSON file path",
    "-p": "a ptau file path",
}


def _check_values(flag: str, values: Sequence[str]) -> None:
    for value in values:
        if not value or value.startswith("-"):
            raise UsageError(f"{flag} requires {_VALUE_NAMES[flag]} argument")


def _single(flag: str, values: Sequence[str]) -> Optional[str]:
    _check_values(flag, values)
    if len(values) > 1:
        raise UsageError(f"{flag} can only be specified once")
    return values[0] if values else None


def parse_request(
    circuits: Sequence[str],
    includes: Sequence[str] = (),
    outputs: Sequence[str] = (),
    inputs: Sequence[str] = (),
    ptaus: Sequence[str] = (),
    target_platform: Optional[str] = None,
    build_type: Optional[str] = None,
) -> InvocationRequest:
    """Apply the flag-shape rules: arity, missing values and repetition."""
    if len(circuits) > 1:
        raise UsageError("Multiple circuit files specified")

    _check_values("-l", includes)
    output_dir = _single("-o", outputs)
    input_json = _single("-i", inputs)
    ptau = _single("-p", ptaus)

    if not circuits:
        raise UsageError("Circuit .circom file is required")

    if ptau is not None and input_json is None:
        raise UsageError(
            "-p requires -i <inputs.json>",
            hint="Proof generation requires input JSON to generate witness",
        )

    return InvocationRequest(
        circuit=Path(circuits[0]),
        include_paths=list(includes),
        output_dir=output_dir,
        input_json=input_json,
        ptau=ptau,
        target_platform=target_platform,
        build_type=build_type,
    )


def check_preconditions(request: InvocationRequest, settings: Settings) -> None:
    """Check files and executables before any stage runs."""
    if not request.circuit.is_file():
        raise PreconditionError(f"Circuit file does not exist: {request.circuit}")
    if not request.circuit.name.endswith(CIRCUIT_EXT):
        raise PreconditionError(f"Circuit file must have {CIRCUIT_EXT} extension")

    if request.input_json is not None and not request.input_json.is_file():
        raise PreconditionError(f"Input JSON file does not exist: {request.input_json}")

    if request.ptau is not None:
        if not request.ptau.is_file():
            raise PreconditionError(f"Ptau file does not exist: {request.ptau}")
        if find_executable(settings.snarkjs_bin) is None:
            raise PreconditionError(
                f"{settings.snarkjs_bin} executable not found in PATH",
                hint=f"Proof generation requires {settings.snarkjs_bin}",
            )
        if find_executable(settings.prover_bin) is None:
            raise PreconditionError(
                f"{settings.prover_bin} executable not found in PATH",
                hint="Proof generation requires the prover tool",
            )


def validate(circuits: Sequence[str], settings: Settings, **options) -> InvocationRequest:
    request = parse_request(circuits, **options)
    check_preconditions(request, settings)
    return request
