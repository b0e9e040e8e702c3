import logging
from typing import Optional

from .build import build_native, compile_circuit
from .config import Settings
from .proof import run_proof_cascade
from .schemas import ArtifactPaths, InvocationRequest
from .toolchain import SubprocessRunner, ToolRunner
from .workspace import open_workspace

log = logging.getLogger(__name__)


def run_pipeline(request: InvocationRequest, settings: Settings, runner: Optional[ToolRunner] = None) -> dict:
    """Compile, build and optionally prove one circuit.

    Returns the artifacts that were produced. Paths inside an ephemeral
    workspace no longer exist once this returns.
    """
    runner = runner or SubprocessRunner()

    log.info("Circuit file", extra={"circuit": str(request.circuit)})
    if request.include_paths:
        log.info("Include paths", extra={"include_paths": request.include_paths})

    with open_workspace(request.output_dir) as workspace:
        if workspace.ephemeral:
            log.info("Temporary directory", extra={"workspace": str(workspace.path)})
        else:
            log.info("Output directory", extra={"workspace": str(workspace.path)})

        paths = ArtifactPaths(workspace=workspace.path, name=request.circuit_name)
        artifacts = {"workspace": workspace.path, "ephemeral": workspace.ephemeral}

        artifacts["native_source"] = compile_circuit(runner, settings, request, paths)
        artifacts["witness_calculator"] = build_native(runner, settings, request, paths)

        if request.wants_witness:
            artifacts.update(run_proof_cascade(runner, settings, request, paths))
        return artifacts
