import logging
import os
from typing import Optional

from .config import Settings
from .schemas import ArtifactPaths, InvocationRequest
from .toolchain import ToolRunner, run_checked

log = logging.getLogger(__name__)


def circom_args(request: InvocationRequest, workspace) -> list[str]:
    args = ["-c"]
    if request.wants_proof:
        args.append("--r1cs")
    for path in request.include_paths:
        args += ["-l", path]
    args += ["-o", str(workspace), str(request.circuit)]
    return args


def compile_circuit(runner: ToolRunner, settings: Settings, request: InvocationRequest, paths: ArtifactPaths):
    """Run circom; returns the path of the emitted C++ source."""
    log.info("Running circom...")
    run_checked(runner, settings.circom_bin, circom_args(request, paths.workspace))
    log.info("Circom compilation completed successfully", extra={"cpp": str(paths.native_source)})
    return paths.native_source


def detect_cpu_count(default: int = 8) -> int:
    """Usable logical CPUs: affinity mask, then os.cpu_count(), then `default`."""
    try:
        n = len(os.sched_getaffinity(0))
        if n > 0:
            return n
    except (AttributeError, OSError):
        pass
    return os.cpu_count() or default


def cmake_args(settings: Settings, paths: ArtifactPaths, target_platform: Optional[str], build_type: str) -> list[str]:
    args = [str(settings.cmake_source_dir), "-B", str(paths.build_dir)]
    if target_platform:
        args.append(f"-DTARGET_PLATFORM={target_platform}")
    args += [
        f"-DCMAKE_BUILD_TYPE={build_type}",
        f"-DCMAKE_INSTALL_PREFIX={paths.install_prefix}",
        f"-DCIRCUIT_FILE={paths.native_source}",
    ]
    return args


def build_native(runner: ToolRunner, settings: Settings, request: InvocationRequest, paths: ArtifactPaths):
    """Configure, build and install the witness calculator; returns its path."""
    target_platform = request.target_platform or settings.target_platform
    build_type = request.build_type or settings.build_type

    log.info("Running cmake...")
    run_checked(runner, settings.cmake_bin, cmake_args(settings, paths, target_platform, build_type))

    jobs = detect_cpu_count(settings.default_jobs)
    log.info(f"Building with make -j {jobs}...")
    run_checked(runner, settings.make_bin, ["-C", str(paths.build_dir), "-j", str(jobs)])

    log.info("Installing...")
    run_checked(runner, settings.make_bin, ["-C", str(paths.build_dir), "install"])
    return paths.witness_calculator
