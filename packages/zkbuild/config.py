import logging
import os
from pathlib import Path
from typing import Literal, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import PreconditionError

ENV_VARS = {
    "circom_bin": "ZKBUILD_CIRCOM",
    "cmake_bin": "ZKBUILD_CMAKE",
    "make_bin": "ZKBUILD_MAKE",
    "snarkjs_bin": "ZKBUILD_SNARKJS",
    "prover_bin": "ZKBUILD_PROVER",
    "cmake_source_dir": "ZKBUILD_CMAKE_SOURCE_DIR",
    "target_platform": "ZKBUILD_TARGET_PLATFORM",
    "build_type": "ZKBUILD_BUILD_TYPE",
    "default_jobs": "ZKBUILD_DEFAULT_JOBS",
    "entropy_bytes": "ZKBUILD_ENTROPY_BYTES",
    "log_level": "ZKBUILD_LOG_LEVEL",
    "log_format": "ZKBUILD_LOG_FORMAT",
}


class Settings(BaseModel):
    circom_bin: str = "circom"
    cmake_bin: str = "cmake"
    make_bin: str = "make"
    snarkjs_bin: str = "snarkjs"
    prover_bin: str = "prover"
    # CMake project that knows how to turn <name>.cpp into a witness calculator
    cmake_source_dir: Path = Field(default_factory=Path.cwd)
    target_platform: Optional[str] = None
    build_type: str = "Debug"
    default_jobs: int = Field(8, ge=1)
    entropy_bytes: int = Field(64, ge=1)
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        value = value.upper()
        if not isinstance(logging.getLevelName(value), int):
            raise ValueError(f"unknown log level {value!r}")
        return value

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ZKBUILD_* environment variables."""
        env = os.environ if environ is None else environ
        # empty values fall back to the defaults
        fields = {name: env.get(var) for name, var in ENV_VARS.items() if env.get(var)}
        try:
            return cls(**fields)
        except ValidationError as exc:
            problems = "; ".join(
                f"{ENV_VARS.get(err['loc'][0], err['loc'][0])}={fields.get(err['loc'][0])!r}: {err['msg']}"
                for err in exc.errors()
            )
            raise PreconditionError(f"Invalid configuration: {problems}") from exc
