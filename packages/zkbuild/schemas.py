from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

CIRCUIT_EXT = ".circom"


# --- Validated command line ---

class InvocationRequest(BaseModel):
    circuit: Path
    include_paths: List[str] = Field(default_factory=list)
    output_dir: Optional[Path] = None
    input_json: Optional[Path] = None
    ptau: Optional[Path] = None
    target_platform: Optional[str] = None
    build_type: Optional[str] = None

    @model_validator(mode="after")
    def _ptau_needs_inputs(self):
        if self.ptau is not None and self.input_json is None:
            raise ValueError("-p requires -i <inputs.json>")
        return self

    @property
    def circuit_name(self) -> str:
        return self.circuit.name[: -len(CIRCUIT_EXT)]

    @property
    def wants_witness(self) -> bool:
        return self.input_json is not None

    @property
    def wants_proof(self) -> bool:
        return self.ptau is not None


# --- External tool results ---

class ToolResult(BaseModel):
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


# --- Files laid out inside a workspace ---

class ArtifactPaths(BaseModel):
    workspace: Path
    name: str

    @property
    def native_source(self) -> Path:
        return self.workspace / f"{self.name}_cpp" / f"{self.name}.cpp"

    @property
    def build_dir(self) -> Path:
        return self.workspace / "build"

    @property
    def install_prefix(self) -> Path:
        return self.workspace / "package"

    @property
    def witness_calculator(self) -> Path:
        return self.install_prefix / "bin" / self.name

    @property
    def r1cs(self) -> Path:
        return self.workspace / f"{self.name}.r1cs"

    @property
    def witness(self) -> Path:
        return self.workspace / f"{self.name}.wtns"

    @property
    def proof(self) -> Path:
        return self.workspace / f"{self.name}_proof.json"

    @property
    def public(self) -> Path:
        return self.workspace / f"{self.name}_public.json"

    def zkey(self, digest: str) -> Path:
        return self.workspace / f"{self.name}_{digest}.zkey"

    def zkey_temp(self, digest: str) -> Path:
        return self.workspace / f"{self.name}_{digest}_0000.zkey"

    def zkey_staging(self, digest: str) -> Path:
        return self.workspace / f"{self.name}_{digest}_0001.zkey"

    def verification_key(self, digest: str) -> Path:
        return self.workspace / f"{self.name}_{digest}_vk.json"
