import json
from pathlib import Path

import pytest

from zkbuild.config import Settings
from zkbuild.schemas import ToolResult


class FakeRunner:
    """Stands in for the external toolchain; writes the files each tool would."""

    def __init__(self, r1cs_content=b"r1cs-v1", fail=None, verify="ok"):
        self.calls = []
        self.r1cs_content = r1cs_content
        # maps a call label (e.g. "snarkjs zkey contribute") to an exit code
        self.fail = fail or {}
        self.verify = verify
        self.workspaces = []

    def labels(self):
        return [label for label, _ in self.calls]

    def _label(self, tool, args):
        name = Path(tool).name
        if name == "snarkjs":
            sub = args[0] if args[0] == "g16v" else " ".join(args[:2])
            return f"snarkjs {sub}"
        if name == "make":
            return "make install" if "install" in args else "make"
        if "/package/bin/" in tool:
            return "witness"
        return name

    def run(self, tool, args, capture=False):
        args = [str(a) for a in args]
        label = self._label(tool, args)
        self.calls.append((label, args))
        if label in self.fail:
            return ToolResult(exit_code=self.fail[label], stderr=f"{label} exploded")

        handler = getattr(self, "_" + label.replace(" ", "_"), None)
        if handler is not None:
            out = handler(tool, args)
            if isinstance(out, ToolResult):
                return out
        return ToolResult(exit_code=0)

    def _circom(self, tool, args):
        ws = Path(args[args.index("-o") + 1])
        self.workspaces.append(ws)
        name = Path(args[-1]).name[: -len(".circom")]
        cpp_dir = ws / f"{name}_cpp"
        cpp_dir.mkdir(parents=True, exist_ok=True)
        (cpp_dir / f"{name}.cpp").write_text("// generated")
        if "--r1cs" in args:
            (ws / f"{name}.r1cs").write_bytes(self.r1cs_content)
        self.name = name

    def _cmake(self, tool, args):
        Path(args[args.index("-B") + 1]).mkdir(parents=True, exist_ok=True)

    def _make_install(self, tool, args):
        prefix = Path(args[1]).parent / "package" / "bin"
        prefix.mkdir(parents=True, exist_ok=True)
        (prefix / self.name).write_text("#!/bin/sh\n")

    def _witness(self, tool, args):
        Path(args[1]).write_bytes(b"wtns")

    def _snarkjs_groth16_setup(self, tool, args):
        Path(args[-1]).write_bytes(b"zkey-0000")

    def _snarkjs_zkey_contribute(self, tool, args):
        Path(args[3]).write_bytes(b"zkey-final")

    def _snarkjs_zkey_export(self, tool, args):
        Path(args[-1]).write_text(json.dumps({"protocol": "groth16"}))

    def _prover(self, tool, args):
        Path(args[2]).write_text(json.dumps({"pi_a": []}))
        Path(args[3]).write_text(json.dumps(["1"]))

    def _snarkjs_g16v(self, tool, args):
        if self.verify == "ok":
            return ToolResult(exit_code=0, stdout="[INFO]  snarkJS: OK!\n")
        if self.verify == "invalid":
            return ToolResult(exit_code=1, stdout="[ERROR] snarkJS: Invalid proof\n")
        return ToolResult(exit_code=1, stderr="TypeError: cannot read properties of undefined\n")


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def settings(tmp_path):
    return Settings(cmake_source_dir=tmp_path / "src")


@pytest.fixture
def circuit(tmp_path):
    path = tmp_path / "multiplier.circom"
    path.write_text("pragma circom 2.0.0;\n")
    return path


@pytest.fixture
def inputs_json(tmp_path):
    path = tmp_path / "input.json"
    path.write_text(json.dumps({"a": 3, "b": 11}))
    return path


@pytest.fixture
def ptau(tmp_path):
    path = tmp_path / "pot12_final.ptau"
    path.write_bytes(b"ptau")
    return path


@pytest.fixture
def tools_on_path(monkeypatch):
    from zkbuild import validate

    monkeypatch.setattr(validate, "find_executable", lambda name: f"/usr/bin/{name}")


@pytest.fixture
def make_runner():
    return FakeRunner
