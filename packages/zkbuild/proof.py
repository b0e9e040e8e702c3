import hashlib
import logging
import os
import secrets
from pathlib import Path

from .config import Settings
from .errors import ToolError, VerificationFailed
from .schemas import ArtifactPaths, InvocationRequest
from .toolchain import ToolRunner, run_checked

log = logging.getLogger(__name__)

# snarkjs prints this when the pairing check rejects the proof
INVALID_PROOF_MARKER = "Invalid proof"


def file_digest(path: Path, chunk_size: int = 1 << 20) -> str:
    """Hex MD5 of a file, same format as `md5sum` / `md5 -q`."""
    # cache key only
    h = hashlib.md5(usedforsecurity=False)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            h.update(chunk)
    return h.hexdigest()


def generate_witness(runner: ToolRunner, request: InvocationRequest, paths: ArtifactPaths) -> Path:
    log.info(
        "Running witness calculator...",
        extra={
            "executable": str(paths.witness_calculator),
            "input": str(request.input_json),
            "witness": str(paths.witness),
        },
    )
    run_checked(runner, str(paths.witness_calculator), [str(request.input_json), str(paths.witness)])
    log.info("Witness generated successfully", extra={"witness": str(paths.witness)})
    return paths.witness


def ensure_zkey(runner: ToolRunner, settings: Settings, ptau: Path, paths: ArtifactPaths, digest: str) -> Path:
    """Return the proving key for `digest`, generating it only on a cache miss."""
    zkey = paths.zkey(digest)
    if zkey.exists():
        log.info("Zkey file already exists", extra={"zkey": str(zkey), "cache": "hit"})
        return zkey

    log.info("Generating zkey file...", extra={"zkey": str(zkey), "cache": "miss"})
    entropy = secrets.token_hex(settings.entropy_bytes)
    tmp = paths.zkey_temp(digest)
    # only a finished contribution is moved onto the cache path
    staged = paths.zkey_staging(digest)
    snarkjs = settings.snarkjs_bin
    try:
        log.info("Running groth16 setup...")
        run_checked(runner, snarkjs, ["groth16", "setup", str(paths.r1cs), str(ptau), str(tmp)])
        log.info("Running zkey contribute...")
        run_checked(
            runner,
            snarkjs,
            ["zkey", "contribute", str(tmp), str(staged), "--name=1st Contribution", "-v", f"-e={entropy}"],
        )
        os.replace(staged, zkey)
    finally:
        tmp.unlink(missing_ok=True)
        staged.unlink(missing_ok=True)

    log.info("Zkey generated", extra={"zkey": str(zkey)})
    return zkey


def generate_proof(runner: ToolRunner, settings: Settings, zkey: Path, paths: ArtifactPaths) -> None:
    log.info(
        "Running prover...",
        extra={
            "zkey": str(zkey),
            "witness": str(paths.witness),
            "proof": str(paths.proof),
            "public": str(paths.public),
        },
    )
    run_checked(runner, settings.prover_bin, [str(zkey), str(paths.witness), str(paths.proof), str(paths.public)])
    log.info("Proof generated successfully", extra={"proof": str(paths.proof), "public": str(paths.public)})


def ensure_verification_key(runner: ToolRunner, settings: Settings, zkey: Path, paths: ArtifactPaths, digest: str) -> Path:
    vk = paths.verification_key(digest)
    if vk.exists():
        log.info("Using existing verification key", extra={"vk": str(vk), "cache": "hit"})
        return vk
    log.info("Exporting verification key...", extra={"vk": str(vk), "cache": "miss"})
    run_checked(runner, settings.snarkjs_bin, ["zkey", "export", "verificationkey", str(zkey), str(vk)])
    log.info("Verification key exported", extra={"vk": str(vk)})
    return vk


def verify_proof(runner: ToolRunner, settings: Settings, vk: Path, paths: ArtifactPaths) -> None:
    """Raise VerificationFailed for a rejected proof, ToolError for a broken verifier."""
    log.info("Verifying proof...")
    args = ["g16v", str(vk), str(paths.public), str(paths.proof)]
    result = runner.run(settings.snarkjs_bin, args, capture=True)
    output = result.stdout + result.stderr
    if output.strip():
        log.info("verifier output", extra={"output": output.strip()})
    if result.ok:
        return
    if INVALID_PROOF_MARKER in output:
        raise VerificationFailed("Proof verification: FAILED")
    raise ToolError(settings.snarkjs_bin, args, result)


def run_proof_cascade(runner: ToolRunner, settings: Settings, request: InvocationRequest, paths: ArtifactPaths) -> dict:
    """Witness, then (with a ptau) zkey, proof, verification key and verification."""
    artifacts = {"witness": generate_witness(runner, request, paths)}
    if not request.wants_proof:
        return artifacts

    log.info("R1CS file", extra={"r1cs": str(paths.r1cs)})
    digest = file_digest(paths.r1cs)
    log.info("R1CS MD5", extra={"md5": digest})

    zkey = ensure_zkey(runner, settings, request.ptau, paths, digest)
    generate_proof(runner, settings, zkey, paths)
    vk = ensure_verification_key(runner, settings, zkey, paths, digest)
    verify_proof(runner, settings, vk, paths)

    artifacts.update(
        digest=digest,
        zkey=zkey,
        proof=paths.proof,
        public=paths.public,
        verification_key=vk,
    )
    return artifacts
