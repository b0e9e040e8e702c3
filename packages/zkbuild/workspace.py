import logging
import shutil
import signal
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from pydantic import BaseModel

log = logging.getLogger(__name__)

# converted to SystemExit while a workspace is open so `finally` blocks run
_TRAPPED_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGTERM", "SIGHUP") if hasattr(signal, name)
)


class Workspace(BaseModel):
    path: Path
    ephemeral: bool

    def cleanup(self) -> None:
        """Remove the directory if it is ephemeral; safe to call repeatedly."""
        if not self.ephemeral or not self.path.exists():
            return
        log.info("Cleaning up temporary directory", extra={"path": str(self.path)})
        shutil.rmtree(self.path, ignore_errors=True)


def create_workspace(output_dir: Optional[Path] = None) -> Workspace:
    if output_dir is not None:
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        return Workspace(path=output_dir.resolve(), ephemeral=False)
    return Workspace(path=Path(tempfile.mkdtemp()).resolve(), ephemeral=True)


def _raise_exit(signum, frame):
    raise SystemExit(128 + signum)


@contextmanager
def open_workspace(output_dir: Optional[Path] = None) -> Iterator[Workspace]:
    """Yield a workspace that is removed on every exit path if ephemeral."""
    previous = {}
    for sig in _TRAPPED_SIGNALS:
        try:
            previous[sig] = signal.signal(sig, _raise_exit)
        except ValueError:
            # not the main thread; handlers can't be installed here
            break
    workspace = None
    try:
        workspace = create_workspace(output_dir)
        yield workspace
    finally:
        if workspace is not None:
            workspace.cleanup()
        for sig, handler in previous.items():
            signal.signal(sig, handler)
