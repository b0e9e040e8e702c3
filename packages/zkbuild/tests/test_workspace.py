import os
import signal

import pytest

from zkbuild.workspace import create_workspace, open_workspace


def test_persistent_workspace_is_created_and_kept(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with open_workspace("build/out") as ws:
        assert not ws.ephemeral
        assert ws.path.is_absolute()
        assert ws.path == (tmp_path / "build" / "out").resolve()
        (ws.path / "artifact").write_text("x")
    assert (tmp_path / "build" / "out" / "artifact").exists()


def test_existing_directory_is_reused(tmp_path):
    (tmp_path / "out").mkdir()
    (tmp_path / "out" / "cached.zkey").write_bytes(b"k")
    ws = create_workspace(tmp_path / "out")
    assert (ws.path / "cached.zkey").exists()


def test_ephemeral_workspace_removed_on_success():
    with open_workspace() as ws:
        assert ws.ephemeral
        (ws.path / "file").write_text("x")
        path = ws.path
    assert not path.exists()


def test_ephemeral_workspace_removed_on_error():
    with pytest.raises(RuntimeError):
        with open_workspace() as ws:
            path = ws.path
            raise RuntimeError("stage failed")
    assert not path.exists()


def test_cleanup_is_idempotent():
    ws = create_workspace()
    ws.cleanup()
    ws.cleanup()
    assert not ws.path.exists()


@pytest.mark.skipif(not hasattr(signal, "SIGTERM") or os.name != "posix", reason="posix signals")
def test_sigterm_still_removes_ephemeral_workspace():
    previous = signal.getsignal(signal.SIGTERM)
    with pytest.raises(SystemExit) as exc:
        with open_workspace() as ws:
            path = ws.path
            os.kill(os.getpid(), signal.SIGTERM)
    assert exc.value.code == 128 + signal.SIGTERM
    assert not path.exists()
    assert signal.getsignal(signal.SIGTERM) == previous


def test_signal_during_creation_restores_handlers(monkeypatch):
    from zkbuild import workspace

    previous = signal.getsignal(signal.SIGTERM)

    def interrupted(output_dir=None):
        raise SystemExit(128 + signal.SIGTERM)

    monkeypatch.setattr(workspace, "create_workspace", interrupted)
    with pytest.raises(SystemExit):
        with workspace.open_workspace():
            pytest.fail("body must not run")
    assert signal.getsignal(signal.SIGTERM) == previous


def test_exit_from_body_removes_ephemeral_workspace(monkeypatch):
    from zkbuild import workspace

    created = []
    real_create = workspace.create_workspace

    def tracking(output_dir=None):
        ws = real_create(output_dir)
        created.append(ws.path)
        return ws

    monkeypatch.setattr(workspace, "create_workspace", tracking)
    with pytest.raises(SystemExit):
        with workspace.open_workspace():
            raise SystemExit(143)
    assert created and not created[0].exists()
