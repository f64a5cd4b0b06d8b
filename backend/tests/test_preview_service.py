import io
import subprocess

import pytest

from agent_builder.core.errors import PreviewError
from agent_builder.models.codegen import GeneratedFile
from agent_builder.services import preview_service as preview_module
from agent_builder.services.preview_service import LocalPreviewRunner, PreviewService, build_env_file


class FakeProcess:
    """Stand-in for Popen that replays a startup log."""

    def __init__(self, output: str, exit_code=None):
        self.stdout = io.StringIO(output)
        self.pid = 4242
        self.returncode = exit_code
        self._exit_code = exit_code
        self.terminated = False

    def poll(self):
        if self.terminated:
            return -15
        return self._exit_code

    def terminate(self):
        self.terminated = True

    def wait(self, timeout=None):
        return -15

    def kill(self):
        self.terminated = True


class FakeRunner:
    def __init__(self, fail_on=None):
        self.calls = []
        self.fail_on = fail_on
        self.mounted = []
        self.url = None
        self.running = False

    def _record(self, name):
        self.calls.append(name)
        if name == self.fail_on:
            raise PreviewError(f"{name} failed")

    def boot(self):
        self._record("boot")

    def mount(self, files):
        self._record("mount")
        self.mounted = list(files)

    def install_dependencies(self):
        self._record("install")

    def start_server(self):
        self._record("start")
        self.url = "http://localhost:4111"
        self.running = True
        return self.url

    def stop(self):
        self.calls.append("stop")
        self.running = False


def test_env_file_maps_provider_names():
    content = build_env_file({"openai": "sk-1", "ANTHROPIC": "sk-2", "CUSTOM_TOKEN": "abc", "google": ""}, port=5000)

    assert content == "OPENAI_API_KEY=sk-1\nANTHROPIC_API_KEY=sk-2\nCUSTOM_TOKEN=abc\nPORT=5000\n"


def test_env_file_rejects_multiline_values():
    with pytest.raises(PreviewError, match="OPENAI_API_KEY must be a single line"):
        build_env_file({"openai": "sk\nPORT=1"})


def test_runner_mounts_files(tmp_path):
    runner = LocalPreviewRunner()
    runner.workdir = tmp_path

    runner.mount([GeneratedFile(path="agents/a.ts", content="export {};\n")])

    assert (tmp_path / "agents" / "a.ts").read_text() == "export {};\n"


def test_runner_refuses_paths_outside_workspace(tmp_path):
    runner = LocalPreviewRunner()
    runner.workdir = tmp_path / "work"
    runner.workdir.mkdir()

    with pytest.raises(PreviewError, match="outside the preview workspace"):
        runner.mount([GeneratedFile(path="../escape.ts", content="x")])
    assert not (tmp_path / "escape.ts").exists()


def test_runner_requires_boot():
    with pytest.raises(PreviewError, match="has not been booted"):
        LocalPreviewRunner().install_dependencies()


def test_install_failure_is_reported(tmp_path, monkeypatch):
    def fake_run(cmd, **kwargs):
        assert cmd == ["npm", "install"]
        assert kwargs["cwd"] == str(tmp_path)
        return subprocess.CompletedProcess(cmd, 1, stdout="", stderr="ERESOLVE could not resolve")

    monkeypatch.setattr(preview_module.subprocess, "run", fake_run)
    runner = LocalPreviewRunner(npm_command="npm")
    runner.workdir = tmp_path

    with pytest.raises(PreviewError, match="ERESOLVE could not resolve"):
        runner.install_dependencies()


def test_missing_npm_is_reported(tmp_path, monkeypatch):
    def fake_run(cmd, **kwargs):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(preview_module.subprocess, "run", fake_run)
    runner = LocalPreviewRunner(npm_command="npm")
    runner.workdir = tmp_path

    with pytest.raises(PreviewError, match="npm not found"):
        runner.install_dependencies()


def test_start_server_reads_url_from_log(tmp_path, monkeypatch):
    process = FakeProcess("> mastra dev\nMastra API running on http://localhost:4999/api\n")
    monkeypatch.setattr(preview_module.subprocess, "Popen", lambda cmd, **kwargs: process)
    runner = LocalPreviewRunner()
    runner.workdir = tmp_path / "work"
    runner.workdir.mkdir()

    url = runner.start_server()

    assert url == "http://localhost:4999"
    assert runner.running
    assert runner.startup_log[-1] == "Mastra API running on http://localhost:4999/api"

    workdir = runner.workdir
    runner.stop()
    assert process.terminated
    assert runner.url is None
    assert not workdir.exists()


def test_start_server_reports_early_exit(tmp_path, monkeypatch):
    process = FakeProcess("Error: Cannot find module 'mastra'\n", exit_code=1)
    monkeypatch.setattr(preview_module.subprocess, "Popen", lambda cmd, **kwargs: process)
    runner = LocalPreviewRunner()
    runner.workdir = tmp_path

    with pytest.raises(PreviewError, match="exited unexpectedly with code 1"):
        runner.start_server()
    assert runner.process is None


def test_service_drives_runner_lifecycle():
    runner = FakeRunner()
    service = PreviewService(runner_factory=lambda: runner)

    url = service.start([GeneratedFile(path="index.ts", content="")], {"openai": "sk"}, project_id="p1")

    assert url == "http://localhost:4111"
    assert runner.calls == ["boot", "mount", "install", "start"]
    assert [f.path for f in runner.mounted] == ["index.ts", ".env"]
    assert runner.mounted[1].content.startswith("OPENAI_API_KEY=sk\n")
    assert service.status() == {"running": True, "url": url, "project_id": "p1"}

    assert service.stop() is True
    assert runner.calls[-1] == "stop"
    assert service.stop() is False
    assert service.status() == {"running": False, "url": None, "project_id": None}


def test_service_restarts_replace_previous_preview():
    runners = [FakeRunner(), FakeRunner()]
    service = PreviewService(runner_factory=lambda: runners.pop(0))
    first = runners[0]

    service.start([])
    service.start([])

    assert first.calls[-1] == "stop"
    assert service.runner is not first


def test_service_cleans_up_failed_start():
    runner = FakeRunner(fail_on="install")
    service = PreviewService(runner_factory=lambda: runner)

    with pytest.raises(PreviewError, match="install failed"):
        service.start([])

    assert runner.calls == ["boot", "mount", "install", "stop"]
    assert service.status()["running"] is False


def test_output_after_startup_is_drained(tmp_path, monkeypatch):
    process = FakeProcess("Mastra API running on http://localhost:4111\nGET /api/agents 200\nGET /api/tools 200\n")
    monkeypatch.setattr(preview_module.subprocess, "Popen", lambda cmd, **kwargs: process)
    runner = LocalPreviewRunner()
    runner.workdir = tmp_path

    runner.start_server()
    runner.drain_thread.join(timeout=5)

    assert not runner.drain_thread.is_alive()
    assert list(runner.output_tail) == ["GET /api/agents 200", "GET /api/tools 200"]
    assert process.stdout.read() == ""


def test_runner_reports_unwritable_files(tmp_path):
    runner = LocalPreviewRunner()
    runner.workdir = tmp_path
    (tmp_path / "agents").write_text("not a directory")

    with pytest.raises(PreviewError, match="Could not write agents/a.ts"):
        runner.mount([GeneratedFile(path="agents/a.ts", content="")])


def test_service_stops_runner_on_unexpected_errors():
    class BrokenDiskRunner(FakeRunner):
        def mount(self, files):
            self.calls.append("mount")
            raise OSError("No space left on device")

    runner = BrokenDiskRunner()
    service = PreviewService(runner_factory=lambda: runner)

    with pytest.raises(OSError, match="No space left on device"):
        service.start([])

    assert runner.calls == ["boot", "mount", "stop"]
    assert service.runner is None
