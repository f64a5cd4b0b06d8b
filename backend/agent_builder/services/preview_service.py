"""Run a generated project locally for preview.

The compiler never depends on this module. It only consumes the generated
file set and a map of secrets.
"""

import logging
import re
import shutil
import subprocess
import tempfile
import threading
import time
from collections import deque
from pathlib import Path
from typing import Protocol, Sequence

from ..core.config import settings
from ..core.errors import PreviewError
from ..models.codegen import GeneratedFile

logger = logging.getLogger(__name__)

# Secret name -> environment variable read by the provider SDK
SECRET_ENV_VARS = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "google": "GOOGLE_GENERATIVE_AI_API_KEY",
}

_SERVING_RE = re.compile(r"https?://(?:localhost|127\.0\.0\.1|0\.0\.0\.0):(\d+)", re.IGNORECASE)

# Lines of server output kept once startup is over
OUTPUT_TAIL_LINES = 200


def build_env_file(secrets: dict[str, str], port: int | None = None) -> str:
    """Render the ``.env`` file for a preview run.

    Keys of ``secrets`` are provider names (openai, anthropic, google) or
    literal environment variable names.
    """
    lines = []
    for name, value in secrets.items():
        if not value:
            continue
        env_var = SECRET_ENV_VARS.get(name.lower(), name)
        if "\n" in value or "\r" in value:
            raise PreviewError(f"Secret {env_var} must be a single line")
        lines.append(f"{env_var}={value}")
    lines.append(f"PORT={port or settings.preview_port}")
    return "\n".join(lines) + "\n"


class PreviewRunner(Protocol):
    """Boot, populate and serve a generated project."""

    def boot(self) -> None: ...

    def mount(self, files: Sequence[GeneratedFile]) -> None: ...

    def install_dependencies(self) -> None: ...

    def start_server(self) -> str: ...

    def stop(self) -> None: ...


class LocalPreviewRunner:
    """PreviewRunner that installs and serves the project with npm in a temp directory."""

    def __init__(self, npm_command: str | None = None, port: int | None = None,
                 install_timeout: int | None = None, startup_timeout: float = 60.0):
        self.npm_command = npm_command or settings.npm_command
        self.port = port or settings.preview_port
        self.install_timeout = install_timeout or settings.install_timeout
        self.startup_timeout = startup_timeout
        self.workdir: Path | None = None
        self.process: subprocess.Popen | None = None
        self.url: str | None = None
        self.startup_log: list[str] = []
        self.output_tail: deque[str] = deque(maxlen=OUTPUT_TAIL_LINES)
        self.drain_thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self.process is not None and self.process.poll() is None

    def boot(self) -> None:
        """Create a fresh working directory."""
        if self.workdir is None:
            self.workdir = Path(tempfile.mkdtemp(prefix="agent-builder-preview-"))
            logger.info("Booted preview workspace %s", self.workdir)

    def _require_workdir(self) -> Path:
        if self.workdir is None:
            raise PreviewError("Preview runner has not been booted")
        return self.workdir

    def mount(self, files: Sequence[GeneratedFile]) -> None:
        """Write the generated files into the working directory."""
        workdir = self._require_workdir().resolve()
        for generated in files:
            target = (workdir / generated.path).resolve()
            if not target.is_relative_to(workdir):
                raise PreviewError(f"Refusing to write outside the preview workspace: {generated.path}")
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_text(generated.content)
            except OSError as e:
                raise PreviewError(f"Could not write {generated.path}: {e}") from e
        logger.info("Mounted %d files into %s", len(files), workdir)

    def install_dependencies(self) -> None:
        """Run ``npm install``."""
        workdir = self._require_workdir()
        cmd = [self.npm_command, "install"]
        logger.info("Running %s in %s", " ".join(cmd), workdir)
        try:
            result = subprocess.run(
                cmd,
                cwd=str(workdir),
                capture_output=True,
                text=True,
                timeout=self.install_timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise PreviewError(f"Dependency installation timed out after {self.install_timeout}s") from e
        except FileNotFoundError as e:
            raise PreviewError(f"{self.npm_command} not found. Please install Node.js") from e

        if result.returncode != 0:
            raise PreviewError(f"Dependency installation failed: {result.stderr.strip() or result.stdout.strip()}")

    def start_server(self) -> str:
        """Start ``npm run dev`` and return the URL it serves on."""
        workdir = self._require_workdir()
        if self.running:
            return self.url

        cmd = [self.npm_command, "run", "dev"]
        logger.info("Starting %s in %s", " ".join(cmd), workdir)
        try:
            self.process = subprocess.Popen(
                cmd,
                cwd=str(workdir),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                start_new_session=True,
                text=True,
                bufsize=1,
            )
        except FileNotFoundError as e:
            raise PreviewError(f"{self.npm_command} not found. Please install Node.js") from e

        port = self.port
        self.startup_log = []
        start_time = time.time()
        while time.time() - start_time < self.startup_timeout:
            line = self.process.stdout.readline()
            if not line:
                if self.process.poll() is not None:
                    self.startup_log.append(self.process.stdout.read() or "")
                    code = self.process.returncode
                    self.process = None
                    raise PreviewError(f"Preview server exited unexpectedly with code {code}")
                time.sleep(0.1)
                continue

            self.startup_log.append(line.rstrip())
            match = _SERVING_RE.search(line)
            if match:
                port = int(match.group(1))
                break

        self.url = f"http://localhost:{port}"
        logger.info("Preview server running at %s (pid %s)", self.url, self.process.pid)
        self._start_drain()
        return self.url

    def _start_drain(self) -> None:
        # An unread pipe fills up and blocks the server on its next write
        self.drain_thread = threading.Thread(
            target=self._drain_output, args=(self.process.stdout,), daemon=True
        )
        self.drain_thread.start()

    def _drain_output(self, stream) -> None:
        for line in iter(stream.readline, ""):
            line = line.rstrip()
            self.output_tail.append(line)
            logger.debug("preview: %s", line)

    def stop(self) -> None:
        """Stop the server and remove the working directory."""
        if self.process is not None:
            logger.info("Stopping preview server (pid %s)", self.process.pid)
            if self.process.poll() is None:
                self.process.terminate()
                try:
                    self.process.wait(timeout=5)
                except subprocess.TimeoutExpired:
                    # Force kill if it doesn't terminate
                    self.process.kill()
            self.process = None
        self.url = None

        if self.workdir is not None:
            shutil.rmtree(self.workdir, ignore_errors=True)
            self.workdir = None


class PreviewService:
    """Owns the single active preview and drives a runner through its lifecycle."""

    def __init__(self, runner_factory=LocalPreviewRunner):
        self.runner_factory = runner_factory
        self.runner: PreviewRunner | None = None
        self.project_id: str | None = None

    def start(self, files: Sequence[GeneratedFile], secrets: dict[str, str] | None = None,
              project_id: str | None = None) -> str:
        """Stop any running preview, then boot, mount, install and start a new one."""
        self.stop()

        runner = self.runner_factory()
        env_file = GeneratedFile(path=".env", content=build_env_file(secrets or {}))
        try:
            runner.boot()
            runner.mount([*files, env_file])
            runner.install_dependencies()
            url = runner.start_server()
        except Exception:
            runner.stop()
            raise

        self.runner = runner
        self.project_id = project_id
        return url

    def stop(self) -> bool:
        """Stop the active preview; returns whether one was running."""
        if self.runner is None:
            return False
        self.runner.stop()
        self.runner = None
        self.project_id = None
        return True

    def status(self) -> dict:
        runner = self.runner
        return {
            "running": runner is not None and getattr(runner, "running", True),
            "url": getattr(runner, "url", None) if runner is not None else None,
            "project_id": self.project_id,
        }


preview_service = PreviewService()
