from __future__ import annotations

import logging
import re
import subprocess
from dataclasses import dataclass
from typing import Callable, Sequence

logger = logging.getLogger(__name__)

# Label carrying the base64 of the command line a container was started with.
COMMAND_LABEL = "docker-dns-provision.command"

CONTAINER_NAME_RE = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_.\-]{0,254}$")


def validate_container_name(name: str) -> None:
    if not CONTAINER_NAME_RE.match(name):
        raise ValueError(
            "Invalid container name. Use letters/numbers and _.- starting with a letter or number (max 255 chars)."
        )


@dataclass(frozen=True)
class CommandResult:
    argv: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str


class DockerCommandError(RuntimeError):
    def __init__(self, argv: Sequence[str], returncode: int | None, stderr: str):
        self.argv = tuple(argv)
        self.returncode = returncode
        self.stderr = stderr.strip()
        status = "could not run" if returncode is None else f"exited {returncode}"
        super().__init__(f"{' '.join(self.argv[:3])} {status}: {self.stderr}")


def run_command(argv: Sequence[str], timeout_s: float | None = None) -> CommandResult:
    """Run a runtime command, capturing output. Raises DockerCommandError on failure."""
    try:
        proc = subprocess.run(list(argv), capture_output=True, text=True, timeout=timeout_s, check=False)
    except subprocess.TimeoutExpired as e:
        raise DockerCommandError(argv, None, f"timed out after {timeout_s}s") from e
    except OSError as e:
        raise DockerCommandError(argv, None, str(e)) from e
    if proc.returncode != 0:
        raise DockerCommandError(argv, proc.returncode, proc.stderr or "")
    return CommandResult(argv=tuple(argv), returncode=proc.returncode, stdout=proc.stdout, stderr=proc.stderr)


Runner = Callable[..., CommandResult]


class DockerCLI:
    """Container runtime driven through its command-line executable.

    Containers started here carry COMMAND_LABEL so they can be found and
    compared on the next pass.
    """

    def __init__(self, docker_cmd: str = "docker", timeout_s: float | None = 120.0, runner: Runner = run_command):
        self.docker_cmd = docker_cmd
        self.timeout_s = timeout_s
        self._runner = runner

    def _docker(self, *args: str) -> CommandResult:
        argv = [self.docker_cmd, *args]
        logger.debug("Running %s", argv)
        return self._runner(argv, timeout_s=self.timeout_s)

    def list_managed(self) -> set[str]:
        """Names of all containers (running or stopped) carrying the ownership label."""
        res = self._docker("ps", "-a", "--format", "{{ .Names }}", "-f", f"label={COMMAND_LABEL}")
        return {line.strip() for line in res.stdout.splitlines() if line.strip()}

    def _inspect_label(self, name: str) -> str:
        # --type container keeps images, networks and volumes of the same name out.
        template = f'{{{{index .Config.Labels "{COMMAND_LABEL}"}}}}'
        res = self._docker("inspect", "--type", "container", "-f", template, name)
        return res.stdout.strip()

    def exists(self, name: str) -> bool:
        try:
            self._inspect_label(name)
        except DockerCommandError:
            return False
        return True

    def applied_fingerprint(self, name: str) -> str | None:
        """Label value of the named container; None if missing, unlabelled or not inspectable."""
        try:
            value = self._inspect_label(name)
        except DockerCommandError as e:
            logger.debug("Inspect %s failed: %s", name, e)
            return None
        if not value or value == "<no value>":
            return None
        return value

    def run(self, name: str, fingerprint: str, args: Sequence[str]) -> None:
        self._docker("run", "-d", "--name", name, "--label", f"{COMMAND_LABEL}={fingerprint}", *args)

    def kill(self, name: str) -> None:
        self._docker("kill", name)

    def remove(self, name: str) -> None:
        self._docker("rm", name)

    def stop_and_remove(self, name: str) -> None:
        """Kill then remove. Kill is best-effort; a failed remove raises DockerCommandError."""
        try:
            self.kill(name)
        except DockerCommandError as e:
            # Stopped containers refuse kill; rm still has to be attempted.
            logger.debug("kill %s failed: %s", name, e)
        self.remove(name)
