from __future__ import annotations

from .desired import DesiredStateBuilder
from .docker_ops import DockerCLI, DockerCommandError
from .logging_config import log_event
from .models import Action, Command, Disabled, LaunchSpec, ReconcileReport, decode_fingerprint


class Reconciler:
    """Converges the local container runtime to the state published in DNS.

    One call to run_once() is one top-to-bottom pass. Re-running it with
    unchanged DNS data issues no further runtime actions.
    """

    def __init__(self, builder: DesiredStateBuilder, docker: DockerCLI, dry_run: bool = False):
        self.builder = builder
        self.docker = docker
        self.dry_run = dry_run

    def run_once(self) -> ReconcileReport:
        report = ReconcileReport(hostname=self.builder.hostname, dry_run=self.dry_run)
        desired = self.builder.desired_state()
        report.declared = set(desired)

        self._remove_undeclared(desired, report)
        for name, launch in desired.items():
            self._converge(name, launch, report)
        return report

    def _remove_undeclared(self, desired: dict[str, LaunchSpec], report: ReconcileReport) -> None:
        try:
            managed = self.docker.list_managed()
        except DockerCommandError as e:
            log_event("ERROR", f"Failed to list containers - will not attempt cleanup: {e}")
            return
        report.managed = managed
        log_event("DEBUG", f"Managed containers found: {sorted(managed)}")

        for name in sorted(managed - set(desired)):
            log_event("INFO", "Managed container not in provision data. Removing.", container=name)
            report.add(self._remove(name, "undeclared"))

    def _converge(self, name: str, launch: LaunchSpec, report: ReconcileReport) -> None:
        if isinstance(launch, Disabled):
            if not self.docker.exists(name):
                log_event("DEBUG", "Container did not exist, no need to try and remove.", container=name)
                return
            log_event("INFO", f"Removing disabled container ({launch.reason}).", container=name)
            report.add(self._remove(name, "disabled"))
            return

        try:
            args = launch.argv()
        except ValueError as e:
            log_event("ERROR", f"Could not split command line for container - skipping: {e}", container=name)
            report.add(Action("skip", name, "unparseable command", ok=False, detail=str(e)))
            return

        fresh = launch.fingerprint
        existing = self.docker.applied_fingerprint(name)
        if existing is None:
            log_event("INFO", "Starting container", container=name)
            report.add(self._start(name, launch, args, "start", "new"))
        elif existing == fresh:
            log_event("DEBUG", "Container launch config is identical: taking no action", container=name)
        else:
            log_event(
                "INFO",
                "Container configuration has changed - replacing old container.",
                container=name,
            )
            log_event("DEBUG", f"Applied {decode_fingerprint(existing)!r}, published {launch.line!r}", container=name)
            removed = self._remove(name, "changed")
            if not removed.ok:
                report.add(Action("restart", name, "changed", ok=False, detail=removed.detail))
                return
            report.add(self._start(name, launch, args, "restart", "changed"))

    def _start(self, name: str, launch: Command, args: list[str], kind: str, reason: str) -> Action:
        if self.dry_run:
            log_event("INFO", f"dry-run: would run {args}", container=name)
            return Action(kind, name, reason)
        try:
            self.docker.run(name, launch.fingerprint, args)
        except DockerCommandError as e:
            log_event("ERROR", f"Error starting container: {e}", container=name)
            return Action(kind, name, reason, ok=False, detail=str(e))
        return Action(kind, name, reason)

    def _remove(self, name: str, reason: str) -> Action:
        if self.dry_run:
            log_event("INFO", "dry-run: would kill and remove", container=name)
            return Action("remove", name, reason)
        try:
            self.docker.stop_and_remove(name)
        except DockerCommandError as e:
            log_event("ERROR", f"Error removing container: {e}", container=name)
            return Action("remove", name, reason, ok=False, detail=str(e))
        return Action("remove", name, reason)
