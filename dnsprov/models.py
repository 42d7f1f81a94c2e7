from __future__ import annotations

import base64
import binascii
import shlex
from dataclasses import dataclass, field
from typing import Union


def encode_fingerprint(command_line: str) -> str:
    """Encode a raw command line as the label value stored on the container."""
    return base64.b64encode(command_line.encode("utf-8")).decode("ascii")


def decode_fingerprint(value: str) -> str | None:
    try:
        return base64.b64decode(value.encode("ascii"), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError):
        return None


@dataclass(frozen=True)
class Command:
    """Launch arguments for a container, as published in DNS."""

    line: str

    @property
    def fingerprint(self) -> str:
        return encode_fingerprint(self.line)

    def argv(self) -> list[str]:
        # shlex raises ValueError on unbalanced quotes or a trailing escape.
        return shlex.split(self.line)


@dataclass(frozen=True)
class Disabled:
    """No command record answered for the container."""

    reason: str = "no command record"


LaunchSpec = Union[Command, Disabled]


@dataclass(frozen=True)
class Action:
    kind: str  # start|restart|remove|skip
    container: str
    reason: str
    ok: bool = True
    detail: str = ""


@dataclass
class ReconcileReport:
    hostname: str
    dry_run: bool = False
    declared: set[str] = field(default_factory=set)
    managed: set[str] = field(default_factory=set)
    actions: list[Action] = field(default_factory=list)

    def add(self, action: Action) -> None:
        self.actions.append(action)

    def of_kind(self, kind: str) -> list[Action]:
        return [a for a in self.actions if a.kind == kind]

    @property
    def failures(self) -> list[Action]:
        return [a for a in self.actions if not a.ok]

    def summary(self) -> str:
        counts = {k: len(self.of_kind(k)) for k in ("start", "restart", "remove", "skip")}
        parts = " ".join(f"{k}={v}" for k, v in counts.items())
        prefix = "dry-run " if self.dry_run else ""
        return f"{prefix}pass for {self.hostname}: declared={len(self.declared)} {parts} failed={len(self.failures)}"
