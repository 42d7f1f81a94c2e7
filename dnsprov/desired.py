from __future__ import annotations

import logging

from .docker_ops import validate_container_name
from .logging_config import log_event
from .models import Command, Disabled, LaunchSpec
from .resolver import Resolver

logger = logging.getLogger(__name__)


def _escape(text: str) -> str:
    return text.replace("{", "{{").replace("}", "}}")


class DesiredStateBuilder:
    """Builds the declared container set and launch commands from DNS."""

    def __init__(self, resolver: Resolver, prefix: str, hostname: str, inherit: bool = False):
        self.resolver = resolver
        self.prefix = prefix
        self.hostname = hostname
        self.inherit = inherit

    def declared_containers(self) -> set[str]:
        """Union of the names published at ``<prefix>.<suffix>``.

        Walks every suffix when inheritance is on, otherwise stops at the first answer.
        """
        template = f"{_escape(self.prefix)}.{{suffix}}"
        names: set[str] = set()
        for answer in self.resolver.resolve_chain(template, self.hostname, inherit=self.inherit):
            for raw in answer.values:
                name = raw.strip()
                if not name:
                    continue
                try:
                    validate_container_name(name)
                except ValueError as e:
                    log_event("ERROR", f"Ignoring name published at {answer.name}: {e}", container=name)
                    continue
                names.add(name)
        return names

    def resolve_command(self, container: str) -> LaunchSpec:
        """Command published at ``<container>.<prefix>.<suffix>`` for the most specific suffix.

        Only the first TXT value of the matching record counts, and records from
        less specific suffixes are never merged in, inheritance or not.
        """
        template = f"{_escape(container)}.{_escape(self.prefix)}.{{suffix}}"
        answers = self.resolver.resolve_chain(template, self.hostname, inherit=False)
        if not answers:
            return Disabled()
        line = answers[0].values[0]
        if not line.strip():
            return Disabled(reason=f"empty command record at {answers[0].name}")
        logger.debug("Lookup %s found config %r", answers[0].name, line)
        return Command(line=line)

    def desired_state(self) -> dict[str, LaunchSpec]:
        declared = self.declared_containers()
        log_event("INFO", f"DNS specifies containers: {sorted(declared)}")
        return {name: self.resolve_command(name) for name in sorted(declared)}
