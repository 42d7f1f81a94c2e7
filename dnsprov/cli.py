from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace

from .desired import DesiredStateBuilder
from .docker_ops import DockerCLI
from .logging_config import init_logging
from .reconciler import Reconciler
from .resolver import DnsTxtLookup, Resolver
from .settings import ConfigurationError, Settings, require_executable

logger = logging.getLogger("dnsprov")


def build_parser(defaults: Settings) -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="dnsprov",
        description="Launch and converge docker containers from DNS TXT records keyed by this host's name.",
    )
    p.add_argument(
        "--dns-prefix",
        default=defaults.prefix,
        help="Prefixed name for DNS configuration records. Prepended to the hostname.",
    )
    p.add_argument("--hostname", default=defaults.hostname, help="Hostname to query as. Defaults to system hostname.")
    p.add_argument("--docker-cmd", default=defaults.docker_cmd, help="Path to the docker command.")
    p.add_argument(
        "--inheritance",
        action=argparse.BooleanOptionalAction,
        default=defaults.inheritance,
        help="Collect container names from every parent domain instead of stopping at the first match.",
    )
    p.add_argument("--log-level", default=defaults.log_level, help="Logging level (debug, info, warn, error).")
    p.add_argument(
        "--dry-run",
        action=argparse.BooleanOptionalAction,
        default=defaults.dry_run,
        help="Log what would change without starting or removing containers.",
    )
    p.add_argument(
        "--nameserver",
        action="append",
        dest="nameservers",
        default=None,
        help="Nameserver to query (repeatable). Defaults to the system resolver configuration.",
    )
    p.add_argument("--dns-timeout", type=float, default=defaults.dns_timeout_s, help="Seconds per DNS query.")
    p.add_argument(
        "--docker-timeout", type=float, default=defaults.docker_timeout_s, help="Seconds per docker command."
    )
    return p


def settings_from_args(argv: list[str] | None = None, base: Settings | None = None) -> Settings:
    base = base or Settings()
    args = build_parser(base).parse_args(argv)
    return replace(
        base,
        prefix=args.dns_prefix,
        hostname=args.hostname or None,
        docker_cmd=args.docker_cmd,
        inheritance=args.inheritance,
        log_level=args.log_level,
        dry_run=args.dry_run,
        nameservers=tuple(args.nameservers) if args.nameservers else base.nameservers,
        dns_timeout_s=args.dns_timeout,
        docker_timeout_s=args.docker_timeout,
    )


def build_reconciler(settings: Settings, lookup=None, docker: DockerCLI | None = None) -> Reconciler:
    """Wire the components for one pass. ``settings`` must already be resolved."""
    if lookup is None:
        lookup = DnsTxtLookup(nameservers=settings.nameservers, timeout_s=settings.dns_timeout_s)
    builder = DesiredStateBuilder(
        Resolver(lookup),
        prefix=settings.prefix,
        hostname=settings.hostname or "",
        inherit=settings.inheritance,
    )
    if docker is None:
        docker = DockerCLI(settings.docker_cmd, timeout_s=settings.docker_timeout_s)
    return Reconciler(builder, docker, dry_run=settings.dry_run)


def main(argv: list[str] | None = None) -> int:
    settings = settings_from_args(argv)
    init_logging(settings.log_level)

    try:
        docker_path = require_executable(settings.docker_cmd)
        settings = replace(settings.resolved(), docker_cmd=docker_path)
        reconciler = build_reconciler(settings)
    except ConfigurationError as e:
        logger.error("%s", e)
        return 1

    logger.info("Using hostname %s", settings.hostname)
    report = reconciler.run_once()
    logger.info("%s", report.summary())
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
