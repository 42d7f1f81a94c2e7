from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Sequence

import dns.exception
import dns.resolver

from .settings import ConfigurationError

logger = logging.getLogger(__name__)


class TxtLookupFailure(Exception):
    """A TXT query produced no usable answer."""


class TxtNotFound(TxtLookupFailure):
    """NXDOMAIN, or the name exists without TXT data."""


class TxtLookupError(TxtLookupFailure):
    """Transport or server failure (timeout, SERVFAIL, no reachable nameserver)."""


# name -> TXT values in answer order; raises TxtLookupFailure.
TxtLookup = Callable[[str], "list[str]"]


class DnsTxtLookup:
    """TXT lookups through dnspython.

    Character-strings of one TXT record are joined into a single value.
    """

    def __init__(self, nameservers: Sequence[str] = (), timeout_s: float = 5.0):
        try:
            self._resolver = dns.resolver.Resolver(configure=not nameservers)
        except dns.resolver.NoResolverConfiguration as e:
            raise ConfigurationError(f"No usable DNS resolver configuration: {e}; pass --nameserver.") from e
        if nameservers:
            self._resolver.nameservers = list(nameservers)
        self._resolver.timeout = timeout_s
        self._resolver.lifetime = timeout_s

    def __call__(self, name: str) -> list[str]:
        try:
            answer = self._resolver.resolve(name, "TXT", search=False)
        except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer) as e:
            raise TxtNotFound(f"{name}: {type(e).__name__}") from e
        except dns.exception.DNSException as e:
            raise TxtLookupError(f"{name}: {type(e).__name__}: {e}") from e
        return [b"".join(rdata.strings).decode("utf-8", errors="replace") for rdata in answer]


@dataclass(frozen=True)
class TxtAnswer:
    name: str
    values: list[str]


def domain_suffixes(hostname: str) -> list[str]:
    """All contiguous tails of ``hostname``, most specific first.

    >>> domain_suffixes("a.b.example.com")
    ['a.b.example.com', 'b.example.com', 'example.com', 'com']
    """
    labels = hostname.rstrip(".").split(".")
    return [".".join(labels[i:]) for i in range(len(labels))]


class Resolver:
    """Walks the suffixes of a hostname issuing one TXT query per suffix."""

    def __init__(self, lookup: TxtLookup):
        self.lookup = lookup

    def resolve_chain(self, template: str, hostname: str, inherit: bool = False) -> list[TxtAnswer]:
        """Query ``template`` (with ``{suffix}`` substituted) for each suffix of ``hostname``.

        First-match mode (``inherit=False``) returns at the first suffix with a
        non-empty answer. Inherited mode queries every suffix and returns every
        answer in walk order. An empty list means nothing is configured.
        """
        answers: list[TxtAnswer] = []
        for suffix in domain_suffixes(hostname):
            name = template.format(suffix=suffix)
            try:
                values = self.lookup(name)
            except TxtNotFound as e:
                logger.debug("No record at %s (%s)", name, e)
                continue
            except TxtLookupError as e:
                logger.warning("Failed querying %s: %s", name, e)
                continue
            if not values:
                logger.debug("Empty answer at %s", name)
                continue

            logger.debug("Lookup %s found %s", name, values)
            answers.append(TxtAnswer(name=name, values=list(values)))
            if not inherit:
                break
        return answers
