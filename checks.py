"""
Structural checks over a declared Topology.

Run by __main__ before any resource is registered, so a broken reference or a
lost invariant fails the program before the engine plans a single provider
call. ``check_topology`` collects every violation; ``validate`` raises them
together.
"""

from components._helpers import hostname_covered
from topology import APEX, WWW, Topology


class TopologyError(ValueError):
    """The declared topology is inconsistent."""

    def __init__(self, violations: list[str]):
        self.violations = violations
        super().__init__("invalid topology:\n  - " + "\n  - ".join(violations))


def _check_alias_records(topology: Topology) -> list[str]:
    violations = []
    for record in topology.alias_records:
        if record.alias_target not in topology.distributions:
            violations.append(
                f"alias record {record.name} {record.type} targets undeclared "
                f"distribution {record.alias_target!r}"
            )
        if record.zone != topology.zone.key:
            violations.append(
                f"alias record {record.name} {record.type} is in undeclared zone {record.zone!r}"
            )
    return violations


def _check_origins(topology: Topology) -> list[str]:
    return [
        f"distribution {dist.key!r} uses undeclared origin bucket {dist.origin_bucket!r}"
        for dist in topology.distributions.values()
        if dist.origin_bucket not in topology.buckets
    ]


def _check_certificate(topology: Topology) -> list[str]:
    violations = []
    certificate = topology.certificate
    referenced = {dist.certificate for dist in topology.distributions.values()}
    if len(referenced) > 1:
        violations.append(
            "distributions reference different certificates: " + ", ".join(sorted(referenced))
        )
    for key in sorted(referenced - {certificate.key}):
        violations.append(f"distributions reference undeclared certificate {key!r}")

    for dist in topology.distributions.values():
        for alias in dist.aliases:
            if not hostname_covered(alias, certificate.names):
                violations.append(
                    f"alias {alias} of distribution {dist.key!r} is not covered by "
                    f"certificate names {', '.join(certificate.names)}"
                )
    return violations


def _check_force_destroy(topology: Topology) -> list[str]:
    return [
        f"bucket {bucket.name} does not set force_destroy"
        for bucket in topology.buckets.values()
        if not bucket.force_destroy
    ]


def _check_forwarding(topology: Topology) -> list[str]:
    violations = []
    apex = topology.distributions.get(APEX)
    www = topology.distributions.get(WWW)
    if apex is None or www is None:
        return ["both apex and www distributions must be declared"]

    if not apex.cache_behavior.forward_query_string:
        violations.append("apex distribution must forward query strings")
    if "Origin" not in apex.cache_behavior.forward_headers:
        violations.append("apex distribution must forward the Origin header")
    if www.cache_behavior.forward_query_string:
        violations.append("www distribution must not forward query strings")
    return violations


def _check_duplicates(topology: Topology) -> list[str]:
    violations = []
    seen_buckets = set()
    for bucket in topology.buckets.values():
        if bucket.name in seen_buckets:
            violations.append(f"bucket name {bucket.name} is declared more than once")
        seen_buckets.add(bucket.name)

    seen_records = set()
    for record in topology.records:
        key = (record.zone, record.name, record.type)
        if key in seen_records:
            violations.append(f"record {record.name} {record.type} is declared more than once")
        seen_records.add(key)
    return violations


_CHECKS = (
    _check_duplicates,
    _check_alias_records,
    _check_origins,
    _check_certificate,
    _check_force_destroy,
    _check_forwarding,
)


def check_topology(topology: Topology) -> list[str]:
    """Return every violation found in topology, empty when it is consistent."""
    violations = []
    for check in _CHECKS:
        violations.extend(check(topology))
    return violations


def validate(topology: Topology) -> Topology:
    """
    Raise TopologyError if topology has any violation; return it unchanged otherwise.
    """
    violations = check_topology(topology)
    if violations:
        raise TopologyError(violations)
    return topology
