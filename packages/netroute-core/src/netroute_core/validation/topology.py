"""
Topology validation for netroute.

Checks a parsed topology record against the structural rules (ranges,
uniqueness, link weights, router-only links) before it is turned into a live
network, and reports every problem at once instead of stopping at the first.
"""

from __future__ import annotations

from collections import Counter

from netroute_core.addressing import first_address, has_host_bits, in_range, is_valid_cidr, overlaps, parse_address
from netroute_core.config import Settings
from netroute_core.errors import TopologyValidationError
from netroute_core.models.records import SubnetRec, SystemRec, TopologyRec
from netroute_core.models.report import Finding, Report
from netroute_core.network import Network


def validate_subnets(rec: TopologyRec) -> list[Finding]:
    """CIDR syntax and pairwise range overlap."""
    findings = []
    valid: list[SubnetRec] = []

    for subnet in rec.subnets:
        if not is_valid_cidr(subnet.cidr):
            findings.append(Finding(
                severity="FAIL",
                code="INVALID_CIDR",
                message=f"subnet {subnet.cidr!r} is not a valid CIDR",
                context={"cidr": subnet.cidr},
            ))
            continue
        if has_host_bits(subnet.cidr):
            findings.append(Finding(
                severity="FAIL",
                code="HOST_BITS_SET",
                message=f"subnet {subnet.cidr} has host bits set (network address is {first_address(subnet.cidr)})",
                context={"cidr": subnet.cidr},
            ))
        for other in valid:
            if overlaps(other.cidr, subnet.cidr):
                findings.append(Finding(
                    severity="FAIL",
                    code="OVERLAPPING_SUBNET",
                    message=f"subnet {subnet.cidr} overlaps {other.cidr}",
                    context={"cidr": subnet.cidr, "other": other.cidr},
                ))
        valid.append(subnet)

    for subnet in valid:
        routers = [s for s in subnet.systems if s.role == "router"]
        if not routers:
            findings.append(Finding(
                severity="WARN",
                code="NO_ROUTER",
                message=f"subnet {subnet.cidr} has no router and is unreachable from other subnets",
                context={"cidr": subnet.cidr},
            ))
        elif len(routers) > 1:
            findings.append(Finding(
                severity="FAIL",
                code="MULTIPLE_ROUTERS",
                message=f"subnet {subnet.cidr} declares {len(routers)} routers",
                context={"cidr": subnet.cidr, "routers": [r.name for r in routers]},
            ))
    return findings


def validate_systems(rec: TopologyRec) -> list[Finding]:
    """Address syntax, subnet membership and name/address uniqueness."""
    findings = []
    names = Counter(system.name for _, system in rec.systems())
    addresses: Counter = Counter()

    for subnet, system in rec.systems():
        try:
            address = parse_address(system.address)
        except ValueError:
            findings.append(Finding(
                severity="FAIL",
                code="INVALID_ADDRESS",
                message=f"system {system.name} has invalid address {system.address!r}",
                context={"system": system.name, "address": system.address},
            ))
            continue
        addresses[address] += 1
        if is_valid_cidr(subnet.cidr) and not in_range(subnet.cidr, address):
            findings.append(Finding(
                severity="FAIL",
                code="ADDRESS_OUT_OF_RANGE",
                message=f"system {system.name} address {address} is not in subnet {subnet.cidr}",
                context={"system": system.name, "address": str(address), "cidr": subnet.cidr},
            ))

    for name, count in names.items():
        if count > 1:
            findings.append(Finding(
                severity="FAIL",
                code="DUPLICATE_NAME",
                message=f"system name {name} is declared {count} times",
                context={"system": name},
            ))
    for address, count in addresses.items():
        if count > 1:
            findings.append(Finding(
                severity="FAIL",
                code="DUPLICATE_ADDRESS",
                message=f"address {address} is declared {count} times",
                context={"address": str(address)},
            ))
    return findings


def validate_connections(rec: TopologyRec) -> list[Finding]:
    """Endpoint existence, duplicates, weight rules and router-only cross-subnet links."""
    findings = []
    owners: dict[str, tuple[SubnetRec, SystemRec]] = {system.name: (subnet, system) for subnet, system in rec.systems()}
    seen: set[frozenset[str]] = set()
    linked: set[str] = set()
    inter_linked: set[str] = set()

    for connection in rec.connections:
        a_name, b_name = connection.between
        label = f"{a_name} <--> {b_name}"
        context = {"between": [a_name, b_name], "weight": connection.weight}

        missing = [n for n in (a_name, b_name) if n not in owners]
        if missing:
            findings.append(Finding(
                severity="FAIL",
                code="UNKNOWN_SYSTEM",
                message=f"connection {label} references unknown system(s) {', '.join(missing)}",
                context=context,
            ))
            continue
        if a_name == b_name:
            findings.append(Finding(
                severity="FAIL", code="SELF_CONNECTION", message=f"connection {label} loops back", context=context
            ))
            continue

        key = frozenset((a_name, b_name))
        if key in seen:
            findings.append(Finding(
                severity="FAIL", code="DUPLICATE_CONNECTION", message=f"connection {label} already exists", context=context
            ))
            continue
        seen.add(key)
        linked.update(key)

        if connection.weight is not None and connection.weight < 1:
            findings.append(Finding(
                severity="FAIL",
                code="INVALID_WEIGHT",
                message=f"connection {label} has non-positive weight {connection.weight}",
                context=context,
            ))

        (subnet_a, system_a), (subnet_b, system_b) = owners[a_name], owners[b_name]
        if subnet_a.cidr == subnet_b.cidr:
            if connection.weight is None:
                findings.append(Finding(
                    severity="FAIL",
                    code="UNWEIGHTED_CONNECTION",
                    message=f"connection inside subnet must be weighted: {label}",
                    context=context,
                ))
        elif not (system_a.role == "router" and system_b.role == "router"):
            findings.append(Finding(
                severity="FAIL",
                code="CROSS_SUBNET_HOST",
                message=f"only routers can have connections to other subnets: {label}",
                context=context,
            ))
        else:
            inter_linked.update(key)
            if connection.weight is not None:
                findings.append(Finding(
                    severity="FAIL",
                    code="WEIGHTED_ROUTER_LINK",
                    message=f"connection between routers must not be weighted: {label}",
                    context=context,
                ))

    for name, (subnet, system) in owners.items():
        if name not in linked:
            findings.append(Finding(
                severity="WARN",
                code="ISOLATED_SYSTEM",
                message=f"system {name} in {subnet.cidr} has no connections",
                context={"system": name, "cidr": subnet.cidr},
            ))
        elif system.role == "router" and name not in inter_linked and len(rec.subnets) > 1:
            findings.append(Finding(
                severity="WARN",
                code="ROUTER_WITHOUT_UPLINK",
                message=f"router {name} has no connection to another subnet",
                context={"system": name, "cidr": subnet.cidr},
            ))
    return findings


def validate_topology(rec: TopologyRec) -> Report:
    """Run every topology check and fold the findings into one report."""
    findings = []
    findings += validate_subnets(rec)
    findings += validate_systems(rec)
    findings += validate_connections(rec)
    if not rec.subnets:
        findings.append(Finding(severity="INFO", code="EMPTY_TOPOLOGY", message="topology declares no subnets"))
    return Report.from_findings(findings)


def build_network(rec: TopologyRec, settings: Settings | None = None) -> Network:
    """Validate a record and build the live network from it.

    Raises:
        TopologyValidationError: if validation produced any FAIL finding
    """
    report = validate_topology(rec)
    if report.failed:
        first = report.by_severity("FAIL")[0]
        raise TopologyValidationError(
            f"Topology has {report.summary['fail']} error(s), first: {first.code}: {first.message}", report
        )
    return Network.from_record(rec, settings)
