"""
Mermaid-style topology diagrams.

    graph
        subgraph 10.0.1.0/24
            Router1[10.0.1.1]
            PC1[10.0.1.2]
            Router1 <-->|5| PC1
        end
        Router1 <--> Router2

Systems whose name contains the router marker (default "Router") are routers.
Weighted links use ``A <-->|w| B``; unweighted router links use ``A <--> B``.
Lines that match none of the shapes above are ignored.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from netroute_core.codebase.debug import get_logger
from netroute_core.config import Settings
from netroute_core.data.loader import read_text
from netroute_core.models.records import ConnectionRec, SubnetRec, SystemRec, TopologyRec

if TYPE_CHECKING:
    from netroute_core.network import Network

logger = get_logger("data")

GRAPH_START = "graph"
SUBGRAPH_PREFIX = "subgraph"
SUBGRAPH_END = "end"
SYSTEM_OPEN = "["
SYSTEM_CLOSE = "]"
LINK = "<-->"
WEIGHT_FENCE = "|"
INDENT = "    "


def _parse_system(line: str, lineno: int, marker: str) -> SystemRec:
    name, _, rest = line.partition(SYSTEM_OPEN)
    address, closed, trailing = rest.partition(SYSTEM_CLOSE)
    name, address = name.strip(), address.strip()
    if not name or not address or not closed or trailing.strip():
        raise ValueError(f"Error parsing system on line {lineno}: {line}")
    role = "router" if marker in name else "host"
    return SystemRec(name=name, address=address, role=role)


def _parse_connection(line: str, lineno: int) -> ConnectionRec:
    left, _, right = line.partition(LINK)
    left, right = left.strip(), right.strip()
    weight: int | None = None

    if right.startswith(WEIGHT_FENCE):
        end = right.find(WEIGHT_FENCE, 1)
        if end == -1:
            raise ValueError(f"Error parsing connection on line {lineno}: {line}")
        try:
            weight = int(right[1:end].strip())
        except ValueError as e:
            raise ValueError(f"Error parsing connection weight on line {lineno}: {line}") from e
        right = right[end + 1 :].strip()

    if not left or not right:
        raise ValueError(f"Error parsing connection on line {lineno}: {line}")
    return ConnectionRec(between=(left, right), weight=weight)


def parse_mermaid(text: str, settings: Settings | None = None) -> TopologyRec:
    """Parse diagram text into a topology record (no structural validation)."""
    marker = (settings or Settings.from_env()).router_marker
    subnets: list[SubnetRec] = []
    connections: list[ConnectionRec] = []
    current: SubnetRec | None = None

    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line == GRAPH_START:
            continue

        if line.startswith(SUBGRAPH_PREFIX):
            parts = line.split()
            if len(parts) != 2:
                raise ValueError(f"Error parsing subnet on line {lineno}: {line}")
            current = SubnetRec(cidr=parts[1])
            subnets.append(current)
        elif SYSTEM_OPEN in line:
            if current is None:
                raise ValueError(f"System declared outside a subgraph on line {lineno}: {line}")
            current.systems.append(_parse_system(line, lineno, marker))
        elif LINK in line:
            connections.append(_parse_connection(line, lineno))
        elif line == SUBGRAPH_END:
            current = None
        else:
            logger.debug("ignoring line %d: %s", lineno, line)

    return TopologyRec(subnets=subnets, connections=connections)


def load_mermaid(path: Path | str, settings: Settings | None = None) -> TopologyRec:
    return parse_mermaid(read_text(path), settings)


def to_mermaid(network: Network) -> str:
    """
    Render a network back to diagram text.

    Inside a subgraph: routers first, then systems by name; links touching a
    router first, then by the first endpoint's name. Links between subnets
    follow all subgraphs.
    """
    from netroute_core.network import system_order

    topology = network.topology
    lines = [GRAPH_START]

    def names(connection):
        a = topology.system_by_address(connection.first)
        b = topology.system_by_address(connection.second)
        return a, b

    for subnet in topology.subnets():
        lines.append(f"{INDENT}{SUBGRAPH_PREFIX} {subnet.cidr}")
        for system in sorted(topology.members(subnet.cidr), key=system_order):
            lines.append(f"{INDENT * 2}{system.name}{SYSTEM_OPEN}{system.address}{SYSTEM_CLOSE}")

        inner = []
        for connection in topology.connections():
            a, b = names(connection)
            if a.subnet == subnet.cidr and b.subnet == subnet.cidr:
                inner.append((not (a.is_router or b.is_router), a.name, a, b, connection))
        inner.sort(key=lambda item: (item[0], item[1]))
        for _, _, a, b, connection in inner:
            lines.append(f"{INDENT * 2}{a.name} {LINK}{WEIGHT_FENCE}{connection.weight}{WEIGHT_FENCE} {b.name}")
        lines.append(f"{INDENT}{SUBGRAPH_END}")

    for connection in topology.connections():
        a, b = names(connection)
        if a.subnet != b.subnet:
            lines.append(f"{INDENT}{a.name} {LINK} {b.name}")

    return "\n".join(lines)
