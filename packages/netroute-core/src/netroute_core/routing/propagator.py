"""
Distance-vector route propagation between routers.

Every router starts with a one-entry table (its own subnet, reached through
itself) and repeatedly merges the tables of its router neighbours until a full
pass over all router-to-router links changes nothing.

Merge rule for a neighbour path P to some subnet, candidate = [neighbour] + P
(or just P for the neighbour's own subnet, whose path is [neighbour]):
    - take it when there is no entry yet,
    - or when it has strictly fewer hops,
    - or when it has as many hops and the neighbour's address is lower than
      the current first hop.

Tables are rebuilt from scratch on every convergence; they are never patched
incrementally across mutations.
"""

from __future__ import annotations

from ipaddress import IPv4Address
from typing import Mapping

from netroute_core.codebase.debug import get_logger, spy_trace
from netroute_core.errors import ConvergenceError
from netroute_core.models.network import System
from netroute_core.models.routing import ConvergenceReport, PropagatorState, RouterTable, frozen_table
from netroute_core.topology import Topology

logger = get_logger("routing")


def merge_neighbor_table(
    table: RouterTable,
    router: System,
    neighbor: System,
    neighbor_table: Mapping[str, tuple[System, ...]],
) -> int:
    """
    Merge one neighbour's advertised paths into ``table`` in place.

    Returns:
        Number of entries that were added or replaced.
    """
    updates = 0
    for cidr, path in neighbor_table.items():
        if cidr == router.subnet:
            continue

        # the neighbour's own subnet is advertised as (neighbor,)
        candidate = path if path[0] == neighbor else (neighbor, *path)
        current = table.get(cidr)
        if (
            current is None
            or len(candidate) < len(current)
            or (len(candidate) == len(current) and int(neighbor.address) < int(current[0].address))
        ):
            table[cidr] = candidate
            updates += 1
    return updates


class RoutePropagator:
    """Keeps one routing table per router, derived from the topology store."""

    def __init__(self, topology: Topology):
        self._topology = topology
        self._tables: dict[IPv4Address, RouterTable] = {}
        self._state = PropagatorState.STALE
        self._last_report: ConvergenceReport | None = None

    @property
    def state(self) -> PropagatorState:
        return self._state

    @property
    def last_report(self) -> ConvergenceReport | None:
        return self._last_report

    def mark_stale(self) -> None:
        self._state = PropagatorState.STALE

    def _router_links(self) -> list[tuple[System, System]]:
        """Router-to-router links as (lower, higher) address pairs, in address order."""
        links = []
        for connection in self._topology.connections():
            a = self._topology.system_by_address(connection.first)
            b = self._topology.system_by_address(connection.second)
            if a is None or b is None or not (a.is_router and b.is_router):
                continue
            if int(b.address) < int(a.address):
                a, b = b, a
            links.append((a, b))
        links.sort(key=lambda pair: (int(pair[0].address), int(pair[1].address)))
        return links

    def _improve(self, router: System, neighbor: System) -> int:
        return merge_neighbor_table(
            self._tables[router.address], router, neighbor, self._tables[neighbor.address]
        )

    @spy_trace
    def converge(self) -> ConvergenceReport:
        """Rebuild every router table and run full passes until a pass changes nothing.

        Raises:
            ConvergenceError: if more than ``router_count + 1`` passes are needed
        """
        routers = self._topology.routers()
        self._tables = {router.address: {router.subnet: (router,)} for router in routers}
        links = self._router_links()
        limit = max(1, len(routers)) + 1

        passes = 0
        updates = 0
        changed = True
        while changed:
            if passes >= limit:
                raise ConvergenceError(f"No fixed point after {passes} passes over {len(routers)} routers")
            passes += 1
            pass_updates = 0
            for a, b in links:
                pass_updates += self._improve(a, b)
                pass_updates += self._improve(b, a)
            logger.debug("pass %d: %d table update(s)", passes, pass_updates)
            updates += pass_updates
            changed = pass_updates > 0

        self._state = PropagatorState.CONVERGED
        self._last_report = ConvergenceReport(passes=passes, updates=updates, routers=len(routers))
        logger.info(
            "converged %d router table(s) over %d link(s) in %d pass(es)", len(routers), len(links), passes
        )
        return self._last_report

    def _ensure_converged(self) -> None:
        if self._state is PropagatorState.STALE:
            self.converge()

    def table(self, router: System) -> Mapping[str, tuple[System, ...]]:
        """Read-only snapshot of a router's table; empty for hosts and unknown systems."""
        self._ensure_converged()
        return frozen_table(self._tables.get(router.address, {}))

    def tables(self) -> dict[System, Mapping[str, tuple[System, ...]]]:
        self._ensure_converged()
        return {router: self.table(router) for router in self._topology.routers()}

    def path_to(self, router: System, cidr: str) -> tuple[System, ...] | None:
        """Stored router hops from ``router`` toward ``cidr``, or None when unknown."""
        self._ensure_converged()
        return self._tables.get(router.address, {}).get(cidr)
