"""
Heap-based shortest-path engine.

Paths inside one subnet come from Dijkstra over the subnet's weighted links.
Paths across subnets walk source -> source router, then the source router's
stored hops toward the destination subnet, then destination router ->
destination.

Tie-break: the frontier is a heap of (distance, numeric address), and a
predecessor is only replaced on a strictly shorter distance. Among equal-cost
routes the one discovered first is kept, which is stable for an unchanged
topology.
"""

from __future__ import annotations

import heapq
import math
from ipaddress import IPv4Address

from netroute_core.codebase.debug import get_logger, spy_trace
from netroute_core.models.network import System
from netroute_core.routing.propagator import RoutePropagator
from netroute_core.topology import Topology

logger = get_logger("paths")


class PathFinder:
    def __init__(self, topology: Topology, propagator: RoutePropagator):
        self._topology = topology
        self._propagator = propagator

    @spy_trace
    def find_shortest_path(self, source: System, destination: System) -> list[System]:
        """
        Full hop sequence from source to destination, both inclusive.

        Returns an empty list when no path exists. Callers are expected to
        reject source == destination before asking.
        """
        if source.subnet == destination.subnet:
            return self.intra_subnet_path(source, destination)
        return self._inter_subnet_path(source, destination)

    def intra_subnet_path(self, source: System, destination: System) -> list[System]:
        """Dijkstra restricted to the systems and links of the source's subnet."""
        cidr = source.subnet
        members = {s.address: s for s in self._topology.members(cidr)}
        if source.address not in members or destination.address not in members:
            return []

        dist: dict[IPv4Address, float] = {source.address: 0}
        prev: dict[IPv4Address, IPv4Address] = {}
        settled: set[IPv4Address] = set()
        pq = [(0, int(source.address), source.address)]

        while pq:
            d_u, _, u = heapq.heappop(pq)
            if u in settled:
                continue
            settled.add(u)
            if u == destination.address:
                return self._reconstruct(prev, destination.address, members)

            for connection in self._topology.connections_of(u):
                v = connection.other(u)
                if v not in members or v in settled:
                    continue
                alt = d_u + connection.cost
                if alt < dist.get(v, math.inf):
                    dist[v] = alt
                    prev[v] = u
                    heapq.heappush(pq, (alt, int(v), v))

        logger.debug("no path inside %s from %s to %s", cidr, source.name, destination.name)
        return []

    def _inter_subnet_path(self, source: System, destination: System) -> list[System]:
        source_router = self._topology.router_of(source.subnet)
        dest_router = self._topology.router_of(destination.subnet)
        if source_router is None or dest_router is None:
            logger.debug("source or destination subnet does not have a router")
            return []

        to_router = self.intra_subnet_path(source, source_router)
        if not to_router:
            logger.debug("no path from %s to its router %s", source.name, source_router.name)
            return []

        hops = self._propagator.path_to(source_router, destination.subnet)
        if hops is None:
            logger.debug("router %s has no route to %s", source_router.name, destination.subnet)
            return []

        from_router = self.intra_subnet_path(dest_router, destination)
        if not from_router:
            logger.debug("no path from router %s to %s", dest_router.name, destination.name)
            return []

        # hops ends at dest_router, which also opens from_router
        return [*to_router, *hops, *from_router[1:]]

    def path_cost(self, path: list[System]) -> int:
        """Sum of connection costs along consecutive systems of a path."""
        total = 0
        for a, b in zip(path, path[1:]):
            connection = self._topology.connection_between(a, b)
            if connection is None:
                raise ValueError(f"No connection between {a.name} and {b.name}")
            total += connection.cost
        return total

    @staticmethod
    def _reconstruct(
        prev: dict[IPv4Address, IPv4Address], target: IPv4Address, members: dict[IPv4Address, System]
    ) -> list[System]:
        path = [target]
        while path[-1] in prev:
            path.append(prev[path[-1]])
        path.reverse()
        return [members[address] for address in path]
