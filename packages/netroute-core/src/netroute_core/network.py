"""
Network facade used by the command layer.

Wraps one topology store, its route propagator and its path finder. Every
mutation is a single "mutate then reconverge" step; a rejected mutation raises
before anything changes, so router tables always match the store.
"""

from __future__ import annotations

from ipaddress import IPv4Address
from typing import Mapping

from netroute_core.addressing import address_key, cidr_key, first_address, last_address, parse_address
from netroute_core.codebase.debug import get_logger
from netroute_core.config import Settings
from netroute_core.errors import TopologyError, UnknownSubnetError, UnknownSystemError
from netroute_core.models.network import Connection, Role, Subnet, System
from netroute_core.models.records import ConnectionRec, SubnetRec, SystemRec, TopologyRec
from netroute_core.models.routing import ConvergenceReport
from netroute_core.routing import PathFinder, RoutePropagator
from netroute_core.topology import SystemRef, Topology

logger = get_logger("network")


def system_order(system: System) -> tuple[bool, str]:
    """Routers first, then by name."""
    return (not system.is_router, system.name)


class Network:
    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings.from_env()
        self.topology = Topology()
        self.propagator = RoutePropagator(self.topology)
        self.pathfinder = PathFinder(self.topology, self.propagator)

    def _reconverge(self) -> ConvergenceReport:
        self.propagator.mark_stale()
        return self.propagator.converge()

    # -------------------------------
    # Mutation (each one reconverges)
    # -------------------------------

    def add_subnet(self, subnet: Subnet | str) -> Subnet:
        if isinstance(subnet, str):
            subnet = Subnet(cidr=subnet)
        self.topology.add_subnet(subnet)
        self._reconverge()
        return subnet

    def add_system(self, system: System) -> System:
        self.topology.add_system(system)
        self._reconverge()
        return system

    def remove_system(self, ref: SystemRef) -> tuple[Connection, ...]:
        removed = self.topology.remove_system(self._require(ref))
        self._reconverge()
        return removed

    def add_connection(self, connection: Connection) -> Connection:
        self.topology.add_connection(connection)
        self._reconverge()
        return connection

    def connect(self, a: SystemRef, b: SystemRef, weight: int | None = None) -> Connection:
        """Build and add a connection from two system references."""
        first = self._require(a)
        second = self._require(b)
        return self.add_connection(Connection(first=first.address, second=second.address, weight=weight))

    def remove_connection(self, a: SystemRef, b: SystemRef) -> bool:
        """Returns False ("not found") without touching anything when a and b are not connected.

        Raises:
            UnknownSystemError: if either reference names no system
        """
        if not self.topology.remove_connection(self._require(a), self._require(b)):
            return False
        self._reconverge()
        return True

    def add_computer(self, cidr: str, address: IPv4Address | str) -> System:
        """Add a host named ``<computer_prefix><a_b_c_d>`` to an existing subnet."""
        if self.topology.subnet_by_cidr(cidr) is None:
            raise UnknownSubnetError(f"Unknown subnet {cidr}")
        address = parse_address(address)
        name = self.settings.computer_prefix + str(address).replace(".", "_")
        return self.add_system(System(name=name, address=address, subnet=cidr, role=Role.HOST))

    def remove_computer(self, cidr: str, address: IPv4Address | str) -> System:
        """Remove a host from the given subnet; routers cannot be removed this way."""
        if self.topology.subnet_by_cidr(cidr) is None:
            raise UnknownSubnetError(f"Unknown subnet {cidr}")
        system = self.topology.system_by_address(address)
        if system is None:
            raise UnknownSystemError(f"Unknown system: {address}")
        if system.is_router:
            raise TopologyError(f"{system.address} belongs to a router, not a computer")
        if system.subnet != cidr:
            raise TopologyError(f"{system.address} does not exist in subnet {cidr}")
        self.remove_system(system)
        return system

    # -------------------------------
    # Queries
    # -------------------------------

    def find_shortest_path(self, source: SystemRef, destination: SystemRef) -> list[System]:
        return self.pathfinder.find_shortest_path(self._require(source), self._require(destination))

    def subnet_by_cidr(self, cidr: str) -> Subnet | None:
        return self.topology.subnet_by_cidr(cidr)

    def system_by_address(self, address: IPv4Address | str) -> System | None:
        return self.topology.system_by_address(address)

    def system_by_name(self, name: str) -> System | None:
        return self.topology.system_by_name(name)

    def connection_exists(self, a: SystemRef, b: SystemRef) -> bool:
        """False when either reference names no system."""
        first, second = self._lookup(a), self._lookup(b)
        if first is None or second is None:
            return False
        return self.topology.connection_exists(first, second)

    def route_table(self, router: SystemRef) -> Mapping[str, tuple[System, ...]]:
        return self.propagator.table(self._require(router))

    def range_of(self, cidr: str) -> tuple[IPv4Address, IPv4Address]:
        if self.topology.subnet_by_cidr(cidr) is None:
            raise UnknownSubnetError(f"Unknown subnet {cidr}")
        return first_address(cidr), last_address(cidr)

    def list_subnets(self) -> list[Subnet]:
        return sorted(self.topology.subnets(), key=lambda s: cidr_key(s.cidr))

    def list_systems(self, cidr: str) -> list[System]:
        """Router first (if any), then the hosts in address order."""
        if self.topology.subnet_by_cidr(cidr) is None:
            raise UnknownSubnetError(f"Unknown subnet {cidr}")
        members = self.topology.members(cidr)
        routers = [s for s in members if s.is_router]
        hosts = sorted((s for s in members if not s.is_router), key=lambda s: address_key(s.address))
        return routers + hosts

    @property
    def is_empty(self) -> bool:
        return not self.topology.subnets()

    def _lookup(self, ref: SystemRef) -> System | None:
        """Resolve a system, address or name reference."""
        if isinstance(ref, System):
            return self.topology.system_by_address(ref.address)
        system = self.topology.system_by_address(ref)
        if system is None:
            system = self.topology.system_by_name(str(ref))
        return system

    def _require(self, ref: SystemRef) -> System:
        system = self._lookup(ref)
        if system is None:
            raise UnknownSystemError(f"Unknown system: {ref}")
        return system

    # -------------------------------
    # Records
    # -------------------------------

    @classmethod
    def from_record(cls, rec: TopologyRec, settings: Settings | None = None) -> "Network":
        """Build a network from a topology record, converging once at the end.

        Raises:
            TopologyError: on the first structural problem (run validation first
                for a full report)
            ValueError: on malformed addresses
        """
        network = cls(settings)
        for subnet_rec in rec.subnets:
            network.topology.add_subnet(Subnet(cidr=subnet_rec.cidr))
            for system_rec in subnet_rec.systems:
                network.topology.add_system(
                    System(
                        name=system_rec.name,
                        address=parse_address(system_rec.address),
                        subnet=subnet_rec.cidr,
                        role=Role(system_rec.role),
                    )
                )
        for connection_rec in rec.connections:
            a_name, b_name = connection_rec.between
            a = network.topology.system_by_name(a_name)
            b = network.topology.system_by_name(b_name)
            if a is None or b is None:
                missing = a_name if a is None else b_name
                raise UnknownSystemError(f"Connection references unknown system {missing}")
            network.topology.add_connection(
                Connection(first=a.address, second=b.address, weight=connection_rec.weight)
            )
        report = network._reconverge()
        logger.info(
            "built network: %d subnet(s), %d system(s), %d connection(s), %d pass(es)",
            len(network.topology.subnets()),
            len(network.topology),
            len(network.topology.connections()),
            report.passes,
        )
        return network

    def to_record(self) -> TopologyRec:
        subnets = []
        for subnet in self.topology.subnets():
            members = sorted(self.topology.members(subnet.cidr), key=system_order)
            subnets.append(
                SubnetRec(
                    cidr=subnet.cidr,
                    systems=[SystemRec(name=s.name, address=str(s.address), role=s.role.value) for s in members],
                )
            )
        connections = []
        for connection in self.topology.connections():
            a = self.topology.system_by_address(connection.first)
            b = self.topology.system_by_address(connection.second)
            connections.append(ConnectionRec(between=(a.name, b.name), weight=connection.weight))
        return TopologyRec(subnets=subnets, connections=connections)
