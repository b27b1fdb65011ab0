"""
In-memory topology store.

Holds subnets, systems (indexed by address and by name) and connections
(indexed by their unordered endpoint pair). The store enforces the structural
rules on every mutation but runs no routing logic; the route propagator and
the path finder consult it on every call instead of caching its contents.

All getters return snapshots (tuples or read-only mapping copies) taken at call
time.
"""

from __future__ import annotations

from ipaddress import IPv4Address
from types import MappingProxyType
from typing import Mapping

from netroute_core.addressing import in_range, overlaps, parse_address
from netroute_core.codebase.debug import get_logger, spy_trace
from netroute_core.errors import (
    AddressOutOfRangeError,
    ConnectionRuleError,
    DuplicateConnectionError,
    DuplicateSystemError,
    OverlappingSubnetError,
    UnknownSubnetError,
    UnknownSystemError,
)
from netroute_core.models.network import Connection, Subnet, System

logger = get_logger("topology")

SystemRef = System | IPv4Address | str


def pair_key(a: IPv4Address, b: IPv4Address) -> frozenset[IPv4Address]:
    return frozenset((a, b))


class Topology:
    def __init__(self) -> None:
        self._subnets: dict[str, Subnet] = {}
        self._members: dict[str, dict[IPv4Address, System]] = {}
        self._routers: dict[str, System] = {}
        self._by_address: dict[IPv4Address, System] = {}
        self._by_name: dict[str, System] = {}
        self._connections: dict[frozenset[IPv4Address], Connection] = {}

    # -------------------------------
    # Mutation
    # -------------------------------

    @spy_trace
    def add_subnet(self, subnet: Subnet) -> Subnet:
        if subnet.cidr in self._subnets:
            raise OverlappingSubnetError(f"Subnet {subnet.cidr} already exists")
        for existing in self._subnets.values():
            if overlaps(existing.cidr, subnet.cidr):
                raise OverlappingSubnetError(f"Subnet {subnet.cidr} overlaps {existing.cidr}")
        self._subnets[subnet.cidr] = subnet
        self._members[subnet.cidr] = {}
        logger.debug("added subnet %s", subnet.cidr)
        return subnet

    @spy_trace
    def add_system(self, system: System) -> System:
        if system.subnet not in self._subnets:
            raise UnknownSubnetError(f"Unknown subnet {system.subnet} for system {system.name}")
        if not in_range(system.subnet, system.address):
            raise AddressOutOfRangeError(f"Address {system.address} is not in subnet {system.subnet}")
        if system.address in self._by_address:
            raise DuplicateSystemError(f"Address {system.address} already belongs to {self._by_address[system.address].name}")
        if system.name in self._by_name:
            raise DuplicateSystemError(f"System name {system.name} already in use")
        if system.is_router and system.subnet in self._routers:
            raise DuplicateSystemError(
                f"Subnet {system.subnet} already has router {self._routers[system.subnet].name}"
            )

        self._by_address[system.address] = system
        self._by_name[system.name] = system
        self._members[system.subnet][system.address] = system
        if system.is_router:
            self._routers[system.subnet] = system
        logger.debug("added %s %s [%s] to %s", system.role.value, system.name, system.address, system.subnet)
        return system

    @spy_trace
    def remove_system(self, ref: SystemRef) -> tuple[Connection, ...]:
        """Remove a system and every connection touching it.

        Returns:
            The connections that were removed with the system.
        """
        system = self._require(ref)
        removed = tuple(c for c in self._connections.values() if c.touches(system.address))
        for connection in removed:
            del self._connections[connection.key]

        del self._by_address[system.address]
        del self._by_name[system.name]
        del self._members[system.subnet][system.address]
        if self._routers.get(system.subnet) == system:
            del self._routers[system.subnet]
        logger.debug("removed %s and %d connection(s)", system.name, len(removed))
        return removed

    @spy_trace
    def add_connection(self, connection: Connection) -> Connection:
        a = self._require(connection.first)
        b = self._require(connection.second)
        if a.address == b.address:
            raise ConnectionRuleError(f"Cannot connect {a.name} to itself")
        if connection.key in self._connections:
            raise DuplicateConnectionError(f"Connection {a.name} <--> {b.name} already exists")

        if a.subnet == b.subnet:
            if connection.weight is None:
                raise ConnectionRuleError(f"Connection inside subnet must be weighted: {a.name} <--> {b.name}")
        else:
            if not (a.is_router and b.is_router):
                raise ConnectionRuleError(
                    f"Only routers can have connections to other subnets: {a.name} <--> {b.name}"
                )
            if connection.weight is not None:
                raise ConnectionRuleError(f"Connection between routers must not be weighted: {a.name} <--> {b.name}")

        self._connections[connection.key] = connection
        logger.debug("connected %s <--> %s (weight=%s)", a.name, b.name, connection.weight)
        return connection

    @spy_trace
    def remove_connection(self, a: SystemRef, b: SystemRef) -> bool:
        """Remove the connection between a and b.

        Returns:
            False when no such connection exists (nothing is changed).
        """
        key = pair_key(self._address_of(a), self._address_of(b))
        if key not in self._connections:
            return False
        del self._connections[key]
        logger.debug("disconnected %s", sorted(str(x) for x in key))
        return True

    # -------------------------------
    # Queries
    # -------------------------------

    def connection_exists(self, a: SystemRef, b: SystemRef) -> bool:
        return pair_key(self._address_of(a), self._address_of(b)) in self._connections

    def connection_between(self, a: SystemRef, b: SystemRef) -> Connection | None:
        return self._connections.get(pair_key(self._address_of(a), self._address_of(b)))

    def subnet_by_cidr(self, cidr: str) -> Subnet | None:
        return self._subnets.get(cidr)

    def system_by_address(self, address: IPv4Address | str) -> System | None:
        try:
            return self._by_address.get(parse_address(address))
        except ValueError:
            return None

    def system_by_name(self, name: str) -> System | None:
        return self._by_name.get(name)

    def subnets(self) -> tuple[Subnet, ...]:
        return tuple(self._subnets.values())

    def systems(self) -> tuple[System, ...]:
        return tuple(self._by_address.values())

    def connections(self) -> tuple[Connection, ...]:
        return tuple(self._connections.values())

    def members(self, cidr: str) -> tuple[System, ...]:
        return tuple(self._members.get(cidr, {}).values())

    def router_of(self, cidr: str) -> System | None:
        return self._routers.get(cidr)

    def routers(self) -> tuple[System, ...]:
        return tuple(self._routers.values())

    def routers_by_subnet(self) -> Mapping[str, System]:
        return MappingProxyType(dict(self._routers))

    def connections_of(self, ref: SystemRef) -> tuple[Connection, ...]:
        address = self._address_of(ref)
        return tuple(c for c in self._connections.values() if c.touches(address))

    def __contains__(self, ref: object) -> bool:
        try:
            return self._address_of(ref) in self._by_address  # type: ignore[arg-type]
        except ValueError:
            return False

    def __len__(self) -> int:
        return len(self._by_address)

    # -------------------------------
    # Internal
    # -------------------------------

    @staticmethod
    def _address_of(ref: SystemRef) -> IPv4Address:
        if isinstance(ref, System):
            return ref.address
        return parse_address(ref)

    def _require(self, ref: SystemRef) -> System:
        system = self._by_address.get(self._address_of(ref))
        if system is None:
            raise UnknownSystemError(f"Unknown system: {ref}")
        return system
