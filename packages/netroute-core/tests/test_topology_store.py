"""
Tests for the in-memory topology store.

Covers subnet/system/connection admission rules, removal cascades and the
snapshot behaviour of the getters.
"""

from ipaddress import IPv4Address

import pytest
from netroute_core.errors import (
    AddressOutOfRangeError,
    ConnectionRuleError,
    DuplicateConnectionError,
    DuplicateSystemError,
    OverlappingSubnetError,
    UnknownSubnetError,
    UnknownSystemError,
)
from netroute_core.models.network import Connection, Role, Subnet, System
from netroute_core.topology import Topology


def host(name, address, subnet):
    return System(name=name, address=IPv4Address(address), subnet=subnet)


def router(name, address, subnet):
    return System(name=name, address=IPv4Address(address), subnet=subnet, role=Role.ROUTER)


def link(a, b, weight=None):
    return Connection(first=a.address, second=b.address, weight=weight)


@pytest.fixture
def topology():
    """Two /24 subnets, each with a router and one host, routers linked."""
    t = Topology()
    t.add_subnet(Subnet(cidr="10.0.1.0/24"))
    t.add_subnet(Subnet(cidr="10.0.2.0/24"))
    r1 = t.add_system(router("R1", "10.0.1.1", "10.0.1.0/24"))
    h1 = t.add_system(host("H1", "10.0.1.10", "10.0.1.0/24"))
    r2 = t.add_system(router("R2", "10.0.2.1", "10.0.2.0/24"))
    h2 = t.add_system(host("H2", "10.0.2.10", "10.0.2.0/24"))
    t.add_connection(link(h1, r1, 5))
    t.add_connection(link(h2, r2, 3))
    t.add_connection(link(r1, r2))
    return t


class TestSubnets:
    """Test subnet admission."""

    def test_duplicate_subnet_rejected(self, topology):
        with pytest.raises(OverlappingSubnetError):
            topology.add_subnet(Subnet(cidr="10.0.1.0/24"))

    def test_overlapping_subnet_rejected(self, topology):
        with pytest.raises(OverlappingSubnetError, match="overlaps"):
            topology.add_subnet(Subnet(cidr="10.0.0.0/16"))
        assert len(topology.subnets()) == 2

    def test_disjoint_subnet_accepted(self, topology):
        topology.add_subnet(Subnet(cidr="10.0.3.0/24"))
        assert topology.subnet_by_cidr("10.0.3.0/24") is not None
        assert topology.members("10.0.3.0/24") == ()
        assert topology.router_of("10.0.3.0/24") is None


class TestSystems:
    """Test system admission and lookup."""

    def test_lookup_by_address_and_name(self, topology):
        assert topology.system_by_address("10.0.1.10").name == "H1"
        assert topology.system_by_name("R2").address == IPv4Address("10.0.2.1")
        assert topology.system_by_address("10.9.9.9") is None
        assert topology.system_by_address("not-an-ip") is None
        assert "10.0.1.1" in topology
        assert "10.0.9.1" not in topology
        assert len(topology) == 4

    def test_unknown_subnet(self, topology):
        with pytest.raises(UnknownSubnetError):
            topology.add_system(host("H9", "10.0.9.9", "10.0.9.0/24"))

    def test_address_out_of_range(self, topology):
        with pytest.raises(AddressOutOfRangeError):
            topology.add_system(host("H9", "10.0.2.99", "10.0.1.0/24"))

    def test_duplicate_address(self, topology):
        with pytest.raises(DuplicateSystemError):
            topology.add_system(host("Other", "10.0.1.10", "10.0.1.0/24"))

    def test_duplicate_name(self, topology):
        with pytest.raises(DuplicateSystemError):
            topology.add_system(host("H1", "10.0.1.11", "10.0.1.0/24"))

    def test_second_router_rejected(self, topology):
        with pytest.raises(DuplicateSystemError):
            topology.add_system(router("R1b", "10.0.1.2", "10.0.1.0/24"))
        assert topology.router_of("10.0.1.0/24").name == "R1"

    def test_rejected_system_leaves_store_unchanged(self, topology):
        before = set(topology.systems())
        with pytest.raises(AddressOutOfRangeError):
            topology.add_system(host("H9", "10.0.2.99", "10.0.1.0/24"))
        assert set(topology.systems()) == before


class TestConnections:
    """Test connection rules."""

    def test_connection_is_undirected(self, topology):
        assert topology.connection_exists("10.0.1.1", "10.0.1.10")
        assert topology.connection_exists("10.0.1.10", "10.0.1.1")
        assert topology.connection_between("10.0.2.1", "10.0.1.1").weight is None

    def test_same_subnet_requires_weight(self, topology):
        h = topology.add_system(host("H3", "10.0.1.30", "10.0.1.0/24"))
        with pytest.raises(ConnectionRuleError, match="must be weighted"):
            topology.add_connection(link(h, topology.system_by_name("H1")))

    def test_cross_subnet_requires_routers(self, topology):
        h1 = topology.system_by_name("H1")
        r2 = topology.system_by_name("R2")
        with pytest.raises(ConnectionRuleError, match="Only routers"):
            topology.add_connection(link(h1, r2))

    def test_router_link_must_not_be_weighted(self, topology):
        topology.add_subnet(Subnet(cidr="10.0.3.0/24"))
        r3 = topology.add_system(router("R3", "10.0.3.1", "10.0.3.0/24"))
        with pytest.raises(ConnectionRuleError, match="must not be weighted"):
            topology.add_connection(link(topology.system_by_name("R1"), r3, 4))

    def test_duplicate_connection(self, topology):
        with pytest.raises(DuplicateConnectionError):
            topology.add_connection(link(topology.system_by_name("R2"), topology.system_by_name("R1")))

    def test_self_connection(self, topology):
        r1 = topology.system_by_name("R1")
        with pytest.raises(ConnectionRuleError):
            topology.add_connection(link(r1, r1, 1))

    def test_unknown_endpoint(self, topology):
        ghost = host("Ghost", "10.0.1.99", "10.0.1.0/24")
        with pytest.raises(UnknownSystemError):
            topology.add_connection(link(ghost, topology.system_by_name("R1"), 1))

    def test_weight_must_be_positive(self):
        with pytest.raises(ValueError):
            Connection(first=IPv4Address("10.0.1.1"), second=IPv4Address("10.0.1.2"), weight=0)

    def test_remove_connection(self, topology):
        assert topology.remove_connection("10.0.1.1", "10.0.2.1") is True
        assert not topology.connection_exists("10.0.1.1", "10.0.2.1")
        assert topology.remove_connection("10.0.1.1", "10.0.2.1") is False


class TestRemoval:
    """Test removing systems."""

    def test_remove_host_cascades_connections(self, topology):
        removed = topology.remove_system("10.0.1.10")
        assert len(removed) == 1
        assert topology.system_by_name("H1") is None
        assert topology.connections_of("10.0.1.1") == (
            topology.connection_between("10.0.1.1", "10.0.2.1"),
        )

    def test_remove_router_frees_router_slot(self, topology):
        topology.remove_system(topology.system_by_name("R1"))
        assert topology.router_of("10.0.1.0/24") is None
        topology.add_system(router("R1b", "10.0.1.2", "10.0.1.0/24"))
        assert topology.router_of("10.0.1.0/24").name == "R1b"

    def test_remove_unknown(self, topology):
        with pytest.raises(UnknownSystemError):
            topology.remove_system("10.0.1.200")


class TestSnapshots:
    """Getters hand out copies, never live views."""

    def test_systems_snapshot_is_stable(self, topology):
        snapshot = topology.systems()
        topology.remove_system("10.0.2.10")
        assert len(snapshot) == 4
        assert len(topology.systems()) == 3

    def test_routers_by_subnet_is_read_only(self, topology):
        routers = topology.routers_by_subnet()
        with pytest.raises(TypeError):
            routers["10.0.9.0/24"] = topology.system_by_name("R1")
