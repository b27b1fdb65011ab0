# netroute_core/models/network.py

from enum import Enum
from ipaddress import IPv4Address

from pydantic import BaseModel, ConfigDict, Field, field_validator

from netroute_core.addressing import first_address, has_host_bits, last_address, parse_cidr

# Effective cost of an unweighted router-to-router link.
INTER_SUBNET_COST = 1


class Role(str, Enum):
    HOST = "host"
    ROUTER = "router"


class Subnet(BaseModel):
    model_config = ConfigDict(frozen=True)
    cidr: str  # e.g., "10.0.1.0/24"

    @field_validator("cidr")
    @classmethod
    def _network_address_only(cls, v: str) -> str:
        v = v.strip()
        if has_host_bits(v):
            raise ValueError(f"CIDR {v} has host bits set, use {first_address(v)}/{parse_cidr(v)[1]}")
        return v

    @property
    def first(self) -> IPv4Address:
        return first_address(self.cidr)

    @property
    def last(self) -> IPv4Address:
        return last_address(self.cidr)


class System(BaseModel):
    """An addressable node. Routers additionally own a routing table, kept by the propagator."""

    model_config = ConfigDict(frozen=True)
    name: str
    address: IPv4Address
    subnet: str  # CIDR of the owning subnet
    role: Role = Role.HOST

    @property
    def is_router(self) -> bool:
        return self.role is Role.ROUTER


class Connection(BaseModel):
    """Undirected link. Same-subnet links carry a weight, router links never do."""

    model_config = ConfigDict(frozen=True)
    first: IPv4Address
    second: IPv4Address
    weight: int | None = Field(default=None, ge=1)

    @property
    def key(self) -> frozenset[IPv4Address]:
        return frozenset((self.first, self.second))

    @property
    def cost(self) -> int:
        return INTER_SUBNET_COST if self.weight is None else self.weight

    def touches(self, address: IPv4Address) -> bool:
        return address == self.first or address == self.second

    def other(self, address: IPv4Address) -> IPv4Address | None:
        if address == self.first:
            return self.second
        if address == self.second:
            return self.first
        return None
