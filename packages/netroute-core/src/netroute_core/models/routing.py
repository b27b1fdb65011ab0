from enum import Enum
from types import MappingProxyType
from typing import Mapping

from pydantic import BaseModel, ConfigDict

from netroute_core.models.network import System

# subnet CIDR -> router hops, nearest first, ending at the router of that subnet
RouterTable = dict[str, tuple[System, ...]]


class PropagatorState(str, Enum):
    STALE = "stale"
    CONVERGED = "converged"


class ConvergenceReport(BaseModel):
    """Outcome of one stale -> converged transition."""

    model_config = ConfigDict(frozen=True)
    passes: int
    updates: int
    routers: int


def frozen_table(table: RouterTable) -> Mapping[str, tuple[System, ...]]:
    return MappingProxyType(dict(table))
