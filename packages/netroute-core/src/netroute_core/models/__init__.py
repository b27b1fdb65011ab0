from .network import Connection, Role, Subnet, System
from .records import ConnectionRec, SubnetRec, SystemRec, TopologyRec
from .report import Finding, Report

__all__ = [
    "Connection",
    "ConnectionRec",
    "Finding",
    "Report",
    "Role",
    "Subnet",
    "SubnetRec",
    "System",
    "SystemRec",
    "TopologyRec",
]
