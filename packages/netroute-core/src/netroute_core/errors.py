"""
Exception types raised at the topology mutation boundary.

Structural problems (bad ranges, duplicate systems, illegal connections) are
raised here. A missing route is not an error: the path engine returns an empty
path instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from netroute_core.models.report import Report


class TopologyError(ValueError):
    """Base class for rejected topology mutations."""


class OverlappingSubnetError(TopologyError):
    pass


class AddressOutOfRangeError(TopologyError):
    pass


class DuplicateSystemError(TopologyError):
    pass


class UnknownSubnetError(TopologyError):
    pass


class UnknownSystemError(TopologyError):
    pass


class ConnectionRuleError(TopologyError):
    """A connection breaks the weight or router-only rules."""


class DuplicateConnectionError(ConnectionRuleError):
    pass


class TopologyValidationError(TopologyError):
    """Raised when a topology record has FAIL findings and cannot be built."""

    def __init__(self, message: str, report: Report):
        super().__init__(message)
        self.report = report


class ConvergenceError(RuntimeError):
    """Route propagation exceeded its pass bound."""
