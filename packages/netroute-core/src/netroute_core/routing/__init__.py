from .pathfinder import PathFinder
from .propagator import RoutePropagator, merge_neighbor_table

__all__ = ["PathFinder", "RoutePropagator", "merge_neighbor_table"]
