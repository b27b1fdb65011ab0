from .network_topology import render_network_topology
from .route_path import render_route

__all__ = [
    "render_network_topology",
    "render_route",
]
