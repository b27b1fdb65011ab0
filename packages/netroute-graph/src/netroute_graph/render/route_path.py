import graphviz
from netroute_core.models.network import System
from netroute_core.network import Network

from .network_topology import render_network_topology


def render_route(network: Network, path: list[System]) -> graphviz.Graph:
    """Render the whole topology with the systems and links of ``path`` highlighted."""
    links = {frozenset((a.address, b.address)) for a, b in zip(path, path[1:])}
    dot = render_network_topology(network, highlight_systems=set(path), highlight_links=links)
    if path:
        dot.attr(label=f"{path[0].name} -> {path[-1].name} ({len(path) - 1} hops)", labelloc="t")
    return dot
