from .mermaid import parse_mermaid, to_mermaid
from .network_loader import load_network, load_topology, save_network

__all__ = [
    "load_network",
    "load_topology",
    "parse_mermaid",
    "save_network",
    "to_mermaid",
]
