"""
Topology file loaders and writers.

Two on-disk shapes are supported and chosen by file suffix:

- ``.yaml`` / ``.yml``: a ``TopologyRec`` mapping (subnets with systems, plus
  connections by system name), parsed with Pydantic v2;
- anything else: the mermaid-style diagram text (see ``data.mermaid``).
"""

from __future__ import annotations

from pathlib import Path

from netroute_core.config import Settings
from netroute_core.data.loader import dump_yaml_model, load_yaml_model
from netroute_core.data.mermaid import load_mermaid, to_mermaid
from netroute_core.models.records import TopologyRec
from netroute_core.network import Network
from netroute_core.validation.topology import build_network

YAML_SUFFIXES = {".yaml", ".yml"}


def is_yaml_path(path: Path | str) -> bool:
    return Path(path).suffix.lower() in YAML_SUFFIXES


def load_topology(path: Path | str, settings: Settings | None = None) -> TopologyRec:
    """
    Load a topology record from a YAML or diagram file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is malformed
    """
    if is_yaml_path(path):
        return load_yaml_model(path, TopologyRec)
    return load_mermaid(path, settings)


def load_network(path: Path | str, settings: Settings | None = None) -> Network:
    """Load, validate and build a converged network from a topology file.

    Raises:
        TopologyValidationError: If the topology breaks a structural rule
    """
    return build_network(load_topology(path, settings), settings)


def save_network(network: Network, path: Path | str) -> Path:
    """Write the network in the format implied by the path's suffix."""
    p = Path(path)
    if is_yaml_path(p):
        return dump_yaml_model(network.to_record(), p)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(to_mermaid(network) + "\n", encoding="utf-8")
    return p
