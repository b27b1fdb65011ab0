"""
File readers and writers shared by the topology loaders.

Every failure names the offending file: a missing file raises
FileNotFoundError, anything unreadable or malformed raises ValueError.
"""

from pathlib import Path
from typing import Any, TypeVar

import yaml
from pydantic import BaseModel, ValidationError

M = TypeVar("M", bound=BaseModel)


def read_text(path: Path | str) -> str:
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"File not found: {p}")
    try:
        return p.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ValueError(f"Unable to decode UTF-8 in {p}: {e}") from e


def read_yaml(path: Path | str) -> Any:
    """Parsed YAML document; an empty document is an error."""
    try:
        data = yaml.safe_load(read_text(path))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if data is None:
        raise ValueError(f"Empty YAML file: {path}")
    return data


def load_yaml_model(path: Path | str, model: type[M]) -> M:
    """Read a YAML file straight into a pydantic record (e.g. ``TopologyRec``)."""
    data = read_yaml(path)
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid structure in {path}: {e}") from e


def dump_yaml_model(model: BaseModel, path: Path | str) -> Path:
    """Write a pydantic model as YAML, creating parent directories."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with open(p, "w", encoding="utf-8") as f:
        yaml.safe_dump(model.model_dump(mode="json", exclude_none=True), f, default_flow_style=False, sort_keys=False)
    return p
