"""Basic file IO helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


class TreeDocumentLoader(yaml.SafeLoader):
    """YAML loader that keeps every plain scalar as a string.

    Token content such as ``no``, ``on``, ``~`` or ``010`` is Perl source
    text and must not be turned into booleans, nulls or numbers.
    """


TreeDocumentLoader.yaml_implicit_resolvers = {}


def read_yaml_file(path: Path) -> Any:
    """Return the parsed YAML (or JSON) if the file exists, otherwise ``None``."""

    if not path.exists():
        return None
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle)


def read_tree_file(path: Path) -> Any:
    """Return a tree document with all scalars as strings, or ``None`` if missing/empty."""

    if not path.exists():
        return None
    with path.open("r", encoding="utf-8") as handle:
        return yaml.load(handle, Loader=TreeDocumentLoader)
