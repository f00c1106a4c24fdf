"""Tree document helpers."""

from __future__ import annotations

from pathlib import Path

from handlecritic.tree import SyntaxTree, TreeFormatError

from .fileio import read_tree_file


def load_tree(path: Path) -> SyntaxTree | None:
    """Load a PPI tree document into a ``SyntaxTree``.

    Returns ``None`` when the file does not exist or is empty. Findings point
    at the document's ``source`` key when present, otherwise at the document
    path. Errors do not repeat the path; callers report it.
    """

    data = read_tree_file(path)
    if data is None:
        return None
    if not isinstance(data, dict):
        raise TreeFormatError("Tree document is not a mapping")
    source = data.get("source")
    if not isinstance(source, str) or not source:
        source = str(path)
    return SyntaxTree.from_mapping(data, source=source)
