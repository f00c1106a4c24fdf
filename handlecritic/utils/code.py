"""Tree document discovery."""

from __future__ import annotations

from pathlib import Path
from typing import Generator, Iterable

TREE_EXTENSIONS = (".yaml", ".yml", ".json")


def iter_tree_files(
    root_paths: Iterable[str],
    extensions: tuple[str, ...] = TREE_EXTENSIONS,
    exclude: Iterable[Path] = (),
) -> Generator[Path, None, None]:
    """Yield tree documents given directly or found beneath the provided directories.

    Paths that do not exist are yielded unchanged so the caller can report
    them. Inside directories, hidden entries and ``exclude`` paths are skipped.
    """

    excluded = {Path(path).resolve() for path in exclude}
    for root in root_paths:
        base = Path(root)
        if not base.is_dir():
            yield base
            continue
        for path in sorted(base.rglob("*")):
            if path.suffix not in extensions or not path.is_file():
                continue
            if any(part.startswith(".") for part in path.relative_to(base).parts):
                continue
            if path.resolve() in excluded:
                continue
            yield path
