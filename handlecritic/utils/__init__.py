"""Utility helpers for the critic."""

from .fileio import read_yaml_file, read_tree_file
from .documents import load_tree
from .code import iter_tree_files

__all__ = [
    "read_yaml_file",
    "read_tree_file",
    "load_tree",
    "iter_tree_files",
]
