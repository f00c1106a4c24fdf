"""Command-line entry point for the handle critic."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Iterable, List, Optional

import yaml

from .config import DEFAULT_CONFIG_FILENAME, CriticConfig, load_config
from .result import ScanResult, format_summary_table
from .rules import Rule, ScanContext
from .rules.foreach_handle import ProhibitForeachHandleRule
from .severity import Severity
from .tree import SyntaxTree
from .utils import iter_tree_files, load_tree

DEFAULT_SOURCE_DIRS = ("samples",)
RULE_CLASSES = (ProhibitForeachHandleRule,)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Flag for/foreach loops that read whole files from PPI tree documents",
    )
    parser.add_argument(
        "paths",
        nargs="*",
        help="Tree documents or directories containing them (.yaml, .yml, .json).",
    )
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_FILENAME,
        help="Path to the critic profile (defaults to .handlecritic.yaml).",
    )
    parser.add_argument(
        "--minimum-severity",
        dest="minimum_severity",
        default=None,
        help="Only run rules at or above this severity (name or 1-5).",
    )
    parser.add_argument(
        "--theme",
        dest="themes",
        action="append",
        default=[],
        help="Only run rules carrying this theme (repeatable).",
    )
    parser.add_argument(
        "--format",
        choices=["json"],
        default="json",
        help="Report format for file output (defaults to json).",
    )
    parser.add_argument(
        "--out",
        "--output",
        dest="output_path",
        type=str,
        default=None,
        help="Path to write the structured report (e.g., artifacts/critic.json).",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail instead of skipping tree documents that cannot be loaded.",
    )
    return parser


def load_rules(config: Optional[CriticConfig] = None) -> List[Rule]:
    """Instantiate the enabled rules that pass the severity and theme filters."""

    config = config or CriticConfig()
    rules: List[Rule] = []
    for rule_class in RULE_CLASSES:
        settings = config.settings_for(rule_class.name)
        if not settings.enabled:
            continue
        rule = rule_class(severity=settings.severity)
        if rule.severity.rank < config.minimum_severity.rank:
            continue
        if config.themes and not set(config.themes) & set(rule.themes):
            continue
        rules.append(rule)
    return rules


def _skip(path: Path, reason: object, result: ScanResult, strict: bool) -> None:
    if strict:
        raise SystemExit(f"Failed to load tree document {path}: {reason}")
    sys.stderr.write(f"Skipping {path}: {reason}\n")
    result.skipped.append(str(path))


def load_documents(
    paths: Iterable[str],
    result: ScanResult,
    strict: bool = False,
    exclude: Iterable[Path] = (),
) -> List[SyntaxTree]:
    documents: List[SyntaxTree] = []
    for path in iter_tree_files(paths, exclude=exclude):
        if not path.exists():
            _skip(path, "no such file or directory", result, strict)
            continue
        try:
            tree = load_tree(path)
        except (ValueError, OSError, RecursionError, yaml.YAMLError) as exc:
            # ValueError covers TreeFormatError and UnicodeDecodeError.
            _skip(path, exc, result, strict)
            continue
        if tree is None:
            _skip(path, "empty document", result, strict)
            continue
        documents.append(tree)
    return documents


def run_scan(
    paths: Iterable[str],
    config: Optional[CriticConfig] = None,
    strict: bool = False,
    exclude: Iterable[Path] = (),
) -> ScanResult:
    result = ScanResult()
    documents = load_documents(paths, result, strict=strict, exclude=exclude)
    result.documents = len(documents)
    context = ScanContext(documents=documents)
    for rule in load_rules(config):
        rule.scan(context, result)
    return result


def resolve_config(args: argparse.Namespace) -> CriticConfig:
    try:
        config = load_config(Path(args.config))
        if args.minimum_severity is not None:
            config.minimum_severity = Severity.parse(args.minimum_severity)
    except (ValueError, yaml.YAMLError) as exc:
        raise SystemExit(f"Invalid configuration: {exc}") from exc
    if args.themes:
        config.themes = tuple(args.themes)
    return config


def write_output(result: ScanResult, output_path: str | None, report_format: str) -> None:
    summary = format_summary_table(result)
    print(summary)

    if report_format == "json":
        payload = json.dumps(result.to_dict(), indent=2)
        if output_path:
            output_file = Path(output_path)
            output_file.parent.mkdir(parents=True, exist_ok=True)
            output_file.write_text(payload, encoding="utf-8")
            print(f"\nReport written to {output_path}")
        else:
            print("\nJSON Report")
            print(payload)


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    config = resolve_config(args)
    paths = args.paths or list(DEFAULT_SOURCE_DIRS)
    result = run_scan(paths, config=config, strict=args.strict, exclude=(Path(args.config),))
    write_output(result, args.output_path, args.format)
    return result.exit_code()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
