"""Detect ``for``/``foreach`` loops that slurp a file handle.

``foreach (<$fh>) { ... }`` evaluates the readline in list context, so the
whole file is read into memory before the first iteration.
``while (<$fh>) { ... }`` reads one line at a time.

The analysis works right to left on plain statements, because the shape of a
postfix loop header is easiest to recognize from its tail. PPI sometimes
tokenizes ``< $fh >`` as a less-than operator, a symbol and a greater-than
operator instead of a single readline token; both forms are recognized.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from handlecritic.result import Finding, ScanResult
from handlecritic.severity import Severity
from handlecritic.tree import NodeId, NodeKind, SyntaxTree, TreeNavigator

from . import ScanContext

DESCRIPTION = "You should not use '%s' to iterate over a file"
EXPLANATION = "Using 'while (<handle>)' only reads one line at a time"

FOREACH = frozenset({"for", "foreach"})
BINDING = "my"
GREATER_THAN = ">"
LESS_THAN = "<"

# A word or a scalar in angle brackets. Anything else is most likely a glob.
READLINE_PATTERN = re.compile(r"\A<\$?\w*>\Z")

FINDING_PREFIX = "PFH"
POLICY = "ControlStructures::ProhibitForeachHandle"
EVIDENCE_LIMIT = 120


@dataclass(frozen=True)
class Violation:
    node: NodeId
    description: str
    explanation: str


def _is_operator(tree: TreeNavigator, node: NodeId, text: str) -> bool:
    return tree.kind(node) is NodeKind.OPERATOR and tree.content(node) == text


def _is_handle_name(tree: TreeNavigator, node: NodeId) -> bool:
    return tree.kind(node) in (NodeKind.WORD, NodeKind.SYMBOL)


def locate_candidate(tree: TreeNavigator, statement: NodeId) -> Optional[NodeId]:
    """Return the node that should be the loop keyword, or ``None``.

    The caller still has to check that the returned node is a word with
    content ``for`` or ``foreach``.
    """

    kind = tree.kind(statement)
    if kind is NodeKind.COMPOUND_STATEMENT:
        children = tree.schildren(statement)
        return children[0] if children else None

    if kind is not NodeKind.PLAIN_STATEMENT:
        return None

    children = tree.schildren(statement)
    if not children:
        return None
    current = children[-1]

    if tree.kind(current) is NodeKind.TERMINATOR:
        current = tree.sprevious_sibling(current)
        if current is None:
            return None

    if tree.kind(current) in (NodeKind.LIST, NodeKind.READLINE):
        return tree.sprevious_sibling(current)

    if _is_operator(tree, current, GREATER_THAN):
        # Probably a mis-parsed readline: '<', optional word or symbol, '>'.
        current = tree.sprevious_sibling(current)
        if current is None:
            return None
        if _is_handle_name(tree, current):
            current = tree.sprevious_sibling(current)
            if current is None:
                return None
        if _is_operator(tree, current, LESS_THAN):
            return tree.sprevious_sibling(current)
        return None

    return None


def iteration_source(tree: TreeNavigator, keyword: NodeId) -> Optional[NodeId]:
    """Return the node the loop iterates over, skipping a ``my $var`` binding."""

    item = tree.snext_sibling(keyword)
    if item is None:
        return None
    if tree.kind(item) is NodeKind.WORD and tree.content(item) == BINDING:
        item = tree.snext_sibling(item)
        if item is None or tree.kind(item) is not NodeKind.SYMBOL:
            return None
        item = tree.snext_sibling(item)
    return item


def is_slurping_readline(content: str) -> bool:
    return READLINE_PATTERN.match(content) is not None


def list_offenders(tree: TreeNavigator, node: NodeId) -> Iterator[NodeId]:
    """Yield every node under ``node`` (inclusive) that reads a handle's lines."""

    pending = [node]
    while pending:
        current = pending.pop()
        if tree.kind(current).is_node:
            pending.extend(reversed(tree.schildren(current)))
        elif _offends(tree, current):
            yield current


def _offends(tree: TreeNavigator, token: NodeId) -> bool:
    kind = tree.kind(token)
    if kind is NodeKind.READLINE:
        return is_slurping_readline(tree.content(token))

    if _is_operator(tree, token, LESS_THAN):
        following = tree.snext_sibling(token)
        if following is None:
            return False
        if _is_handle_name(tree, following):
            following = tree.snext_sibling(following)
            if following is None:
                return False
        return _is_operator(tree, following, GREATER_THAN)

    return False


def locate_and_scan(tree: TreeNavigator, statement: NodeId) -> List[Violation]:
    """Return one violation per handle slurped by the loop ``statement`` heads."""

    keyword = locate_candidate(tree, statement)
    if keyword is None or tree.kind(keyword) is not NodeKind.WORD:
        return []
    used = tree.content(keyword)
    if used not in FOREACH:
        return []

    source = iteration_source(tree, keyword)
    if source is None:
        return []

    description = DESCRIPTION % used
    return [Violation(offender, description, EXPLANATION) for offender in list_offenders(tree, source)]


class ProhibitForeachHandleRule:
    """Flag ``for``/``foreach`` loops over ``<HANDLE>`` readlines."""

    name = "prohibit_foreach_handle"
    policy = POLICY
    default_severity = Severity.MEDIUM
    themes: Tuple[str, ...] = ("trw",)

    def __init__(self, severity: Optional[Severity] = None) -> None:
        self.severity = severity or self.default_severity
        self._counter = 0

    def scan(self, context: ScanContext, result: ScanResult) -> None:
        for tree in context.documents:
            for statement in tree.statements():
                for violation in locate_and_scan(tree, statement):
                    result.add_finding(self._build_finding(tree, statement, violation))

    def _build_finding(self, tree: SyntaxTree, statement: NodeId, violation: Violation) -> Finding:
        line, column = tree.location(violation.node)
        return Finding(
            id=self._next_id(),
            title=violation.description,
            path=self._format_path(tree.source, line, column),
            severity=self.severity,
            rule=self.name,
            recommendation=violation.explanation,
            line=line,
            column=column,
            evidence=self._evidence(tree.content(statement)),
        )

    def _format_path(self, source: str, line: Optional[int], column: Optional[int]) -> str:
        location = source or "<tree>"
        if line is not None:
            location += f":{line}"
            if column is not None:
                location += f":{column}"
        return location

    def _evidence(self, text: str) -> str:
        collapsed = " ".join(text.split())
        if len(collapsed) > EVIDENCE_LIMIT:
            return collapsed[: EVIDENCE_LIMIT - 3] + "..."
        return collapsed

    def _next_id(self) -> str:
        self._counter += 1
        return f"{FINDING_PREFIX}{self._counter:03d}"
