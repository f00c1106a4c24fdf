"""Read-only PPI-shaped syntax trees stored as an arena of node records."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Protocol, Tuple, Union

NodeId = int


class TreeFormatError(ValueError):
    """Raised when a tree document does not describe a well-formed PPI tree."""


class NodeKind(str, Enum):
    """Closed set of node categories the critic distinguishes."""

    DOCUMENT = "document"
    COMPOUND_STATEMENT = "compound-statement"
    PLAIN_STATEMENT = "plain-statement"
    STATEMENT = "statement"
    LIST = "list"
    STRUCTURE = "structure"
    WORD = "word"
    SYMBOL = "symbol"
    OPERATOR = "operator"
    READLINE = "readline"
    TERMINATOR = "terminator"
    WHITESPACE = "whitespace"
    COMMENT = "comment"
    POD = "pod"
    END = "end"
    TOKEN = "token"

    @property
    def is_node(self) -> bool:
        return self in INTERIOR_KINDS

    @property
    def is_statement(self) -> bool:
        return self in STATEMENT_KINDS

    @property
    def significant(self) -> bool:
        return self not in COSMETIC_KINDS


INTERIOR_KINDS = frozenset(
    {
        NodeKind.DOCUMENT,
        NodeKind.COMPOUND_STATEMENT,
        NodeKind.PLAIN_STATEMENT,
        NodeKind.STATEMENT,
        NodeKind.LIST,
        NodeKind.STRUCTURE,
    }
)
STATEMENT_KINDS = frozenset({NodeKind.COMPOUND_STATEMENT, NodeKind.PLAIN_STATEMENT, NodeKind.STATEMENT})
COSMETIC_KINDS = frozenset({NodeKind.WHITESPACE, NodeKind.COMMENT, NodeKind.POD, NodeKind.END})

EXACT_CLASSES: Dict[str, NodeKind] = {
    "PPI::Document": NodeKind.DOCUMENT,
    "PPI::Document::Fragment": NodeKind.DOCUMENT,
    "PPI::Statement": NodeKind.PLAIN_STATEMENT,
    "PPI::Statement::Compound": NodeKind.COMPOUND_STATEMENT,
    "PPI::Structure::List": NodeKind.LIST,
    "PPI::Token::Word": NodeKind.WORD,
    "PPI::Token::Symbol": NodeKind.SYMBOL,
    "PPI::Token::Magic": NodeKind.SYMBOL,
    "PPI::Token::Operator": NodeKind.OPERATOR,
    "PPI::Token::QuoteLike::Readline": NodeKind.READLINE,
    "PPI::Token::Structure": NodeKind.TERMINATOR,
    "PPI::Token::Whitespace": NodeKind.WHITESPACE,
    "PPI::Token::Comment": NodeKind.COMMENT,
    "PPI::Token::Pod": NodeKind.POD,
    "PPI::Token::End": NodeKind.END,
    "PPI::Token::BOM": NodeKind.WHITESPACE,
}

# Checked in order, so the more specific prefixes come first.
PREFIX_CLASSES: Tuple[Tuple[str, NodeKind], ...] = (
    ("PPI::Statement::", NodeKind.STATEMENT),
    ("PPI::Structure::", NodeKind.STRUCTURE),
    ("PPI::Token::", NodeKind.TOKEN),
)


def classify(class_name: str) -> Optional[NodeKind]:
    """Map a PPI class name onto a ``NodeKind``, or ``None`` if unknown."""

    kind = EXACT_CLASSES.get(class_name)
    if kind is not None:
        return kind
    for prefix, fallback in PREFIX_CLASSES:
        if class_name.startswith(prefix):
            return fallback
    return None


class TreeNavigator(Protocol):
    """Read-only navigation the critic policies need from a tree."""

    def kind(self, node: NodeId) -> NodeKind:
        ...

    def content(self, node: NodeId) -> str:
        ...

    def schildren(self, node: NodeId) -> Tuple[NodeId, ...]:
        ...

    def snext_sibling(self, node: NodeId) -> Optional[NodeId]:
        ...

    def sprevious_sibling(self, node: NodeId) -> Optional[NodeId]:
        ...


@dataclass(frozen=True)
class NodeRecord:
    class_name: str
    kind: NodeKind
    parent: Optional[NodeId]
    children: Tuple[NodeId, ...] = ()
    text: str = ""
    start: str = ""
    finish: str = ""
    line: Optional[int] = None
    column: Optional[int] = None


class SyntaxTree:
    """Arena of immutable node records; node ids are indexes into it.

    The root is always node ``0``. Records are only ever appended while the
    tree is being built by :meth:`from_mapping`.
    """

    ROOT: NodeId = 0

    def __init__(self, records: List[NodeRecord], source: str = "") -> None:
        if not records:
            raise TreeFormatError("A syntax tree needs at least a root node")
        self._records: Tuple[NodeRecord, ...] = tuple(records)
        self.source = source
        self._positions: Dict[NodeId, int] = {}
        for record in self._records:
            for position, child in enumerate(record.children):
                self._positions[child] = position

    def __len__(self) -> int:
        return len(self._records)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def from_mapping(cls, data: Any, source: str = "") -> "SyntaxTree":
        """Build a tree from a nested mapping as found in a tree document.

        Nodes are numbered in document order.
        """

        if not isinstance(data, Mapping):
            raise TreeFormatError("Tree document root must be a mapping")
        records: List[NodeRecord] = []
        children_of: List[List[NodeId]] = []
        pending: List[Tuple[Any, Optional[NodeId], str]] = [(data, None, "root")]
        while pending:
            item, parent, where = pending.pop()
            record, children_data = cls._parse_node(item, parent, where)
            node_id = len(records)
            records.append(record)
            children_of.append([])
            if parent is not None:
                children_of[parent].append(node_id)
            for index in reversed(range(len(children_data))):
                pending.append((children_data[index], node_id, f"{where}.children[{index}]"))
        if not source and isinstance(data.get("source"), str):
            source = data["source"]
        return cls(
            [replace(record, children=tuple(children)) for record, children in zip(records, children_of)],
            source=source,
        )

    @classmethod
    def _parse_node(cls, data: Any, parent: Optional[NodeId], where: str) -> Tuple[NodeRecord, List[Any]]:
        if not isinstance(data, Mapping):
            raise TreeFormatError(f"{where}: node must be a mapping, got {type(data).__name__}")
        class_name = data.get("class")
        if not isinstance(class_name, str):
            raise TreeFormatError(f"{where}: node is missing its 'class'")
        kind = classify(class_name)
        if kind is None:
            raise TreeFormatError(f"{where}: unknown node class {class_name!r}")

        children_data = data.get("children")
        if kind.is_node:
            # An empty 'children:' loads as an empty string.
            if children_data is None or children_data == "":
                children_data = []
            if not isinstance(children_data, list):
                raise TreeFormatError(f"{where}: 'children' of {class_name} must be a list")
        elif children_data:
            raise TreeFormatError(f"{where}: token {class_name} cannot have children")
        else:
            children_data = []

        record = NodeRecord(
            class_name=class_name,
            kind=kind,
            parent=parent,
            text=cls._string_field(data, "content", where),
            start=cls._string_field(data, "start", where),
            finish=cls._string_field(data, "finish", where),
            line=cls._int_field(data, "line", where),
            column=cls._int_field(data, "column", where),
        )
        return record, children_data

    @staticmethod
    def _string_field(data: Mapping[str, Any], key: str, where: str) -> str:
        value = data.get(key, "")
        if not isinstance(value, str):
            raise TreeFormatError(f"{where}: '{key}' must be a string")
        return value

    @staticmethod
    def _int_field(data: Mapping[str, Any], key: str, where: str) -> Optional[int]:
        value = data.get(key)
        if value is None or value == "":
            return None
        # Tree documents keep scalars as strings, mappings built in code may not.
        if isinstance(value, str) and value.isdigit():
            return int(value)
        if isinstance(value, bool) or not isinstance(value, int):
            raise TreeFormatError(f"{where}: '{key}' must be an integer")
        return value

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    def record(self, node: NodeId) -> NodeRecord:
        return self._records[node]

    def kind(self, node: NodeId) -> NodeKind:
        return self._records[node].kind

    def class_name(self, node: NodeId) -> str:
        return self._records[node].class_name

    def parent(self, node: NodeId) -> Optional[NodeId]:
        return self._records[node].parent

    def children(self, node: NodeId) -> Tuple[NodeId, ...]:
        return self._records[node].children

    def schildren(self, node: NodeId) -> Tuple[NodeId, ...]:
        return tuple(child for child in self.children(node) if self.kind(child).significant)

    def schild(self, node: NodeId, index: int) -> Optional[NodeId]:
        """Return the significant child at ``index`` (negative counts from the end)."""

        significant = self.schildren(node)
        try:
            return significant[index]
        except IndexError:
            return None

    def snext_sibling(self, node: NodeId) -> Optional[NodeId]:
        return self._sibling(node, step=1)

    def sprevious_sibling(self, node: NodeId) -> Optional[NodeId]:
        return self._sibling(node, step=-1)

    def _sibling(self, node: NodeId, step: int) -> Optional[NodeId]:
        parent = self.parent(node)
        if parent is None:
            return None
        siblings = self.children(parent)
        position = self._positions[node] + step
        while 0 <= position < len(siblings):
            candidate = siblings[position]
            if self.kind(candidate).significant:
                return candidate
            position += step
        return None

    def content(self, node: NodeId) -> str:
        parts: List[str] = []
        pending: List[Union[NodeId, str]] = [node]
        while pending:
            item = pending.pop()
            if isinstance(item, str):
                parts.append(item)
                continue
            record = self._records[item]
            if not record.kind.is_node:
                parts.append(record.text)
                continue
            pending.append(record.finish)
            pending.extend(reversed(record.children))
            pending.append(record.start)
        return "".join(parts)

    def location(self, node: NodeId) -> Tuple[Optional[int], Optional[int]]:
        """Return ``(line, column)`` of the node or its first located token."""

        for current in self.walk(node):
            record = self._records[current]
            if record.line is not None:
                return record.line, record.column
        return None, None

    def walk(self, node: NodeId = ROOT) -> Iterator[NodeId]:
        """Yield ``node`` and its descendants in document order."""

        stack = [node]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(self.children(current)))

    def statements(self) -> Iterator[NodeId]:
        """Yield every statement node, nested ones included, in document order."""

        for node in self.walk():
            if self.kind(node).is_statement:
                yield node
