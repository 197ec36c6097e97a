"""Domain model dataclasses and enums for lexicon-store."""

from __future__ import annotations

import uuid
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Union

from lexicon_store.exceptions import ValidationError

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class NodeKind(str, Enum):
    """Kinds of identifiable objects nested inside a word document."""

    ENTRY = "entry"
    SENSE = "sense"
    IDIOM = "idiom"
    PHRASAL_VERB_GROUP = "phrasal_verb_group"
    EXAMPLE = "example"


class RootKind(str, Enum):
    """Membership of a word document in the root graph."""

    STANDALONE = "standalone"
    ROOT = "root"
    CHILD = "child"


class EditOperation(str, Enum):
    """Type of mutation recorded in the edit history."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"


class ValidationSeverity(str, Enum):
    """Severity level for validation results."""

    ERROR = "ERROR"
    WARNING = "WARNING"


def new_id() -> str:
    """Fresh opaque identifier for a nested node."""
    return uuid.uuid4().hex


# ---------------------------------------------------------------------------
# Field coercion helpers for raw input
# ---------------------------------------------------------------------------

def _pick(data: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        if name in data:
            return data[name]
    return None


def _str(value: Any, name: str) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    raise ValidationError(f"Field {name!r} must be a string, got {type(value).__name__}")


def _str_list(value: Any, name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f"Field {name!r} must be a list")
    return [_str(v, name) for v in value]


def _node_list(value: Any, name: str, node_cls: Any) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f"Field {name!r} must be a list")
    nodes = []
    for item in value:
        if not isinstance(item, Mapping):
            raise ValidationError(f"Items of {name!r} must be objects")
        nodes.append(node_cls.from_dict(item))
    return nodes


def _extra(data: Mapping[str, Any], known: frozenset[str]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if k not in known}


# ---------------------------------------------------------------------------
# Document nodes
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class Example:
    """A usage example with its translation."""

    kind: ClassVar[NodeKind] = NodeKind.EXAMPLE
    _known: ClassVar[frozenset[str]] = frozenset(
        {"id", "_id", "text", "en", "translation", "vi", "labels"}
    )

    id: str = ""
    text: str = ""
    translation: str = ""
    labels: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    def children(self) -> tuple[Node, ...]:
        return ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Example:
        return cls(
            id=_str(_pick(data, "id", "_id"), "id"),
            text=_str(_pick(data, "text", "en"), "text"),
            translation=_str(_pick(data, "translation", "vi"), "translation"),
            labels=_str(data.get("labels"), "labels"),
            extra=_extra(data, cls._known),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.extra,
            "id": self.id,
            "text": self.text,
            "translation": self.translation,
            "labels": self.labels,
        }


@dataclass(slots=True)
class Sense:
    """One definition with its cross references and examples."""

    kind: ClassVar[NodeKind] = NodeKind.SENSE
    _known: ClassVar[frozenset[str]] = frozenset({
        "id", "_id", "definition",
        "definition_translated", "definition_vi",
        "definition_translated_short", "definition_vi_short",
        "synonyms", "opposites", "see_alsos", "examples",
    })

    id: str = ""
    definition: str = ""
    definition_translated: str = ""
    definition_translated_short: str = ""
    synonyms: list[str] = field(default_factory=list)
    opposites: list[str] = field(default_factory=list)
    see_alsos: list[str] = field(default_factory=list)
    examples: list[Example] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    def children(self) -> tuple[Node, ...]:
        return tuple(self.examples)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Sense:
        return cls(
            id=_str(_pick(data, "id", "_id"), "id"),
            definition=_str(data.get("definition"), "definition"),
            definition_translated=_str(
                _pick(data, "definition_translated", "definition_vi"),
                "definition_translated",
            ),
            definition_translated_short=_str(
                _pick(data, "definition_translated_short", "definition_vi_short"),
                "definition_translated_short",
            ),
            synonyms=_str_list(data.get("synonyms"), "synonyms"),
            opposites=_str_list(data.get("opposites"), "opposites"),
            see_alsos=_str_list(data.get("see_alsos"), "see_alsos"),
            examples=_node_list(data.get("examples"), "examples", Example),
            extra=_extra(data, cls._known),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.extra,
            "id": self.id,
            "definition": self.definition,
            "definition_translated": self.definition_translated,
            "definition_translated_short": self.definition_translated_short,
            "synonyms": list(self.synonyms),
            "opposites": list(self.opposites),
            "see_alsos": list(self.see_alsos),
            "examples": [ex.to_dict() for ex in self.examples],
        }


@dataclass(slots=True)
class Idiom:
    """An idiomatic phrase carrying its own senses."""

    kind: ClassVar[NodeKind] = NodeKind.IDIOM
    _known: ClassVar[frozenset[str]] = frozenset({"id", "_id", "word", "senses"})

    id: str = ""
    word: str = ""
    senses: list[Sense] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    def children(self) -> tuple[Node, ...]:
        return tuple(self.senses)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Idiom:
        return cls(
            id=_str(_pick(data, "id", "_id"), "id"),
            word=_str(data.get("word"), "word"),
            senses=_node_list(data.get("senses"), "senses", Sense),
            extra=_extra(data, cls._known),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.extra,
            "id": self.id,
            "word": self.word,
            "senses": [s.to_dict() for s in self.senses],
        }


@dataclass(slots=True)
class PhrasalVerbGroup:
    """A phrasal verb heading with its senses."""

    kind: ClassVar[NodeKind] = NodeKind.PHRASAL_VERB_GROUP
    _known: ClassVar[frozenset[str]] = frozenset({"id", "_id", "word", "senses"})

    id: str = ""
    word: str = ""
    senses: list[Sense] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    def children(self) -> tuple[Node, ...]:
        return tuple(self.senses)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PhrasalVerbGroup:
        return cls(
            id=_str(_pick(data, "id", "_id"), "id"),
            word=_str(data.get("word"), "word"),
            senses=_node_list(data.get("senses"), "senses", Sense),
            extra=_extra(data, cls._known),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.extra,
            "id": self.id,
            "word": self.word,
            "senses": [s.to_dict() for s in self.senses],
        }


@dataclass(slots=True)
class Entry:
    """One dictionary page for a surface word form.

    ``phrasal_verb_senses`` is None when the source omitted the field,
    which the import path replaces with an empty list.
    """

    kind: ClassVar[NodeKind] = NodeKind.ENTRY
    _known: ClassVar[frozenset[str]] = frozenset({
        "id", "_id", "word", "pos", "part_of_speech", "symbol",
        "phonetic", "phonetic_text", "phonetic_am", "phonetic_am_text",
        "is_translated", "isTranslated", "senses", "idioms",
        "phrasal_verb_senses", "phrasal_verbs",
    })

    id: str = ""
    word: str = ""
    pos: str = ""
    symbol: str = ""
    phonetic: str = ""
    phonetic_text: str = ""
    phonetic_am: str = ""
    phonetic_am_text: str = ""
    is_translated: bool = False
    senses: list[Sense] = field(default_factory=list)
    idioms: list[Idiom] = field(default_factory=list)
    phrasal_verb_senses: list[PhrasalVerbGroup] | None = None
    phrasal_verbs: list[str] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    def children(self) -> tuple[Node, ...]:
        return (
            *self.senses,
            *self.idioms,
            *(self.phrasal_verb_senses or ()),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Entry:
        if not isinstance(data, Mapping):
            raise ValidationError("Entry must be an object")
        pv_senses = _pick(data, "phrasal_verb_senses")
        return cls(
            id=_str(_pick(data, "id", "_id"), "id"),
            word=_str(data.get("word"), "word"),
            pos=_str(_pick(data, "pos", "part_of_speech"), "pos"),
            symbol=_str(data.get("symbol"), "symbol"),
            phonetic=_str(data.get("phonetic"), "phonetic"),
            phonetic_text=_str(data.get("phonetic_text"), "phonetic_text"),
            phonetic_am=_str(data.get("phonetic_am"), "phonetic_am"),
            phonetic_am_text=_str(data.get("phonetic_am_text"), "phonetic_am_text"),
            is_translated=bool(_pick(data, "is_translated", "isTranslated")),
            senses=_node_list(data.get("senses"), "senses", Sense),
            idioms=_node_list(data.get("idioms"), "idioms", Idiom),
            phrasal_verb_senses=(
                None if pv_senses is None
                else _node_list(pv_senses, "phrasal_verb_senses", PhrasalVerbGroup)
            ),
            phrasal_verbs=_str_list(data.get("phrasal_verbs"), "phrasal_verbs"),
            extra=_extra(data, cls._known),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            **self.extra,
            "id": self.id,
            "word": self.word,
            "pos": self.pos,
            "symbol": self.symbol,
            "phonetic": self.phonetic,
            "phonetic_text": self.phonetic_text,
            "phonetic_am": self.phonetic_am,
            "phonetic_am_text": self.phonetic_am_text,
            "is_translated": self.is_translated,
            "senses": [s.to_dict() for s in self.senses],
            "idioms": [i.to_dict() for i in self.idioms],
            "phrasal_verbs": list(self.phrasal_verbs),
        }
        if self.phrasal_verb_senses is not None:
            data["phrasal_verb_senses"] = [
                pv.to_dict() for pv in self.phrasal_verb_senses
            ]
        return data


Node = Union[Entry, Sense, Idiom, PhrasalVerbGroup, Example]


def iter_nodes(root: Node) -> Iterator[Node]:
    """Yield *root* and every node below it, depth first, in document order."""
    stack: list[Node] = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children()))


def assign_missing_ids(entry: Entry) -> int:
    """Give every node under *entry* without an id a fresh one.

    Existing ids are never replaced. Returns the number assigned.
    """
    assigned = 0
    for node in iter_nodes(entry):
        if not node.id:
            node.id = new_id()
            assigned += 1
    return assigned


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class RootLink:
    """Position of a document in the root graph.

    STANDALONE documents are outside the graph, ROOT documents have at
    least one child pointing at them, CHILD documents carry the key of
    their root.
    """

    kind: RootKind = RootKind.STANDALONE
    key: str | None = None

    @classmethod
    def standalone(cls) -> RootLink:
        return cls(RootKind.STANDALONE)

    @classmethod
    def root(cls) -> RootLink:
        return cls(RootKind.ROOT)

    @classmethod
    def child_of(cls, key: str) -> RootLink:
        return cls(RootKind.CHILD, key)

    @property
    def is_root(self) -> bool:
        return self.kind is RootKind.ROOT

    @property
    def is_child(self) -> bool:
        return self.kind is RootKind.CHILD


@dataclass(frozen=True, slots=True)
class Summary:
    """Aggregates derived from a document's entries."""

    variants: tuple[str, ...]
    symbol: str
    parts_of_speech: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class WordDocument:
    """The single canonical document for one word."""

    key: str
    entries: tuple[Entry, ...]
    variants: tuple[str, ...]
    symbol: str
    parts_of_speech: tuple[str, ...]
    root: RootLink
    created_at: str | None
    updated_at: str | None
    children: tuple[WordDocument, ...] | None = None

    @property
    def words(self) -> list[str]:
        """Surface words of the entries, in stored order."""
        return [e.word for e in self.entries]

    def to_dict(self) -> dict[str, Any]:
        """Plain representation; ``root`` is omitted for standalone words."""
        data: dict[str, Any] = {
            "key": self.key,
            "entries": [e.to_dict() for e in self.entries],
            "variants": list(self.variants),
            "symbol": self.symbol,
            "parts_of_speech": list(self.parts_of_speech),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
        if self.root.kind is RootKind.ROOT:
            data["root"] = None
        elif self.root.kind is RootKind.CHILD:
            data["root"] = self.root.key
        if self.children is not None:
            data["children"] = [c.to_dict() for c in self.children]
        return data


# ---------------------------------------------------------------------------
# Operation results
# ---------------------------------------------------------------------------

@dataclass
class ImportIssue:
    """A word group that failed to merge."""

    word: str
    error: str


@dataclass
class ImportResult:
    """Outcome of importing one batch of raw entries."""

    total_words: int = 0
    grouped_words: int = 0
    imported: int = 0
    errors: list[ImportIssue] = field(default_factory=list)
    cancelled: bool = False


@dataclass
class FileFailure:
    """A source file that could not be imported at all."""

    file: str
    error: str


@dataclass
class DirectoryImportResult:
    """Aggregate outcome of importing every JSON file in a directory."""

    total_files: int = 0
    successful_files: int = 0
    failed_files: list[FileFailure] = field(default_factory=list)
    total_words: int = 0
    total_grouped_words: int = 0
    total_imported: int = 0
    errors: list[ImportIssue] = field(default_factory=list)
    cancelled: bool = False


@dataclass(frozen=True, slots=True)
class ImportStatus:
    """JSON files available for import in a directory."""

    directory: str
    available_files: tuple[str, ...]

    @property
    def total_files(self) -> int:
        return len(self.available_files)


@dataclass(frozen=True, slots=True)
class SearchPage:
    """One page of distinct surface words."""

    total: int
    words: list[str]


@dataclass(frozen=True, slots=True)
class IdiomMatch:
    """An idiom found inside a word document."""

    key: str
    word: str
    pos: str


@dataclass(frozen=True, slots=True)
class IdiomPage:
    """One page of idiom matches."""

    total: int
    words: list[IdiomMatch]


@dataclass(frozen=True, slots=True)
class ListPage:
    """One page of top-level documents with their children attached."""

    total: int
    page: int
    per_page: int
    data: list[WordDocument]


@dataclass(frozen=True, slots=True)
class AssignRootResult:
    """Outcome of a root assignment."""

    modified_count: int


@dataclass(frozen=True, slots=True)
class LookupResult:
    """A word answered from the store or from the external source."""

    word: str
    entries: tuple[Entry, ...]
    variants: tuple[str, ...]
    source: str

    @property
    def quantity(self) -> int:
        return len(self.entries)


@dataclass(frozen=True, slots=True)
class TranslationUpdateResult:
    """Counts from a translation-field update."""

    updated: int
    skipped: int


@dataclass(frozen=True, slots=True)
class EditRecord:
    """A single edit-history entry."""

    id: int
    key: str
    field_name: str | None
    operation: str
    old_value: str | None
    new_value: str | None
    timestamp: str


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """A single validation finding (error or warning)."""

    rule_id: str
    severity: str
    key: str
    message: str
    details: dict[str, Any] | None
