from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple


class ValueKind(Enum):
    LITERAL = "literal"
    IRI = "iri"
    NODE_REF = "node-ref"


class NodeKind(Enum):
    BNODE = "bnode"
    IRI = "iri"


@dataclass(frozen=True)
class ValueSource:
    predicate: str
    kind: ValueKind = ValueKind.LITERAL
    const: Optional[str] = None
    path: Optional[str] = None
    indexed_paths: Tuple[str, ...] = ()
    format: Optional[str] = None
    value_map: Mapping[str, str] = field(default_factory=dict)
    multi: bool = False
    lang: Optional[str] = None
    datatype: Optional[str] = None
    node_ref: Optional[str] = None


@dataclass(frozen=True)
class NodeTemplate:
    id: str
    kind: NodeKind = NodeKind.BNODE
    const: Optional[str] = None
    path: Optional[str] = None
    format: Optional[str] = None
    type_ref: Optional[str] = None
    multi: bool = False
    value_map: Mapping[str, str] = field(default_factory=dict)
    properties: Mapping[str, ValueSource] = field(default_factory=dict)


@dataclass(frozen=True)
class SubjectTemplate:
    const: Optional[str] = None
    template: Optional[str] = None
    format: Optional[str] = None
    path: Optional[str] = None


@dataclass(frozen=True)
class ResourceTemplate:
    subject: SubjectTemplate = field(default_factory=SubjectTemplate)
    scope_path: Optional[str] = None
    type_ref: Optional[str] = None
    properties: Mapping[str, ValueSource] = field(default_factory=dict)
    nodes: Mapping[str, NodeTemplate] = field(default_factory=dict)


# --- root configuration ------------------------------------------------------
@dataclass(frozen=True)
class Element:
    id: str
    type_ref: Optional[str]
    file: str


@dataclass(frozen=True)
class Relation:
    subject: str
    predicate: str
    object: str


@dataclass(frozen=True)
class AvailableFormats:
    turtle: bool = True
    rdfxml: bool = True
    jsonld: bool = True

    def is_available(self, fmt: str) -> bool:
        return bool(getattr(self, fmt, False))


@dataclass(frozen=True)
class RootConfig:
    trace: bool
    prefixes: Dict[str, str]
    elements: Tuple[Element, ...]
    relations: Tuple[Relation, ...]
    formats: AvailableFormats
    base_dir: Optional[Path] = None
