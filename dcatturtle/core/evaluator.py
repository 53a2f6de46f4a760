from __future__ import annotations

import logging
import re
from typing import List, Optional

from rdflib import BNode, Literal, URIRef

from dcatturtle.core import placeholders
from dcatturtle.core.finder import JsonFinder
from dcatturtle.core.prefixes import PrefixTable
from dcatturtle.mapping.schema import ValueKind, ValueSource

log = logging.getLogger(__name__)

_SCHEME = re.compile(r"[a-zA-Z][a-zA-Z0-9+.-]*:.*")


def looks_like_iri(s: Optional[str]) -> bool:
    # quick absolute IRI check (scheme ":" ...)
    return s is not None and _SCHEME.fullmatch(s) is not None


def is_blank(s: Optional[str]) -> bool:
    return s is None or not s.strip()


def resource(iri: Optional[str]):
    """URIRef for a usable absolute IRI, otherwise an anonymous node."""
    if is_blank(iri) or not looks_like_iri(iri):
        if not is_blank(iri):
            log.debug("Not an absolute IRI, using blank node: %r", iri)
        return BNode()
    return URIRef(iri)


# --- pipeline steps ----------------------------------------------------------
def base_values(vs: ValueSource, finder: JsonFinder) -> List[str]:
    if vs.const is not None:
        return [vs.const]
    if vs.path is not None:
        values = finder.values(vs.path)
        return values if vs.multi else values[:1]
    # format may carry ${1} or inline JSONPaths only; give it one base to run on
    if not is_blank(vs.format):
        return [""]
    return []


def apply_map(vs: ValueSource, value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if vs.value_map:
        return vs.value_map.get(value)
    return value


def apply_format(vs: ValueSource, value: Optional[str], finder: JsonFinder) -> Optional[str]:
    if is_blank(vs.format) or value is None:
        return value
    return placeholders.expand(vs.format, finder, value=value, indexed=vs.indexed_paths)


def resolve_values(vs: ValueSource, finder: JsonFinder) -> List[Optional[str]]:
    """Base values after remapping and formatting; None marks a dropped value."""
    return [apply_format(vs, apply_map(vs, v), finder) for v in base_values(vs, finder)]


def literal(value: str, vs: ValueSource, prefixes: PrefixTable) -> Literal:
    datatype = vs.datatype
    if not is_blank(datatype) and not datatype.startswith("http"):
        datatype = prefixes.expand(datatype) or datatype
    if not is_blank(datatype):
        return Literal(value, datatype=URIRef(datatype))
    if not is_blank(vs.lang):
        return Literal(value, lang=vs.lang)
    return Literal(value)


def eval_value(vs: ValueSource, finder: JsonFinder, prefixes: PrefixTable) -> list:
    """Objects for a literal or iri value source, in path-result order."""
    values = resolve_values(vs, finder)
    if vs.kind is ValueKind.IRI:
        return [resource(v) for v in values if not is_blank(v)]
    if vs.kind is ValueKind.LITERAL:
        return [literal(v, vs, prefixes) for v in values if v is not None]
    raise ValueError(f"eval_value does not handle {vs.kind.value!r} value sources")
