from __future__ import annotations

import logging
from typing import List, Optional

from rdflib import BNode

from dcatturtle.core import placeholders
from dcatturtle.core.evaluator import is_blank, looks_like_iri, resource
from dcatturtle.core.finder import JsonFinder
from dcatturtle.mapping.schema import NodeKind, NodeTemplate, SubjectTemplate

log = logging.getLogger(__name__)


def strip_parameters(s: Optional[str]) -> Optional[str]:
    """'text/plain; charset=US-ASCII' -> 'text/plain'"""
    if s is None:
        return None
    t = s.strip()
    i = t.find(";")
    return t[:i].strip() if i >= 0 else t


def normalize_media_type(base: Optional[str]) -> str:
    """
    Reduce a media-type-like value to a lower-case 'type/subtype' token so it
    can be dropped into an IRI. Values that are not type/subtype shaped come
    back trimmed and lower-cased, still without parameters.
    """
    if base is None:
        return ""
    content_type = strip_parameters(base).lower()
    parts = content_type.split("/")
    if len(parts) == 2 and parts[0].strip() and parts[1].strip():
        return parts[0] + "/" + parts[1]
    return content_type


class NodeFactory:
    """Decides the identity of subjects and node-template instances."""

    def subject(self, tpl: SubjectTemplate, finder: JsonFinder):
        iri = tpl.const if not is_blank(tpl.const) else None
        if iri is None and tpl.template is not None:
            iri = placeholders.expand(tpl.template, finder)
        if iri is None and tpl.format is not None and tpl.path is not None:
            value = finder.first(tpl.path)
            if value is not None:
                iri = placeholders.expand(tpl.format, finder, value=value)
        if iri is None and tpl.path is not None:
            iri = finder.first(tpl.path)
        return resource(iri)

    def candidates(self, node: NodeTemplate, finder: JsonFinder) -> List[Optional[str]]:
        """Base values for a node template; one instance is emitted per entry."""
        if node.kind is NodeKind.IRI and not is_blank(node.const):
            return [None]
        if is_blank(node.path):
            return [None]
        bases = finder.values(node.path)
        return bases if node.multi else bases[:1]

    def identify(self, node: NodeTemplate, base: Optional[str], finder: JsonFinder):
        if node.kind is NodeKind.BNODE:
            return BNode()
        return resource(self.iri_for(node, base, finder))

    def iri_for(self, node: NodeTemplate, base: Optional[str], finder: JsonFinder) -> Optional[str]:
        if not is_blank(node.const):
            return node.const
        base = base.strip() if base is not None else None
        iri = None
        if base is not None and node.value_map:
            key = strip_parameters(base).lower()
            iri = node.value_map.get(key, node.value_map.get(base))
        if is_blank(iri) and not is_blank(node.format):
            iri = placeholders.expand(node.format, finder, value=normalize_media_type(base))
        if is_blank(iri) and looks_like_iri(base):
            iri = base
        if is_blank(iri):
            log.debug("No IRI for node %r from base %r", node.id, base)
        return iri
