from __future__ import annotations

import re
from types import MappingProxyType
from typing import Mapping, Optional

from rdflib import Graph

# scheme "://" or urn: form; a bare "dct:title" is a CURIE, not an IRI
_ABSOLUTE_IRI = re.compile(r"^(?:[A-Za-z][A-Za-z0-9+.-]*://|urn:)", re.IGNORECASE)


class PrefixTable:
    """
    Fixed prefix -> namespace table used to expand compact identifiers.

    expand("dct:title") -> "http://purl.org/dc/terms/title"
    expand("http://x.org/a") -> unchanged
    expand("nope:thing") -> None
    """

    def __init__(self, prefixes: Optional[Mapping[str, str]] = None):
        self._ns: Mapping[str, str] = MappingProxyType(dict(prefixes or {}))

    def expand(self, ref: Optional[str]) -> Optional[str]:
        if ref is None:
            return None
        ref = ref.strip()
        if not ref:
            return None
        if ref.startswith("<") and ref.endswith(">"):
            return ref[1:-1].strip() or None
        if ":" in ref:
            prefix, local = ref.split(":", 1)
            ns = self._ns.get(prefix)
            if ns is not None:
                return ns + local
        if _ABSOLUTE_IRI.match(ref):
            return ref
        return None

    def bind_to(self, graph: Graph) -> Graph:
        for prefix, ns in self._ns.items():
            graph.bind(prefix, ns, override=True, replace=True)
        return graph
