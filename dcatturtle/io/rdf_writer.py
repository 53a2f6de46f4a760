from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from rdflib import Graph

log = logging.getLogger(__name__)

# format flag name -> rdflib serializer
SERIALIZERS = {
    "turtle": "turtle",
    "rdfxml": "xml",
    "jsonld": "json-ld",
}


def serialize(graph: Graph, fmt: str = "turtle") -> str:
    try:
        rdflib_format = SERIALIZERS[fmt]
    except KeyError:
        raise ValueError(f"Unknown output format {fmt!r}; expected one of {sorted(SERIALIZERS)}") from None
    return graph.serialize(format=rdflib_format)


def write_graph(graph: Graph, path: Optional[str] = None, fmt: str = "turtle") -> str:
    """
    Serialize ``graph`` and write it to ``path``. Without a path the
    serialized text is returned instead.
    """
    data = serialize(graph, fmt)
    if path is None:
        return data
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(data, encoding="utf-8")
    log.info("Wrote %d triple(s) as %s to %s", len(graph), fmt, out)
    return str(out)
