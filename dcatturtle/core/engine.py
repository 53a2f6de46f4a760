from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from rdflib import Graph, URIRef

from dcatturtle.core.mappers import ResourceMapper
from dcatturtle.core.prefixes import PrefixTable
from dcatturtle.errors import ConfigError
from dcatturtle.io.rdf_writer import write_graph
from dcatturtle.mapping.loader import load_element_templates, load_resource_template, load_root_config
from dcatturtle.mapping.schema import RootConfig

log = logging.getLogger(__name__)


def load_document(document_path, json_encoding: str = "utf-8") -> Any:
    return json.loads(Path(document_path).read_text(encoding=json_encoding))


def build_export(document: Any, root: RootConfig, json_encoding: str = "utf-8") -> Graph:
    """
    Map every element of ``root`` against ``document`` into one graph, then
    link element subjects along the configured relations.
    """
    if not root.trace:
        return _map_elements(document, root, json_encoding)
    package_log = logging.getLogger("dcatturtle")
    previous = package_log.level
    package_log.setLevel(logging.DEBUG)
    try:
        return _map_elements(document, root, json_encoding)
    finally:
        package_log.setLevel(previous)


def _map_elements(document: Any, root: RootConfig, json_encoding: str) -> Graph:
    prefixes = PrefixTable(root.prefixes)
    scratch = prefixes.bind_to(Graph())
    subjects: Dict[str, list] = {}
    for element, template in load_element_templates(root, json_encoding=json_encoding):
        subjects[element.id] = ResourceMapper(template, prefixes).map_into(scratch, document)
        log.debug("Element %r emitted %d subject(s)", element.id, len(subjects[element.id]))

    for rel in root.relations:
        predicate = prefixes.expand(rel.predicate)
        if predicate is None:
            log.debug("Skipping relation %s -> %s: cannot expand %r", rel.subject, rel.object, rel.predicate)
            continue
        p = URIRef(predicate)
        for s in subjects.get(rel.subject, []):
            for o in subjects.get(rel.object, []):
                scratch.add((s, p, o))

    graph = prefixes.bind_to(Graph())
    graph += scratch
    return graph


def run_export(document_path, config_path=None, out_path: Optional[str] = None,
               fmt: str = "turtle", json_encoding: str = "utf-8"):
    root = load_root_config(config_path, json_encoding=json_encoding)
    if not root.formats.is_available(fmt):
        raise ConfigError(f"Output format {fmt!r} is disabled in the root config")
    graph = build_export(load_document(document_path, json_encoding), root, json_encoding=json_encoding)
    return write_graph(graph, out_path, fmt=fmt)


def run_map(document_path, mapping_path, out_path: Optional[str] = None,
            prefixes_path: Optional[str] = None, fmt: str = "turtle",
            json_encoding: str = "utf-8"):
    prefixes = {}
    if prefixes_path:
        prefixes = json.loads(Path(prefixes_path).read_text(encoding=json_encoding))
    template = load_resource_template(mapping_path, json_encoding=json_encoding)
    graph = ResourceMapper(template, PrefixTable(prefixes)).build(load_document(document_path, json_encoding))
    return write_graph(graph, out_path, fmt=fmt)
