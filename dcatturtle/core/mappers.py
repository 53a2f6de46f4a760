from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from rdflib import Graph, URIRef
from rdflib.namespace import RDF

from dcatturtle.core.evaluator import eval_value
from dcatturtle.core.finder import JsonFinder
from dcatturtle.core.ids import NodeFactory
from dcatturtle.core.prefixes import PrefixTable
from dcatturtle.errors import MappingError
from dcatturtle.mapping.loader import find_node_cycle
from dcatturtle.mapping.schema import ResourceTemplate, ValueKind, ValueSource

log = logging.getLogger(__name__)

MAX_NODE_DEPTH = 32


class ResourceMapper:
    def __init__(self, template: ResourceTemplate, prefixes: PrefixTable):
        cycle = find_node_cycle(template)
        if cycle:
            raise MappingError("Node templates reference each other in a cycle: " + " -> ".join(cycle))
        self.template = template
        self.prefixes = prefixes
        self.ids = NodeFactory()

    def build(self, document: Any) -> Graph:
        graph = self.prefixes.bind_to(Graph())
        self.map_into(graph, document)
        return graph

    def map_into(self, graph: Graph, document: Any) -> list:
        """Append this resource's triples to ``graph``; return the subjects in scope order."""
        finder = JsonFinder(document)
        scope_path = self.template.scope_path
        if scope_path is not None and scope_path.strip():
            scopes = [finder.at(node) for node in finder.nodes(scope_path.strip())]
            if not scopes:
                log.debug("Scope %r matched nothing", scope_path)
                return []
        else:
            scopes = [finder]

        subjects = []
        for scoped in scopes:
            subject = self.ids.subject(self.template.subject, scoped)
            self._add_type(graph, subject, self.template.type_ref)
            self._add_properties(graph, subject, scoped, self.template.properties, 0)
            subjects.append(subject)
        return subjects

    def _add_type(self, graph: Graph, node, type_ref: Optional[str]):
        type_iri = self.prefixes.expand(type_ref)
        if type_iri is not None:
            graph.add((node, RDF.type, URIRef(type_iri)))
        elif type_ref is not None:
            log.debug("Cannot expand type %r", type_ref)

    def _add_properties(self, graph, subject, finder, props: Mapping[str, ValueSource], depth: int):
        for key, vs in props.items():
            predicate = self.prefixes.expand(vs.predicate)
            if predicate is None:
                log.debug("Skipping %r: cannot expand predicate %r", key, vs.predicate)
                continue
            p = URIRef(predicate)
            for obj in self._objects(graph, finder, vs, depth):
                graph.add((subject, p, obj))

    def _objects(self, graph, finder, vs: ValueSource, depth: int) -> list:
        if vs.kind is ValueKind.NODE_REF:
            return self._node_refs(graph, finder, vs, depth + 1)
        return eval_value(vs, finder, self.prefixes)

    def _node_refs(self, graph, finder, vs: ValueSource, depth: int) -> list:
        node = self.template.nodes.get(vs.node_ref)
        if node is None:
            log.warning("Unknown node template %r for predicate %r", vs.node_ref, vs.predicate)
            return []
        if depth > MAX_NODE_DEPTH:
            raise MappingError(f"Node templates nested deeper than {MAX_NODE_DEPTH} at {node.id!r}")

        out = []
        for base in self.ids.candidates(node, finder):
            instance = self.ids.identify(node, base, finder)
            self._add_type(graph, instance, node.type_ref)
            self._add_properties(graph, instance, finder, node.properties, depth)
            out.append(instance)
        return out
