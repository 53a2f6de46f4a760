from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from dcatturtle.core.finder import as_text
from dcatturtle.errors import ConfigError
from dcatturtle.mapping.schema import (
    AvailableFormats,
    Element,
    NodeKind,
    NodeTemplate,
    Relation,
    ResourceTemplate,
    RootConfig,
    SubjectTemplate,
    ValueKind,
    ValueSource,
)

log = logging.getLogger(__name__)

CONFIG_ENV = "DCATTURTLE_CONFIG"


def _read_json(path: Path, json_encoding: str = "utf-8") -> Dict[str, Any]:
    try:
        raw = json.loads(Path(path).read_text(encoding=json_encoding))
    except FileNotFoundError as exc:
        raise ConfigError(f"Mapping file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"Expected a JSON object at top level of {path}")
    return raw


def _opt_str(raw: Dict[str, Any], key: str, where: str) -> Optional[str]:
    v = raw.get(key)
    if v is None:
        return None
    if not isinstance(v, str):
        raise ConfigError(f"{where}.{key} must be a string, got {type(v).__name__}")
    return v


def _str_map(raw: Any, where: str) -> Mapping[str, str]:
    if raw is None:
        return MappingProxyType({})
    if not isinstance(raw, dict):
        raise ConfigError(f"{where}.map must be an object")
    # null targets are left out so the key drops its value
    return MappingProxyType({str(k): as_text(v) for k, v in raw.items() if v is not None})


def safe_boolean(raw: Any, default: bool) -> bool:
    """
    Lenient boolean: None -> default, real bools as-is, strings trimmed with a
    trailing ';' ignored ("true;" -> True). Anything else reads as False.
    """
    if raw is None:
        return default
    if isinstance(raw, bool):
        return raw
    cleaned = str(raw).strip()
    if cleaned.endswith(";"):
        cleaned = cleaned[:-1].strip()
    return cleaned.lower() == "true"


# --- resource templates ------------------------------------------------------
def parse_value_source(key: str, raw: Dict[str, Any]) -> ValueSource:
    where = f"props.{key}"
    if not isinstance(raw, dict):
        raise ConfigError(f"{where} must be an object")
    predicate = _opt_str(raw, "predicate", where)
    if not predicate:
        raise ConfigError(f"{where} has no predicate")

    as_ = raw.get("as", ValueKind.LITERAL.value)
    try:
        kind = ValueKind(as_)
    except ValueError:
        raise ConfigError(f"{where}.as must be one of literal, iri, node-ref; got {as_!r}") from None

    node_ref = _opt_str(raw, "node", where)
    if kind is ValueKind.NODE_REF and not node_ref:
        raise ConfigError(f"{where} is a node-ref without 'node'")

    paths = raw.get("jsonPaths") or []
    if not isinstance(paths, list) or not all(isinstance(p, str) for p in paths):
        raise ConfigError(f"{where}.jsonPaths must be a list of strings")

    return ValueSource(
        predicate=predicate,
        kind=kind,
        const=as_text(raw.get("const")),
        path=_opt_str(raw, "json", where),
        indexed_paths=tuple(paths),
        format=_opt_str(raw, "format", where),
        value_map=_str_map(raw.get("map"), where),
        multi=safe_boolean(raw.get("multi"), False),
        lang=_opt_str(raw, "lang", where),
        datatype=_opt_str(raw, "datatype", where),
        node_ref=node_ref,
    )


def _parse_props(raw: Any, where: str) -> Mapping[str, ValueSource]:
    if raw is None:
        return MappingProxyType({})
    if not isinstance(raw, dict):
        raise ConfigError(f"{where}.props must be an object")
    return MappingProxyType({k: parse_value_source(k, v) for k, v in raw.items()})


def parse_node_template(node_id: str, raw: Dict[str, Any]) -> NodeTemplate:
    where = f"nodes.{node_id}"
    if not isinstance(raw, dict):
        raise ConfigError(f"{where} must be an object")
    kind_raw = raw.get("kind", NodeKind.BNODE.value)
    try:
        kind = NodeKind(kind_raw)
    except ValueError:
        raise ConfigError(f"{where}.kind must be 'bnode' or 'iri'; got {kind_raw!r}") from None
    return NodeTemplate(
        id=node_id,
        kind=kind,
        const=_opt_str(raw, "const", where),
        path=_opt_str(raw, "json", where),
        format=_opt_str(raw, "format", where),
        type_ref=_opt_str(raw, "type", where),
        multi=safe_boolean(raw.get("multi"), False),
        value_map=_str_map(raw.get("map"), where),
        properties=_parse_props(raw.get("props"), where),
    )


def parse_resource_template(raw: Dict[str, Any], type_ref: Optional[str] = None) -> ResourceTemplate:
    """
    Build a ResourceTemplate from its JSON form:

        {
          "scope": "$.files[*]",
          "type": "dcat:Distribution",
          "subject": {"const" | "template" | "format" + "json" | "json"},
          "props": {"<key>": {value source}, ...},
          "nodes": {"<id>": {node template}, ...}
        }

    An explicit ``type_ref`` (the element type from the root config) wins over
    the file's own "type".
    """
    subj = raw.get("subject") or {}
    if not isinstance(subj, dict):
        raise ConfigError("subject must be an object")
    subject = SubjectTemplate(
        const=_opt_str(subj, "const", "subject"),
        template=_opt_str(subj, "template", "subject"),
        format=_opt_str(subj, "format", "subject"),
        path=_opt_str(subj, "json", "subject"),
    )
    nodes_raw = raw.get("nodes") or {}
    if not isinstance(nodes_raw, dict):
        raise ConfigError("nodes must be an object")
    nodes = MappingProxyType({k: parse_node_template(k, v) for k, v in nodes_raw.items()})

    template = ResourceTemplate(
        subject=subject,
        scope_path=_opt_str(raw, "scope", "resource"),
        type_ref=type_ref or _opt_str(raw, "type", "resource"),
        properties=_parse_props(raw.get("props"), "resource"),
        nodes=nodes,
    )
    check_node_refs(template)
    return template


def find_node_cycle(template: ResourceTemplate) -> Optional[List[str]]:
    """
    Return the chain of node ids forming a node-ref cycle, or None.
    Unknown node refs are ignored here; they are a mapping-time gap.
    """
    nodes = template.nodes

    def refs(props: Mapping[str, ValueSource]):
        for vs in props.values():
            if vs.kind is ValueKind.NODE_REF and vs.node_ref in nodes:
                yield vs.node_ref

    done = set()

    def visit(node_id: str, chain: List[str]) -> Optional[List[str]]:
        if node_id in chain:
            return chain[chain.index(node_id):] + [node_id]
        if node_id in done:
            return None
        for ref in refs(nodes[node_id].properties):
            cycle = visit(ref, chain + [node_id])
            if cycle:
                return cycle
        done.add(node_id)
        return None

    for start in nodes:
        cycle = visit(start, [])
        if cycle:
            return cycle
    return None


def check_node_refs(template: ResourceTemplate) -> None:
    cycle = find_node_cycle(template)
    if cycle:
        raise ConfigError("Node templates reference each other in a cycle: " + " -> ".join(cycle))

    scopes = [("resource", template.properties)]
    scopes += [(f"nodes.{n.id}", n.properties) for n in template.nodes.values()]
    for where, props in scopes:
        for key, vs in props.items():
            if vs.kind is ValueKind.NODE_REF and vs.node_ref not in template.nodes:
                log.warning("%s.props.%s refers to unknown node %r", where, key, vs.node_ref)


def load_resource_template(mapping_path, type_ref: Optional[str] = None,
                           json_encoding: str = "utf-8") -> ResourceTemplate:
    return parse_resource_template(_read_json(Path(mapping_path), json_encoding), type_ref=type_ref)


# --- root configuration ------------------------------------------------------
def _parse_formats(raw: Any) -> AvailableFormats:
    raw = raw or {}
    if not isinstance(raw, dict):
        raise ConfigError("formats must be an object")
    flags = {}
    for name, value in raw.items():
        fmt = str(name).lower()
        if fmt in ("turtle", "rdfxml", "jsonld"):
            flags[fmt] = safe_boolean(value, True)
        else:
            log.warning("Ignoring unknown output format flag %r", name)
    return AvailableFormats(**flags)


def parse_root_config(raw: Dict[str, Any], base_dir: Optional[Path] = None) -> RootConfig:
    prefixes = raw.get("prefixes") or {}
    if not isinstance(prefixes, dict):
        raise ConfigError("prefixes must be an object")

    elements = []
    for i, e in enumerate(raw.get("elements") or []):
        if not isinstance(e, dict) or not e.get("id") or not e.get("file"):
            raise ConfigError(f"elements[{i}] needs 'id' and 'file'")
        elements.append(Element(id=str(e["id"]), type_ref=e.get("type"), file=str(e["file"])))

    ids = {e.id for e in elements}
    if len(ids) != len(elements):
        raise ConfigError("Element ids must be unique")

    relations = []
    for i, r in enumerate(raw.get("relations") or []):
        if not isinstance(r, dict) or not all(r.get(k) for k in ("subject", "predicate", "object")):
            raise ConfigError(f"relations[{i}] needs 'subject', 'predicate' and 'object'")
        for end in ("subject", "object"):
            if r[end] not in ids:
                raise ConfigError(f"relations[{i}].{end} refers to unknown element {r[end]!r}")
        relations.append(Relation(subject=r["subject"], predicate=r["predicate"], object=r["object"]))

    return RootConfig(
        trace=safe_boolean(raw.get("trace"), False),
        prefixes={str(k): str(v) for k, v in prefixes.items()},
        elements=tuple(elements),
        relations=tuple(relations),
        formats=_parse_formats(raw.get("formats")),
        base_dir=base_dir,
    )


def load_root_config(config_path=None, json_encoding: str = "utf-8") -> RootConfig:
    """
    Load the root config from ``config_path`` or, when omitted, from the path
    in the DCATTURTLE_CONFIG environment variable.
    """
    if config_path is None:
        config_path = os.environ.get(CONFIG_ENV, "").strip()
        if not config_path:
            raise ConfigError(
                f"Environment variable '{CONFIG_ENV}' not set; "
                f"please provide a path to the root mapping config"
            )
    path = Path(config_path).expanduser()
    return parse_root_config(_read_json(path, json_encoding), base_dir=path.resolve().parent)


def load_element_templates(root: RootConfig, json_encoding: str = "utf-8") -> Tuple[Tuple[Element, ResourceTemplate], ...]:
    out = []
    for element in root.elements:
        path = Path(element.file)
        if not path.is_absolute() and root.base_dir is not None:
            path = root.base_dir / path
        out.append((element, load_resource_template(path, type_ref=element.type_ref,
                                                    json_encoding=json_encoding)))
    return tuple(out)
