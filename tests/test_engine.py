import json
import logging

import pytest
from rdflib import Graph, Literal, URIRef
from rdflib.namespace import RDF

from dcatturtle import cli
from dcatturtle.core.engine import build_export, run_export, run_map
from dcatturtle.errors import ConfigError
from dcatturtle.io.rdf_writer import serialize, write_graph
from dcatturtle.mapping.loader import load_root_config

DCAT = "http://www.w3.org/ns/dcat#"
DCT = "http://purl.org/dc/terms/"

DOCUMENT = {
    "uri": "http://ex.org/ds/1",
    "title": "Rivers",
    "files": [{"id": "1", "name": "a.csv"}, {"id": "2", "name": "b.csv"}],
}

DATASET = {
    "subject": {"json": "$.uri"},
    "props": {"title": {"predicate": "dct:title", "json": "$.title", "lang": "en"}},
}

DISTRIBUTION = {
    "scope": "$.files[*]",
    "subject": {"format": "http://ex.org/file/${value}", "json": "$.id"},
    "props": {"title": {"predicate": "dct:title", "json": "$.name"}},
}


def write(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture
def config(tmp_path):
    write(tmp_path / "dataset.json", DATASET)
    write(tmp_path / "distribution.json", DISTRIBUTION)
    return write(tmp_path / "root.json", {
        "prefixes": {"dcat": DCAT, "dct": DCT},
        "elements": [
            {"id": "dataset", "type": "dcat:Dataset", "file": "dataset.json"},
            {"id": "distribution", "type": "dcat:Distribution", "file": "distribution.json"},
        ],
        "relations": [
            {"subject": "dataset", "predicate": "dcat:distribution", "object": "distribution"},
            {"subject": "dataset", "predicate": "nope:x", "object": "distribution"},
        ],
        "formats": {"rdfxml": False},
    })


@pytest.fixture
def document(tmp_path):
    return write(tmp_path / "doc.json", DOCUMENT)


def test_build_export_links_elements(config):
    g = build_export(DOCUMENT, load_root_config(config))
    ds = URIRef("http://ex.org/ds/1")
    assert (ds, RDF.type, URIRef(DCAT + "Dataset")) in g
    assert set(g.objects(ds, URIRef(DCAT + "distribution"))) == {
        URIRef("http://ex.org/file/1"), URIRef("http://ex.org/file/2")}
    assert g.value(URIRef("http://ex.org/file/2"), URIRef(DCT + "title")) == Literal("b.csv")
    assert len(list(g.subjects(RDF.type, URIRef(DCAT + "Distribution")))) == 2


def test_run_export_writes_turtle(config, document, tmp_path):
    out = tmp_path / "out" / "ds.ttl"
    assert run_export(document, config, str(out)) == str(out)
    g = Graph().parse(str(out), format="turtle")
    assert (URIRef("http://ex.org/ds/1"), URIRef(DCT + "title"), Literal("Rivers", lang="en")) in g


def test_run_export_returns_text_without_path(config, document):
    text = run_export(document, config, fmt="jsonld")
    g = Graph().parse(data=text, format="json-ld")
    assert len(g) > 0


def test_disabled_format_is_refused(config, document):
    with pytest.raises(ConfigError, match="disabled"):
        run_export(document, config, fmt="rdfxml")


def test_run_map_single_resource(tmp_path, document):
    mapping = write(tmp_path / "dataset.json", {**DATASET, "type": "dcat:Dataset"})
    prefixes = write(tmp_path / "prefixes.json", {"dcat": DCAT, "dct": DCT})
    text = run_map(document, mapping, prefixes_path=prefixes)
    g = Graph().parse(data=text, format="turtle")
    assert (URIRef("http://ex.org/ds/1"), RDF.type, URIRef(DCAT + "Dataset")) in g


def test_serialize_unknown_format():
    with pytest.raises(ValueError, match="Unknown output format"):
        serialize(Graph(), "n3")


def test_write_graph_rdfxml(tmp_path):
    g = Graph()
    g.add((URIRef("http://ex.org/a"), URIRef(DCT + "title"), Literal("x")))
    out = write_graph(g, str(tmp_path / "a.rdf"), fmt="rdfxml")
    assert len(Graph().parse(out, format="xml")) == 1


def test_cli_export(config, document, tmp_path, capsys):
    assert cli.main(["-q", "export", str(document), "--config", str(config)]) == 0
    g = Graph().parse(data=capsys.readouterr().out, format="turtle")
    assert len(list(g.subjects(RDF.type, URIRef(DCAT + "Distribution")))) == 2


def test_cli_reports_config_errors(document, tmp_path):
    assert cli.main(["-q", "export", str(document), "--config", str(tmp_path / "missing.json")]) == 1


def test_trace_level_is_restored_after_export(tmp_path):
    write(tmp_path / "dataset.json", DATASET)
    path = write(tmp_path / "root.json", {
        "trace": True,
        "prefixes": {"dcat": DCAT, "dct": DCT},
        "elements": [{"id": "dataset", "type": "dcat:Dataset", "file": "dataset.json"}],
    })
    package_log = logging.getLogger("dcatturtle")
    before = package_log.level
    build_export(DOCUMENT, load_root_config(path))
    assert package_log.level == before
