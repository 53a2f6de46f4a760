import pytest

from dcatturtle.core.finder import JsonFinder, as_text
from dcatturtle.errors import MappingError

DOC = {
    "id": 7,
    "restricted": False,
    "title": "Demo",
    "nothing": None,
    "files": [{"id": "f1", "size": 10}, {"id": "f2", "size": 20}],
}


def test_as_text_uses_json_spelling():
    assert as_text("x") == "x"
    assert as_text(False) == "false"
    assert as_text(True) == "true"
    assert as_text(4) == "4"
    assert as_text(None) is None
    assert as_text({"a": [1, 2]}) == '{"a":[1,2]}'


def test_values_stringify_and_skip_null():
    f = JsonFinder(DOC)
    assert f.values("$.id") == ["7"]
    assert f.values("$.restricted") == ["false"]
    assert f.values("$.nothing") == []
    assert f.values("$.missing") == []
    assert f.values(None) == []


def test_wildcard_keeps_document_order():
    f = JsonFinder(DOC)
    assert f.values("$.files[*].id") == ["f1", "f2"]


def test_scoped_lookup_and_root_escape():
    f = JsonFinder(DOC)
    first_file = f.nodes("$.files[*]")[0]
    scoped = f.at(first_file)
    assert scoped.values("$.id") == ["f1"]
    assert scoped.values("$$.id") == ["7"]
    assert scoped.first("$$.title") == "Demo"
    assert scoped.first("$.title", "") == ""


def test_missing_document_is_structural():
    with pytest.raises(MappingError):
        JsonFinder(None)


def test_malformed_path_raises():
    with pytest.raises(MappingError):
        JsonFinder(DOC).values("$.files[")
