import sqlite3
import pytest

from chronmap_lib.errors import ConfigurationError, ExtractionError
from chronmap_lib.keys import KeyExtractor, SEPARATOR


def test_identity_returns_source_unchanged():
    marker = object()
    ex = KeyExtractor.identity()
    assert ex.extract_key(marker) is marker
    assert ex("plain") == "plain"


def test_from_array_single_element_has_no_separator():
    assert KeyExtractor.from_array()(["a"]) == "a"
    assert KeyExtractor.from_array()([42]) == "42"


def test_from_array_joins_with_nul():
    assert KeyExtractor.from_array()(["a", "b", "c"]) == "a\0b\0c"
    assert KeyExtractor.from_array()(("user", 123, "profile")) == "user" + SEPARATOR + "123" + SEPARATOR + "profile"


def test_from_array_none_elements_become_empty_segments():
    ex = KeyExtractor.from_array()
    assert ex(["a", None, "c"]) == "a\0\0c"
    assert ex([None]) == ""
    assert ex([None, None]) == "\0"


@pytest.mark.parametrize("source", [None, [], (), "abc", b"abc", {"a": 1}, 5])
def test_from_array_rejects_invalid_sources(source):
    with pytest.raises(ExtractionError):
        KeyExtractor.from_array()(source)


def test_order_matters():
    ex = KeyExtractor.from_array()
    assert ex(["a", "b"]) != ex(["b", "a"])


def _row(query="SELECT 'u1' AS id, 7 AS version, NULL AS note"):
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    try:
        return conn.execute(query).fetchone()
    finally:
        conn.close()


def test_row_by_index_with_sqlite_row_and_tuple():
    row = _row()
    assert KeyExtractor.from_row_by_index(1)(row) == "u1"
    assert KeyExtractor.from_row_by_index(1, 2)(row) == "u1\x007"
    assert KeyExtractor.from_row_by_index(2, 3)(("x", "y", None)) == "y\0"


def test_row_by_name_with_sqlite_row_and_dict():
    row = _row()
    assert KeyExtractor.from_row_by_name("id")(row) == "u1"
    assert KeyExtractor.from_row_by_name("id", "note")(row) == "u1\0"
    assert KeyExtractor.from_row_by_name("a", "b")({"a": 1, "b": "two"}) == "1\0two"


@pytest.mark.parametrize("positions", [(), (0,), (1, -2), ("1",), (True,)])
def test_row_by_index_validates_positions_up_front(positions):
    with pytest.raises(ConfigurationError):
        KeyExtractor.from_row_by_index(*positions)


@pytest.mark.parametrize("names", [(), (None,), ("",), ("id", "  ")])
def test_row_by_name_validates_names_up_front(names):
    with pytest.raises(ConfigurationError):
        KeyExtractor.from_row_by_name(*names)


def test_row_extractors_reject_non_row_sources():
    with pytest.raises(ExtractionError):
        KeyExtractor.from_row_by_index(1)("not a row")
    with pytest.raises(ExtractionError):
        KeyExtractor.from_row_by_index(1)({"a": 1})
    with pytest.raises(ExtractionError):
        KeyExtractor.from_row_by_name("a")(("a",))
    with pytest.raises(ExtractionError):
        KeyExtractor.from_row_by_name("a")(None)


def test_retrieval_failures_are_wrapped():
    with pytest.raises(ExtractionError) as exc:
        KeyExtractor.from_row_by_index(5)(("only",))
    assert isinstance(exc.value.__cause__, IndexError)
    with pytest.raises(ExtractionError) as exc:
        KeyExtractor.from_row_by_name("missing")({"id": 1})
    assert isinstance(exc.value.__cause__, KeyError)
