"""Tests for key path parsing and mutation."""

import copy

import pytest

from ipwatch.errors import InvalidPathError
from ipwatch.paths import apply_path, parse_path, read_path


class TestParsePath:
    """Test path tokenizing."""

    def test_single_key(self):
        """A path without structural characters is one key."""
        assert parse_path("key") == ["key"]

    def test_dotted_keys(self):
        """Dots separate mapping keys."""
        assert parse_path("a.b.c") == ["a", "b", "c"]

    def test_subscripts(self):
        """Subscripts become integer tokens."""
        assert parse_path("a.b[0].c") == ["a", "b", 0, "c"]

    def test_multiple_subscripts(self):
        """A segment can carry several subscripts."""
        assert parse_path("grid[1][12]") == ["grid", 1, 12]

    def test_leading_subscript(self):
        """A subscript-only segment indexes the current value."""
        assert parse_path("[0].name") == [0, "name"]

    @pytest.mark.parametrize(
        "path",
        ["", "a.", ".a", "a..b", "a[", "a[0", "a]", "a[x]", "a[-1]", "a[]", "a[0]b", "a[[0]]"],
    )
    def test_malformed_paths_rejected(self, path):
        """Malformed paths raise InvalidPathError."""
        with pytest.raises(InvalidPathError):
            parse_path(path)

    def test_error_carries_path(self):
        """InvalidPathError keeps the offending path."""
        with pytest.raises(InvalidPathError) as exc_info:
            parse_path("a.")
        assert exc_info.value.path == "a."
        assert "empty segment" in str(exc_info.value)


class TestApplyPath:
    """Test apply_path."""

    def test_top_level_key(self):
        """A bare key sets doc[key] directly."""
        assert apply_path({"x": 1}, "key", "v") == {"x": 1, "key": "v"}

    def test_creates_intermediate_mappings(self):
        """Missing intermediate keys become mappings."""
        assert apply_path({}, "a.b", "x") == {"a": {"b": "x"}}

    def test_overwrites_existing_leaf(self):
        """Existing values are replaced."""
        doc = {"a": {"b": "old", "c": 1}}
        assert apply_path(doc, "a.b", "new") == {"a": {"b": "new", "c": 1}}

    def test_appends_to_empty_array(self):
        """Index past the end of an empty array appends."""
        assert apply_path({"arr": []}, "arr[0]", "y") == {"arr": ["y"]}

    def test_grows_by_append_not_padding(self):
        """Index far past the end appends at the end."""
        doc = apply_path({"arr": []}, "arr[0]", "y")
        assert apply_path(doc, "arr[5]", "z") == {"arr": ["y", "z"]}

    def test_replaces_element_in_range(self):
        """Index within the array replaces the element."""
        assert apply_path({"arr": [1, 2, 3]}, "arr[1]", 9) == {"arr": [1, 9, 3]}

    def test_descends_into_array_element(self):
        """Keys after a subscript address the element."""
        doc = {"key": [{"nestedKey": "oldValue"}]}
        result = apply_path(doc, "key[0].nestedKey", "newValue")
        assert result == {"key": [{"nestedKey": "newValue"}]}

    def test_missing_key_before_subscript_creates_array(self):
        """A missing key followed by a subscript becomes an array."""
        assert apply_path({}, "hosts[0]", "a") == {"hosts": ["a"]}

    def test_append_ignores_rest_of_path(self):
        """An index past the end appends the bare value, whatever follows it."""
        result = apply_path({"servers": []}, "servers[3].host", "example.com")
        assert result == {"servers": ["example.com"]}
        assert apply_path({"arr": []}, "arr[0].x", "v") == {"arr": ["v"]}

    def test_append_with_rest_keeps_existing_items(self):
        """Appending past the end leaves earlier elements alone."""
        doc = {"servers": [{"host": "a"}]}
        result = apply_path(doc, "servers[1].host.name", "b")
        assert result == {"servers": [{"host": "a"}, "b"]}

    def test_null_values_become_containers(self):
        """Null along the path is replaced by a container."""
        assert apply_path({"a": None}, "a.b", 1) == {"a": {"b": 1}}
        assert apply_path(None, "a", 1) == {"a": 1}
        assert apply_path(None, "[0]", 1) == [1]

    def test_nested_arrays(self):
        """Consecutive subscripts index nested arrays."""
        doc = {"grid": [[0, 0], [0, 0]]}
        assert apply_path(doc, "grid[1][0]", 5) == {"grid": [[0, 0], [5, 0]]}

    def test_value_can_be_any_document(self):
        """Values may be containers."""
        result = apply_path({}, "a", {"b": [1, None, True]})
        assert result == {"a": {"b": [1, None, True]}}

    def test_input_not_modified(self):
        """apply_path does not mutate its input."""
        doc = {"a": {"b": [1, {"c": 2}]}, "other": {"x": 1}}
        before = copy.deepcopy(doc)

        apply_path(doc, "a.b[1].c", 3)
        apply_path(doc, "a.b[7]", 4)

        assert doc == before

    def test_untouched_branches_preserved(self):
        """Siblings of the path are left as they were."""
        doc = {"a": {"b": 1, "c": [1, 2]}, "d": "x"}
        result = apply_path(doc, "a.b", 2)
        assert result["a"]["c"] == [1, 2]
        assert result["d"] == "x"

    @pytest.mark.parametrize(
        "doc,path",
        [
            ({"a": 5}, "a.b"),
            ({"a": "text"}, "a[0]"),
            ({"a": [1]}, "a.b"),
            ({"a": {"b": 1}}, "a[0]"),
            ({"a": [1]}, "a[0].b"),
            ([1, 2], "key"),
        ],
    )
    def test_shape_mismatch_raises(self, doc, path):
        """Stepping through the wrong kind of value raises InvalidPathError."""
        with pytest.raises(InvalidPathError):
            apply_path(doc, path, "v")

    def test_malformed_path_raises(self):
        """Malformed paths are rejected rather than guessed at."""
        with pytest.raises(InvalidPathError):
            apply_path({}, "a.b.", "v")
        with pytest.raises(InvalidPathError):
            apply_path({"a": []}, "a[x]", "v")

    @pytest.mark.parametrize(
        "doc,path",
        [
            ({}, "a.b.c"),
            ({"a": {"b": 1}}, "a.b"),
            ({"arr": [1, 2]}, "arr[1]"),
            ({"arr": [{"x": 1}]}, "arr[0].x"),
            ({"k": None}, "k"),
        ],
    )
    def test_overwrite_is_idempotent(self, doc, path):
        """Writing twice to the same path equals writing once."""
        twice = apply_path(apply_path(doc, path, "v1"), path, "v2")
        assert twice == apply_path(doc, path, "v2")


class TestReadPath:
    """Test read_path."""

    def test_reads_nested_value(self):
        """Reads through mappings and arrays."""
        doc = {"a": {"b": [{"c": 42}]}}
        assert read_path(doc, "a.b[0].c") == 42

    def test_missing_returns_default(self):
        """Missing keys and indices return the default."""
        doc = {"a": {"b": [1]}}
        assert read_path(doc, "a.x") is None
        assert read_path(doc, "a.b[3]", default="d") == "d"
        assert read_path(doc, "x.y.z", default=0) == 0

    def test_null_returns_default(self):
        """Reading through null returns the default."""
        assert read_path({"a": None}, "a.b", default="d") == "d"

    def test_scalar_raises(self):
        """Reading through a scalar raises InvalidPathError."""
        with pytest.raises(InvalidPathError):
            read_path({"a": 1}, "a.b")

    def test_reads_back_written_value(self):
        """A value written by apply_path reads back."""
        doc = apply_path({}, "a.b[0].c", "x")
        assert read_path(doc, "a.b[0].c") == "x"
