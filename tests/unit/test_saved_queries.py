"""
Unit tests for the saved query store.
"""

import json

import pytest

from notizia.reporting.filters import Query
from notizia.reporting.saved_queries import SavedQueryStore


@pytest.fixture
def store(tmp_path) -> SavedQueryStore:
    return SavedQueryStore(tmp_path / "queries" / "saved.json")


class TestSavedQueryStore:
    """Tests for SavedQueryStore."""

    def test_missing_file_is_empty(self, store):
        """A store without a file has no entries."""
        assert store.list() == []
        assert store.get("anything") is None

    def test_save_and_get(self, store):
        """A saved query can be read back by name."""
        query = Query(problem="panic", age_min=18)
        store.save("Panik", query)
        assert store.get("Panik") == query

    def test_save_creates_directory(self, store):
        """Parent directories are created on first save."""
        store.save("Alle", Query())
        assert store.path.exists()

    def test_newest_first(self, store):
        """The most recently saved query is listed first."""
        store.save("A", Query(gender="w"))
        store.save("B", Query(gender="m"))
        assert [e.name for e in store.list()] == ["B", "A"]

    def test_same_name_replaces(self, store):
        """Saving under an existing name replaces and moves it to the front."""
        store.save("A", Query(gender="w"))
        store.save("B", Query(gender="m"))
        store.save("A", Query(gender="d"))
        entries = store.list()
        assert [e.name for e in entries] == ["A", "B"]
        assert entries[0].query.gender == "d"

    def test_names_are_trimmed(self, store):
        """Leading and trailing whitespace is ignored."""
        store.save("  Panik  ", Query(problem="panic"))
        assert store.get("Panik") == Query(problem="panic")
        assert store.list()[0].name == "Panik"

    @pytest.mark.parametrize("name", ["", "   "])
    def test_empty_name_rejected(self, store, name):
        """Empty names raise ValueError."""
        with pytest.raises(ValueError):
            store.save(name, Query())

    def test_delete(self, store):
        """Deleting removes only the named entry."""
        store.save("A", Query())
        store.save("B", Query())
        assert store.delete("A") is True
        assert [e.name for e in store.list()] == ["B"]

    def test_delete_unknown(self, store):
        """Deleting a missing name returns False."""
        assert store.delete("nope") is False

    def test_file_format(self, store):
        """The file is a JSON list of name/query entries."""
        store.save("Coaching", Query(method="coaching"))
        data = json.loads(store.path.read_text(encoding="utf-8"))
        assert data[0]["name"] == "Coaching"
        assert data[0]["query"]["method"] == "coaching"

    def test_shared_file(self, store):
        """Two stores on the same path see each other's entries."""
        store.save("A", Query())
        other = SavedQueryStore(store.path)
        assert [e.name for e in other.list()] == ["A"]

    def test_invalid_file(self, store):
        """A corrupt file raises ValueError."""
        store.path.parent.mkdir(parents=True)
        store.path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ValueError):
            store.list()
