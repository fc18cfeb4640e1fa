import pytest

from nexplore.errors import ErrorKind, InvalidPatternError
from nexplore.search import EMPTY_MATCH_SET, SearchEngine, Visibility
from nexplore.tree_store import ROOT_ID


def _ids(store, *paths):
    return {store.id_for_path(p) for p in paths}


def test_no_pattern_means_plain(store):
    search = SearchEngine(store)
    assert not search.active
    assert search.match_set() is EMPTY_MATCH_SET
    assert search.visibility(store.id_for_path("/entry1")) is Visibility.PLAIN


def test_match_set_over_fully_fetched_tree(store):
    store.expand_all(ROOT_ID, limit=100)
    search = SearchEngine(store)
    search.set_pattern("desc")
    ms = search.match_set()
    desc = store.id_for_path("/entry1/description")
    entry1 = store.id_for_path("/entry1")
    assert ms.matches == {desc}
    assert ms.ancestors[desc] == (entry1, ROOT_ID)
    assert search.visibility(desc) is Visibility.MATCH
    assert search.visibility(entry1) is Visibility.CONTEXT
    assert search.visibility(store.id_for_path("/entry2")) is Visibility.HIDDEN
    assert search.visibility(store.id_for_path("/entry1/data")) is Visibility.HIDDEN


def test_names_match_on_last_segment_only(store):
    store.expand_all(ROOT_ID, limit=100)
    search = SearchEngine(store)
    search.set_pattern("entry1/data")
    assert search.match_set().matches == frozenset()
    search.set_pattern("^data$")
    assert search.match_set().matches == _ids(store, "/entry1/data")


def test_invalid_pattern_leaves_state_untouched(store):
    store.expand_all(ROOT_ID, limit=100)
    search = SearchEngine(store)
    search.set_pattern("desc")
    before = search.match_set()
    generation = search.generation

    with pytest.raises(InvalidPatternError) as excinfo:
        search.set_pattern("desc(")

    assert excinfo.value.kind is ErrorKind.INVALID_PATTERN
    assert excinfo.value.pattern == "desc("
    assert search.pattern == "desc"
    assert search.generation == generation
    assert search.match_set() is before


def test_empty_pattern_clears(store):
    search = SearchEngine(store)
    search.set_pattern("entry")
    search.set_pattern("")
    assert not search.active
    assert search.pattern == ""


def test_unfetched_groups_are_undecidable(store):
    search = SearchEngine(store)
    search.set_pattern("title")
    entry1 = store.id_for_path("/entry1")
    assert search.match_set().matches == frozenset()
    assert search.visibility(entry1) is Visibility.UNDECIDABLE
    # fetching the group resolves it
    store.expand(store.id_for_path("/entry2"))
    assert search.visibility(store.id_for_path("/entry2/title")) is Visibility.MATCH
    assert search.visibility(store.id_for_path("/entry2")) is Visibility.CONTEXT


def test_matching_group_wins_over_undecidable(store):
    search = SearchEngine(store)
    search.set_pattern("entry2")
    entry2 = store.id_for_path("/entry2")
    assert search.visibility(entry2) is Visibility.MATCH
    assert entry2 in search.match_set().undecidable


def test_match_set_is_cached_until_something_changes(store):
    search = SearchEngine(store)
    search.set_pattern("d")
    first = search.match_set()
    assert search.match_set() is first
    store.expand(store.id_for_path("/entry1"))
    second = search.match_set()
    assert second is not first
    assert _ids(store, "/entry1/data", "/entry1/description") <= second.matches


def test_ignore_case(store):
    store.expand_all(ROOT_ID, limit=100)
    search = SearchEngine(store)
    search.set_pattern("TITLE")
    assert search.match_set().matches == frozenset()
    search.set_options(ignore_case=True)
    assert search.match_set().matches == _ids(store, "/entry2/title")


def test_attribute_search_uses_cached_values_only(store, provider):
    store.expand_all(ROOT_ID, limit=100)
    search = SearchEngine(store, search_attributes=True)
    search.set_pattern("sample description")
    assert search.match_set().matches == frozenset()
    assert store.metadata_fetch_count == 0

    desc = store.id_for_path("/entry1/description")
    store.metadata_of(desc)
    assert search.match_set().matches == {desc}

    search.set_options(search_attributes=False)
    assert search.match_set().matches == frozenset()


def test_spans_and_counter(store):
    store.expand_all(ROOT_ID, limit=100)
    search = SearchEngine(store)
    search.set_pattern("t")
    assert search.spans("data") == [(2, 3)]
    assert search.spans("title") == [(0, 1), (2, 3)]
    ordered = search.match_set().ordered
    assert [store.node(i).path for i in ordered] == [
        "/entry1",
        "/entry1/data",
        "/entry1/description",
        "/entry2",
        "/entry2/title",
    ]
    assert search.counter(ordered[1]) == (2, 5)
    assert search.counter_text(None) == "0/5"


def test_counter_without_matches(store):
    search = SearchEngine(store)
    search.set_pattern("nothing-here")
    assert search.counter_text(None) == "0/0"
