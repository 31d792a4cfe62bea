from query_matcher import QueryMatcher
from tests.conftest import make_text


def test_empty_results_give_no_matches():
    matcher = QueryMatcher()
    matcher.set_query("exit")

    assert matcher.filter([]) == []


def test_empty_query_matches_nothing():
    matcher = QueryMatcher()

    assert matcher.filter([make_text("Hello"), make_text("World")]) == []


def test_none_query_is_empty():
    matcher = QueryMatcher("hello")
    matcher.set_query(None)

    assert matcher.query == ""
    assert matcher.filter([make_text("hello")]) == []


def test_matching_ignores_case():
    matcher = QueryMatcher()
    matcher.set_query("WORLD")
    record = make_text("Hello World")

    assert matcher.filter([record]) == [record]


def test_substring_match_preserves_order():
    matcher = QueryMatcher("ar")
    items = [make_text("Parking"), make_text("Exit"), make_text("CAR WASH"), make_text("bar")]

    assert [item.text for item in matcher.filter(items)] == ["Parking", "CAR WASH", "bar"]


def test_no_partial_token_matching():
    matcher = QueryMatcher("helo")

    assert matcher.filter([make_text("hello")]) == []
