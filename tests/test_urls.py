"""Tests for the GET allow-list matcher."""

from csrf_protector.context import RequestContext
from csrf_protector.urls import get_current_url, is_url_allowed


def test_glob_matches_path():
    assert is_url_allowed("http://test/api/widgets", ["/api/*"])


def test_unmatched_url_not_allowed():
    assert not is_url_allowed("http://test/account/delete", ["/api/*"])


def test_any_pattern_matches():
    assert is_url_allowed("https://example.com/health", ["/api/*", "*/health"])


def test_no_patterns_allows_nothing():
    assert not is_url_allowed("http://test/api/widgets", [])


def test_pattern_characters_are_literal():
    """Test that regex metacharacters in patterns are matched literally."""
    assert not is_url_allowed("http://test/apixv1/items", ["/api.v1/*"])
    assert is_url_allowed("http://test/api.v1/items", ["/api.v1/*"])


def test_get_current_url_excludes_query():
    context = RequestContext(
        method="GET", scheme="https", host="example.com:8443", path="/a/b", query_string="x=1"
    )
    assert get_current_url(context) == "https://example.com:8443/a/b"
