"""
Unit tests for http_utils module.

Tests header folding and HTTP status to severity mapping.
"""

import pytest

from tail_forwarder.utils.http_utils import (
    fold_header_name,
    fold_headers,
    get_header,
    is_success_status,
    parse_status_code,
    severity_from_status,
)


class TestFoldHeaders:
    """Tests for header key folding."""

    def test_fold_single_header(self):
        assert fold_headers({"X-Forwarded-For": "a"}) == {"x_forwarded_for": "a"}

    def test_folded_keys_lowercase_without_hyphens(self):
        folded = fold_headers(
            {"Content-Type": "text/html", "CF-Cache-Status": "HIT", "X-A-B-C": "1"}
        )
        for key in folded:
            assert key == key.lower()
            assert "-" not in key

    def test_values_unchanged(self):
        value = ["a", "b"]
        assert fold_headers({"X-List": value})["x_list"] is value

    def test_collision_last_write_wins(self):
        folded = fold_headers({"X-Foo": "first", "x-foo": "second"})
        assert folded == {"x_foo": "second"}

    def test_none_and_empty(self):
        assert fold_headers(None) == {}
        assert fold_headers({}) == {}

    def test_fold_header_name(self):
        assert fold_header_name("CF-Connecting-IP") == "cf_connecting_ip"


class TestGetHeader:
    """Tests for case-insensitive header lookup."""

    def test_exact_match(self):
        assert get_header({"cf-ray": "abc"}, "cf-ray") == "abc"

    def test_case_insensitive_match(self):
        assert get_header({"CF-Ray": "abc"}, "cf-ray") == "abc"

    def test_missing(self):
        assert get_header({"host": "x"}, "cf-ray") is None
        assert get_header(None, "cf-ray") is None


class TestSeverityFromStatus:
    """Tests for status to Coralogix severity mapping."""

    @pytest.mark.parametrize(
        "status,expected",
        [
            (200, 3),
            (204, 3),
            (301, 3),
            (399, 3),
            (400, 4),
            (404, 4),
            (499, 4),
            (500, 5),
            (503, 5),
            ("404", 4),
            ("500", 5),
            ("200", 3),
        ],
    )
    def test_mapping(self, status, expected):
        assert severity_from_status(status) == expected

    @pytest.mark.parametrize("status", [None, "", "abc", True])
    def test_absent_or_invalid(self, status):
        assert severity_from_status(status) is None


class TestParseStatusCode:
    def test_int_and_string(self):
        assert parse_status_code(404) == 404
        assert parse_status_code("502") == 502

    def test_invalid(self):
        assert parse_status_code("not-a-status") is None
        assert parse_status_code(False) is None


class TestIsSuccessStatus:
    @pytest.mark.parametrize("status", [200, 201, 202, 299])
    def test_success(self, status):
        assert is_success_status(status)

    @pytest.mark.parametrize("status", [None, 199, 300, 400, 500])
    def test_not_success(self, status):
        assert not is_success_status(status)
