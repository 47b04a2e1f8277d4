"""Tests for Link-header total estimation."""

from meridian.core.primitives import PaginationParams
from meridian.github.mappers import parse_total_from_link_header

LINK = (
    '<https://api.github.com/repositories/1/issues?per_page=10&page=2>; rel="next", '
    '<https://api.github.com/repositories/1/issues?per_page=10&page=5>; rel="last"'
)


def test_no_header_counts_what_was_seen():
    assert parse_total_from_link_header(None, 7, PaginationParams(page=1, limit=10)) == 7
    assert parse_total_from_link_header("", 3, PaginationParams(page=3, limit=10)) == 23


def test_not_on_last_page_assumes_full_last_page():
    assert parse_total_from_link_header(LINK, 10, PaginationParams(page=1, limit=10)) == 50


def test_on_last_page_counts_exactly():
    assert parse_total_from_link_header(LINK, 4, PaginationParams(page=5, limit=10)) == 44


def test_header_without_last_relation():
    header = '<https://api.github.com/repositories/1/issues?page=1>; rel="prev"'
    assert parse_total_from_link_header(header, 2, PaginationParams(page=2, limit=10)) == 12


def test_page_param_first_in_query():
    header = '<https://api.github.com/x?page=3&per_page=10>; rel="last"'
    assert parse_total_from_link_header(header, 10, PaginationParams(page=1, limit=10)) == 30
