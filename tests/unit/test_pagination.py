"""
Unit tests for lenient pagination parsing.
"""

import pytest

from dropview.dependencies import PaginationParams, get_comment_pagination, get_post_pagination


@pytest.mark.unit
class TestPaginationParams:
    @pytest.mark.parametrize(
        "page, limit, expected_page, expected_limit",
        [
            (None, None, 1, 10),
            ("2", "5", 2, 5),
            ("0", "10", 1, 10),
            ("-3", "10", 1, 10),
            ("abc", "xyz", 1, 10),
            ("1", "1000", 1, 50),
            ("1", "0", 1, 10),
            ("1", "-5", 1, 1),
            ("-1", "-50", 1, 1),
        ],
    )
    def test_post_pagination(self, page, limit, expected_page, expected_limit):
        params = get_post_pagination(page, limit)

        assert params.page == expected_page
        assert params.limit == expected_limit

    def test_comment_pagination_defaults(self):
        params = get_comment_pagination()

        assert params.page == 1
        assert params.limit == 20
        assert get_comment_pagination("1", "500").limit == 100
        assert get_comment_pagination("1", "-5").limit == 1

    def test_skip(self):
        assert PaginationParams("3", "10").skip == 20
