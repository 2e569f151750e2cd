"""
Tests for the rating aggregator.
"""

import pytest

from storefront.services.ratings import RatingSummary, aggregate_ratings, summarize_ratings


class TestSummarizeRatings:

    def test_no_ratings(self):
        assert summarize_ratings([]) == RatingSummary(ratings=0.0, num_of_reviews=0)

    def test_mean_and_count(self):
        assert summarize_ratings([3, 5]) == RatingSummary(ratings=4.0, num_of_reviews=2)

    def test_mean_is_not_rounded(self):
        summary = summarize_ratings([4, 5, 5])
        assert summary.ratings == pytest.approx(14 / 3)
        assert summary.num_of_reviews == 3


class TestAggregateRatings:

    def test_product_without_reviews(self, db, make_product):
        product_id = make_product()
        with db.get_session_context() as session:
            assert aggregate_ratings(session, product_id) == RatingSummary(0.0, 0)

    def test_only_reviews_of_the_product_count(self, db, make_product, make_user, make_review):
        phone = make_product("Phone")
        laptop = make_product("Laptop")
        alice = make_user("Alice")
        bob = make_user("Bob")
        make_review(phone, alice, 3)
        make_review(phone, bob, 5)
        make_review(laptop, alice, 1)

        with db.get_session_context() as session:
            assert aggregate_ratings(session, phone) == RatingSummary(4.0, 2)
            assert aggregate_ratings(session, laptop) == RatingSummary(1.0, 1)
