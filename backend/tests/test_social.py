"""
Synth Backend: Social Feature Tests
====================================

What:  Tests for favorites, author follows, reviews, shares and stored
       recommendations.

What we test:
    ✅ Duplicate favorites/follows are stored; removal deletes one match
    ✅ Membership checks (is_favorite, is_following)
    ✅ Follower/following views carry the other side's user details
    ✅ Review views and the per-snippet rating summary
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from synth.schemas.inserts import (
    InsertAuthorFollower,
    InsertFavorite,
    InsertRecommendation,
    InsertReview,
    InsertShare,
)


class TestFavorites:
    """Tests for favoriting snippets."""

    def test_duplicate_favorites_and_single_removal(self, store, author, buyer, make_snippet):
        snippet = make_snippet(author.id, title="Hook")
        payload = InsertFavorite(user_id=buyer.id, snippet_id=snippet.id)

        store.create_favorite(payload)
        store.create_favorite(payload)
        assert len(store.get_user_favorites(buyer.id)) == 2

        assert store.remove_favorite(buyer.id, snippet.id) is True
        assert len(store.get_user_favorites(buyer.id)) == 1
        assert store.is_favorite(buyer.id, snippet.id) is True

        assert store.remove_favorite(buyer.id, snippet.id) is True
        assert store.remove_favorite(buyer.id, snippet.id) is False
        assert store.is_favorite(buyer.id, snippet.id) is False

    def test_removal_deletes_earliest_match(self, store, author, buyer, make_snippet):
        snippet = make_snippet(author.id)
        first = store.create_favorite(InsertFavorite(user_id=buyer.id, snippet_id=snippet.id))
        second = store.create_favorite(InsertFavorite(user_id=buyer.id, snippet_id=snippet.id))

        store.remove_favorite(buyer.id, snippet.id)

        assert [f.id for f in store.get_user_favorites(buyer.id)] == [second.id]
        assert first.id != second.id

    def test_favorite_view_has_snippet_title(self, store, author, buyer, make_snippet):
        snippet = make_snippet(author.id, title="Hook")
        store.create_favorite(InsertFavorite(user_id=buyer.id, snippet_id=snippet.id))
        store.create_favorite(InsertFavorite(user_id=buyer.id, snippet_id=999))

        views = store.get_user_favorites(buyer.id)

        assert [v.snippet_title for v in views] == ["Hook", None]

    def test_favorites_are_per_user(self, store, author, buyer, make_snippet):
        snippet = make_snippet(author.id)
        store.create_favorite(InsertFavorite(user_id=author.id, snippet_id=snippet.id))

        assert store.get_user_favorites(buyer.id) == []
        assert store.remove_favorite(buyer.id, snippet.id) is False


class TestFollows:
    """Tests for the author-follower graph."""

    def test_follow_and_unfollow(self, store, author, buyer):
        store.follow_author(InsertAuthorFollower(author_id=author.id, follower_id=buyer.id))

        assert store.is_following(buyer.id, author.id) is True
        assert store.is_following(author.id, buyer.id) is False

        assert store.unfollow_author(buyer.id, author.id) is True
        assert store.is_following(buyer.id, author.id) is False
        assert store.unfollow_author(buyer.id, author.id) is False

    def test_followers_view(self, store, author, buyer):
        store.follow_author(InsertAuthorFollower(author_id=author.id, follower_id=buyer.id))

        followers = store.get_author_followers(author.id)

        assert len(followers) == 1
        assert followers[0].follower_username == "bob"
        assert followers[0].follower_avatar == "b.png"

    def test_following_view(self, store, author, buyer):
        store.follow_author(InsertAuthorFollower(author_id=author.id, follower_id=buyer.id))

        following = store.get_user_following(buyer.id)

        assert len(following) == 1
        assert following[0].author_username == "alice"
        assert following[0].author_avatar == "a.png"
        assert store.get_user_following(author.id) == []

    def test_repeated_follow_stores_two_edges(self, store, author, buyer):
        edge = InsertAuthorFollower(author_id=author.id, follower_id=buyer.id)
        store.follow_author(edge)
        store.follow_author(edge)

        assert len(store.get_author_followers(author.id)) == 2

        store.unfollow_author(buyer.id, author.id)
        assert len(store.get_author_followers(author.id)) == 1

    def test_follower_who_no_longer_exists(self, store, author):
        store.follow_author(InsertAuthorFollower(author_id=author.id, follower_id=500))

        view = store.get_author_followers(author.id)[0]

        assert view.follower_username is None
        assert view.follower_avatar is None


class TestReviews:
    """Tests for reviews and rating summaries."""

    def test_rating_must_be_between_one_and_five(self):
        with pytest.raises(ValidationError):
            InsertReview(snippet_id=1, user_id=1, rating=0)
        with pytest.raises(ValidationError):
            InsertReview(snippet_id=1, user_id=1, rating=6)

    def test_snippet_reviews_carry_reviewer(self, store, author, buyer, make_snippet):
        snippet = make_snippet(author.id)
        store.create_review(
            InsertReview(snippet_id=snippet.id, user_id=buyer.id, rating=4, content="Solid")
        )

        reviews = store.get_snippet_reviews(snippet.id)

        assert len(reviews) == 1
        assert reviews[0].username == "bob"
        assert reviews[0].user_avatar == "b.png"
        assert reviews[0].content == "Solid"

    def test_user_reviews(self, store, author, buyer, make_snippet):
        first = make_snippet(author.id, title="A")
        second = make_snippet(author.id, title="B")
        store.create_review(InsertReview(snippet_id=first.id, user_id=buyer.id, rating=5))
        store.create_review(InsertReview(snippet_id=second.id, user_id=buyer.id, rating=3))
        store.create_review(InsertReview(snippet_id=first.id, user_id=author.id, rating=1))

        ratings = [r.rating for r in store.get_user_reviews(buyer.id)]

        assert ratings == [5, 3]

    def test_update_review(self, store, author, buyer, make_snippet):
        snippet = make_snippet(author.id)
        review = store.create_review(InsertReview(snippet_id=snippet.id, user_id=buyer.id, rating=2))

        updated = store.update_review(review.id, rating=4)

        assert updated.rating == 4
        assert store.get_review(review.id).rating == 4

    def test_review_count_on_snippet_view(self, store, author, buyer, make_snippet):
        snippet = make_snippet(author.id)
        store.create_review(InsertReview(snippet_id=snippet.id, user_id=buyer.id, rating=5))
        store.create_review(InsertReview(snippet_id=snippet.id, user_id=author.id, rating=3))

        assert store.get_snippet(snippet.id).review_count == 2
        assert store.get_all_snippets()[0].review_count == 2

    def test_rating_summary(self, store, author, buyer, make_snippet):
        snippet = make_snippet(author.id)
        for rating in (5, 5, 4, 1):
            store.create_review(InsertReview(snippet_id=snippet.id, user_id=buyer.id, rating=rating))

        summary = store.get_snippet_rating_summary(snippet.id)

        assert summary.count == 4
        assert summary.average == pytest.approx(3.75)
        assert summary.distribution == {1: 1, 2: 0, 3: 0, 4: 1, 5: 2}

    def test_rating_summary_without_reviews(self, store, author, make_snippet):
        snippet = make_snippet(author.id)

        summary = store.get_snippet_rating_summary(snippet.id)

        assert summary.count == 0
        assert summary.average == 0.0
        assert summary.distribution == {1: 0, 2: 0, 3: 0, 4: 0, 5: 0}


class TestSharesAndRecommendations:
    """Tests for shares and stored recommendations."""

    def test_snippet_shares(self, store, author, buyer, make_snippet):
        snippet = make_snippet(author.id)
        other = make_snippet(author.id)
        store.create_share(InsertShare(snippet_id=snippet.id, user_id=buyer.id, platform="twitter"))
        store.create_share(InsertShare(snippet_id=other.id, user_id=buyer.id, platform="linkedin"))

        shares = store.get_snippet_shares(snippet.id)

        assert [s.platform for s in shares] == ["twitter"]

    def test_user_recommendations_are_enriched(self, store, author, buyer, make_snippet):
        snippet = make_snippet(author.id, title="Parser")
        store.create_recommendation(
            InsertRecommendation(user_id=buyer.id, snippet_id=snippet.id, score="0.9", reason="Similar")
        )
        store.create_recommendation(InsertRecommendation(user_id=buyer.id, snippet_id=321, score="0.1"))

        views = store.get_user_recommendations(buyer.id)

        assert [v.snippet_title for v in views] == ["Parser", None]
        assert views[0].snippet_language == "python"
        assert views[0].score == Decimal("0.9")
        assert store.get_user_recommendations(author.id) == []
