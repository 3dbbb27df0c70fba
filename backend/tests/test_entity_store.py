"""
Synth Backend: Entity Store Unit Tests
=======================================

What:  Tests for identifier allocation, create/get/update semantics and
       draft visibility in EntityStore.
How:   Each test builds a fresh store on a fixed clock (see conftest.py).

What we test:
    ✅ Ids start at 1, are per kind, and are never reused
    ✅ Store-assigned fields and kind defaults on create
    ✅ Shallow merge on update; id and created_at never change
    ✅ Absent ids yield None, never an exception
    ✅ Returned records are copies of stored state
    ✅ Drafts stay out of public listings until published
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from synth.models.views import SnippetView
from synth.schemas.inserts import (
    InsertComment,
    InsertFavorite,
    InsertPost,
    InsertSnippet,
    InsertUser,
)


class TestIdentifiers:
    """Tests for per-kind id allocation."""

    def test_first_id_is_one(self, store, author):
        assert author.id == 1

    def test_ids_are_per_kind(self, store, author, make_snippet):
        post = store.create_post(InsertPost(title="Hi", content="...", user_id=author.id))
        snippet = make_snippet(author.id)

        assert post.id == 1
        assert snippet.id == 1

    def test_ids_increase_in_creation_order(self, store, author, make_snippet):
        ids = [make_snippet(author.id, title=f"S{i}").id for i in range(5)]
        assert ids == [1, 2, 3, 4, 5]

    def test_removed_ids_are_not_reused(self, store, author, buyer, make_snippet):
        snippet = make_snippet(author.id)
        first = store.create_favorite(InsertFavorite(user_id=buyer.id, snippet_id=snippet.id))
        assert store.remove_favorite(buyer.id, snippet.id) is True

        second = store.create_favorite(InsertFavorite(user_id=buyer.id, snippet_id=snippet.id))
        assert second.id == first.id + 1


class TestCreate:
    """Tests for store-assigned fields and defaults."""

    def test_created_at_comes_from_clock(self, store, clock, author):
        assert author.created_at == clock()

    def test_user_defaults(self, author):
        assert author.reputation == 0
        assert author.is_subscribed is False
        assert author.subscription_tier == "free"
        assert author.subscription_expiry is None

    def test_snippet_defaults(self, store, author):
        snippet = store.create_snippet(
            InsertSnippet(title="T", code="x = 1", language="python", user_id=author.id)
        )

        assert snippet.price == Decimal("2.99")
        assert snippet.downloadable is False
        assert snippet.total_downloads == 0
        assert snippet.total_sales == 0
        assert snippet.published_at is None

    def test_post_starts_without_upvotes(self, store, author):
        post = store.create_post(
            InsertPost(title="Hello", content="World", user_id=author.id, type="question")
        )

        assert post.upvotes == 0
        assert post.type == "question"

    def test_payload_accepts_camel_case_keys(self, store, author):
        payload = InsertSnippet.model_validate(
            {"title": "T", "code": "x", "language": "go", "userId": author.id}
        )
        assert store.create_snippet(payload).user_id == author.id

    def test_comment_needs_exactly_one_target(self):
        with pytest.raises(ValidationError):
            InsertComment(content="Nice", user_id=1)
        with pytest.raises(ValidationError):
            InsertComment(content="Nice", user_id=1, snippet_id=1, post_id=1)

    def test_store_does_not_check_foreign_keys(self, store):
        comment = store.create_comment(InsertComment(content="Orphan", user_id=99, snippet_id=42))
        assert store.get_comment(comment.id) == comment


class TestUpdate:
    """Tests for shallow-merge updates."""

    def test_update_changes_only_given_fields(self, store, author):
        updated = store.update_user(author.id, bio="New bio")

        assert updated.bio == "New bio"
        assert updated.username == author.username
        assert updated.email == author.email

    def test_update_cannot_change_identity(self, store, clock, author):
        original_created = author.created_at
        clock.advance(days=1)

        updated = store.update_user(author.id, id=99, created_at=clock(), bio="x")

        assert updated.id == author.id
        assert updated.created_at == original_created
        assert updated.bio == "x"
        assert store.get_user(99) is None

    def test_update_ignores_unknown_fields(self, store, author, make_snippet):
        snippet = make_snippet(author.id)

        updated = store.update_snippet(snippet.id, not_a_field=True, title="Renamed")

        assert updated.title == "Renamed"
        assert not hasattr(updated, "not_a_field")

    def test_update_replaces_lists_wholesale(self, store, author):
        snippet = store.create_snippet(
            InsertSnippet(title="T", code="x", language="python", user_id=author.id, tags=["a", "b"])
        )

        updated = store.update_snippet(snippet.id, tags=["c"])

        assert updated.tags == ["c"]

    def test_update_missing_record_returns_none(self, store):
        assert store.update_snippet(404, title="Nope") is None
        assert store.update_user(404, bio="Nope") is None
        assert store.update_post(404, upvotes=3) is None

    def test_get_missing_record_returns_none(self, store):
        assert store.get_user(1) is None
        assert store.get_snippet(1) is None
        assert store.get_post(1) is None
        assert store.get_bundle(1) is None


class TestIsolation:
    """Returned records must not alias stored state."""

    def test_mutating_returned_list_does_not_change_store(self, store, author):
        snippet = store.create_snippet(
            InsertSnippet(title="T", code="x", language="python", user_id=author.id, tags=["a"])
        )

        snippet.tags.append("leaked")
        store.get_snippet(snippet.id).tags.append("leaked")

        assert store.get_snippet(snippet.id).tags == ["a"]

    def test_records_are_frozen(self, author):
        with pytest.raises(ValidationError):
            author.username = "mallory"


class TestUsers:
    """Tests for user lookups."""

    def test_lookup_by_username(self, store, author, buyer):
        assert store.get_user_by_username("bob").id == buyer.id
        assert store.get_user_by_username("nobody") is None

    def test_lookup_by_firebase_id(self, store):
        user = store.create_user(
            InsertUser(username="carol", password="pw", email="c@example.com", firebase_id="fb-1")
        )

        assert store.get_user_by_firebase_id("fb-1").id == user.id
        assert store.get_user_by_firebase_id("fb-2") is None

    def test_duplicate_usernames_are_not_rejected(self, store, author):
        twin = store.create_user(InsertUser(username="alice", password="pw", email="x@example.com"))

        assert twin.id != author.id
        # lookup returns the earliest match
        assert store.get_user_by_username("alice").id == author.id


class TestSnippetVisibility:
    """Tests for draft/published visibility and enrichment."""

    def test_drafts_are_excluded_from_listing(self, store, author, make_snippet):
        published = make_snippet(author.id, title="Live")
        make_snippet(author.id, title="Draft", draft=True)

        listed = store.get_all_snippets()

        assert [s.id for s in listed] == [published.id]

    def test_draft_is_still_readable_by_id(self, store, author, make_snippet):
        draft = make_snippet(author.id, draft=True)
        assert store.get_snippet(draft.id).published_at is None

    def test_user_snippets_include_drafts(self, store, author, buyer, make_snippet):
        make_snippet(author.id, title="Live")
        make_snippet(author.id, title="Draft", draft=True)
        make_snippet(buyer.id, title="Other")

        titles = [s.title for s in store.get_user_snippets(author.id)]

        assert titles == ["Live", "Draft"]

    def test_snippet_view_carries_author_details(self, store, author, make_snippet):
        store.update_user(author.id, reputation=42)
        snippet = make_snippet(author.id)

        view = store.get_snippet(snippet.id)

        assert isinstance(view, SnippetView)
        assert view.username == "alice"
        assert view.author_reputation == 42
        assert view.review_count == 0

    def test_view_reflects_later_author_changes(self, store, author, make_snippet):
        snippet = make_snippet(author.id)
        assert store.get_snippet(snippet.id).username == "alice"

        store.update_user(author.id, username="alice2")

        assert store.get_snippet(snippet.id).username == "alice2"

    def test_dangling_author_gives_none(self, store, make_snippet):
        snippet = make_snippet(user_id=77)

        view = store.get_snippet(snippet.id)

        assert view.username is None
        assert view.author_reputation is None

    def test_view_serializes_with_camel_case(self, store, author, make_snippet):
        snippet = make_snippet(author.id)

        data = store.get_snippet(snippet.id).model_dump(by_alias=True)

        assert data["userId"] == author.id
        assert "publishedAt" in data
        assert "reviewCount" in data
