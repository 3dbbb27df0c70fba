"""
Synth Backend: Enriched Read Views
===================================

What:  Read-only view types returned by store queries that cross a relationship.
How:   Each view subclasses its entity and adds the derived fields copied
       from related records at read time (author username, snippet title,
       comment count, ...). Views are never stored; two reads around an
       update of the related record observe the update.
Who:   Built by the mapping functions in synth.storage.store.

A derived field is None when the related record does not exist (dangling
foreign key); the read itself never fails.
"""

from decimal import Decimal
from typing import Dict, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from synth.models.entities import (
    AuthorFollower,
    Bundle,
    Comment,
    Favorite,
    Post,
    Purchase,
    Recommendation,
    Review,
    Snippet,
)


class SnippetView(Snippet):
    """Snippet with its author's username and reputation plus its review count."""

    username: Optional[str] = None
    author_reputation: Optional[int] = None
    review_count: int = 0


class PurchaseView(Purchase):
    snippet_title: Optional[str] = None


class CommentView(Comment):
    username: Optional[str] = None


class PostView(Post):
    username: Optional[str] = None
    comment_count: int = 0


class BundleView(Bundle):
    username: Optional[str] = None
    snippet_count: int = 0


class ReviewView(Review):
    username: Optional[str] = None
    user_avatar: Optional[str] = None


class FavoriteView(Favorite):
    snippet_title: Optional[str] = None


class FollowerView(AuthorFollower):
    """A follow edge seen from the author's side."""

    follower_username: Optional[str] = None
    follower_avatar: Optional[str] = None


class FollowingView(AuthorFollower):
    """A follow edge seen from the follower's side."""

    author_username: Optional[str] = None
    author_avatar: Optional[str] = None


class RecommendationView(Recommendation):
    snippet_title: Optional[str] = None
    snippet_language: Optional[str] = None


# ══════════════════════════════════════════════════════════════════════════
# Aggregates
# ══════════════════════════════════════════════════════════════════════════


class _Aggregate(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True, "frozen": True}


class RatingSummary(_Aggregate):
    """
    What:  Review statistics for one snippet.

    `distribution` maps each star rating (1-5) to how many reviews gave it;
    ratings nobody gave are present with a count of 0.
    """

    average: float = Field(default=0.0, description="Mean rating, 0.0 when unreviewed")
    count: int = 0
    distribution: Dict[int, int] = Field(default_factory=dict)


class SalesSummary(_Aggregate):
    """Dashboard totals for a seller."""

    total_sales: int = 0
    total_earnings: Decimal = Decimal("0")
    active_snippets: int = 0
