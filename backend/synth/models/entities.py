"""
Synth Backend: Entity Records
==============================

What:  One immutable pydantic model per entity kind held by the EntityStore.
How:   Every record carries a store-assigned integer `id` and a UTC
       `created_at`. Attributes are snake_case in Python and serialize with
       camelCase aliases (`userId`, `publishedAt`) for the front end.
Who:   Built by EntityStore.create_* from the insert payloads in
       synth.schemas.inserts; returned (as copies) by every store read.

Records are frozen: an update produces a new record via `model_copy`, so a
record handed to a caller can never be used to mutate stored state.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar, List, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class Record(BaseModel):
    """Base class for every stored entity."""

    id: int = Field(description="Per-kind identifier, allocated from 1 and never reused")
    created_at: datetime = Field(description="Insertion time (UTC), immutable")

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "frozen": True,
    }


class User(Record):
    username: str
    password: str
    email: str
    avatar: Optional[str] = None
    bio: Optional[str] = None
    reputation: int = 0
    is_subscribed: bool = False
    subscription_tier: str = "free"
    subscription_expiry: Optional[datetime] = None
    firebase_id: Optional[str] = None


class Snippet(Record):
    """
    A piece of code offered for sale.

    `published_at` is None for drafts; only published snippets appear in
    public listings. `downloadable` is flipped by the publish scheduler once
    the post-publish delay has elapsed.
    """

    title: str
    description: Optional[str] = None
    code: str
    language: str
    price: Decimal = Decimal("2.99")
    user_id: int
    downloadable: bool = False
    published_at: Optional[datetime] = None
    rating: Optional[Decimal] = None
    tags: Optional[List[str]] = None
    bundle_id: Optional[int] = None
    total_downloads: int = 0
    total_sales: int = 0

    @property
    def is_published(self) -> bool:
        return self.published_at is not None


class Bundle(Record):
    name: str
    description: Optional[str] = None
    price: Decimal = Decimal("9.99")
    user_id: int
    cover_image: Optional[str] = None
    featured: bool = False
    category: Optional[str] = None


class Purchase(Record):
    """`price` is what the buyer paid, independent of the snippet's current price."""

    snippet_id: int
    buyer_id: int
    price: Decimal


class Comment(Record):
    """Attached to exactly one of a snippet or a post."""

    content: str
    user_id: int
    snippet_id: Optional[int] = None
    post_id: Optional[int] = None


class Post(Record):
    title: str
    content: str
    user_id: int
    upvotes: int = 0
    type: str = "discussion"  # discussion, showcase, question, job
    code: Optional[str] = None


class Review(Record):
    snippet_id: int
    user_id: int
    rating: int
    content: Optional[str] = None


class Favorite(Record):
    snippet_id: int
    user_id: int


class Share(Record):
    snippet_id: int
    user_id: int
    platform: str  # twitter, facebook, linkedin, ...


class Subscription(Record):
    user_id: int
    tier: str  # basic, pro, premium
    start_date: datetime
    end_date: datetime
    status: str = "active"  # active, cancelled, expired
    payment_id: Optional[str] = None
    amount: Decimal


class AuthorFollower(Record):
    """Directed edge: `follower_id` follows `author_id`."""

    author_id: int
    follower_id: int


class Recommendation(Record):
    user_id: int
    snippet_id: int
    score: Decimal
    reason: Optional[str] = None


class PlaygroundSession(Record):
    user_id: Optional[int] = None
    snippet_id: Optional[int] = None
    code: str
    language: str
    input: Optional[str] = None
    output: Optional[str] = None
    is_public: bool = False
    session_id: str
    updated_at: datetime


class ScheduledTask(Record):
    """
    A deferred store mutation, completed by the publish scheduler's sweep.

    Lives in the store (and therefore in snapshots) so that a pending
    transition outlives the process that scheduled it.
    """

    PENDING: ClassVar[str] = "pending"
    DONE: ClassVar[str] = "done"

    kind: str
    target_id: int
    due_at: datetime
    status: str = PENDING
    completed_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status == self.PENDING
