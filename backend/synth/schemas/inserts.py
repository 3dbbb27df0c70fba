"""
Synth Backend: Insert Payload Schemas
======================================

What:  Pydantic models describing what a caller supplies to create a record.
How:   One `Insert<Kind>` model per entity kind. Field rules (rating range,
       comment target, non-negative prices) run when the caller builds the
       payload, which is where validation belongs: the EntityStore stores
       whatever payload it is given.
Who:   Built by route handlers, the demo seed and tests; consumed by
       EntityStore.create_*.

Payloads accept both snake_case names and the camelCase keys the front end
sends (`userId`, `snippetId`).
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel


class InsertPayload(BaseModel):
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class InsertUser(InsertPayload):
    username: str = Field(min_length=1)
    password: str
    email: str
    avatar: Optional[str] = None
    bio: Optional[str] = None
    firebase_id: Optional[str] = None


class InsertSnippet(InsertPayload):
    """
    A new snippet. Leaving `published_at` unset creates a private draft.
    """

    title: str = Field(min_length=1)
    description: Optional[str] = None
    code: str
    language: str
    price: Decimal = Field(default=Decimal("2.99"), ge=0)
    user_id: int
    published_at: Optional[datetime] = None
    tags: Optional[List[str]] = None
    bundle_id: Optional[int] = None


class InsertBundle(InsertPayload):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    price: Decimal = Field(default=Decimal("9.99"), ge=0)
    user_id: int
    cover_image: Optional[str] = None
    category: Optional[str] = None


class InsertPurchase(InsertPayload):
    snippet_id: int
    buyer_id: int
    price: Decimal = Field(ge=0)


class InsertComment(InsertPayload):
    content: str = Field(min_length=1)
    user_id: int
    snippet_id: Optional[int] = None
    post_id: Optional[int] = None

    @model_validator(mode="after")
    def check_single_target(self) -> "InsertComment":
        """A comment belongs to exactly one snippet or one post."""
        if (self.snippet_id is None) == (self.post_id is None):
            raise ValueError("Exactly one of snippet_id or post_id must be set")
        return self


class InsertPost(InsertPayload):
    title: str = Field(min_length=1)
    content: str
    user_id: int
    type: str = "discussion"
    code: Optional[str] = None


class InsertReview(InsertPayload):
    snippet_id: int
    user_id: int
    rating: int = Field(ge=1, le=5)
    content: Optional[str] = None


class InsertFavorite(InsertPayload):
    snippet_id: int
    user_id: int


class InsertShare(InsertPayload):
    snippet_id: int
    user_id: int
    platform: str


class InsertSubscription(InsertPayload):
    """`start_date` defaults to the creation time when omitted."""

    user_id: int
    tier: str
    start_date: Optional[datetime] = None
    end_date: datetime
    status: str = "active"
    payment_id: Optional[str] = None
    amount: Decimal = Field(ge=0)


class InsertAuthorFollower(InsertPayload):
    author_id: int
    follower_id: int


class InsertRecommendation(InsertPayload):
    user_id: int
    snippet_id: int
    score: Decimal
    reason: Optional[str] = None


class InsertPlaygroundSession(InsertPayload):
    user_id: Optional[int] = None
    snippet_id: Optional[int] = None
    code: str
    language: str
    input: Optional[str] = None
    output: Optional[str] = None
    is_public: bool = False
    session_id: str


class InsertScheduledTask(InsertPayload):
    kind: str
    target_id: int
    due_at: datetime
