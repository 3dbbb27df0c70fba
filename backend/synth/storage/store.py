"""
Synth Backend: Entity Store
============================

What:  In-process repository for every marketplace record: identifier
       allocation, CRUD per entity kind, relationship enrichment and the
       derived aggregates (sales, recommendations, rating summaries).
How:   One EntityTable per kind. Every public method runs under a single
       re-entrant lock owned by the store instance, so id allocation,
       counter increments, toggles and multi-table enrichment reads are
       atomic and see a consistent snapshot, whether the caller is a
       threadpool route handler or a coroutine.
Who:   Constructed by the application lifespan (synth.main) and handed to
       request handlers through synth.dependencies.get_store. Tests build a
       fresh store per test.

Contract shared by every entity kind:
    create_<kind>(payload)        → assigns id + created_at, applies kind
                                    defaults, stores, returns the record
    get_<kind>(id)                → record, or None when absent
    update_<kind>(id, **changes)  → shallow-merged record, or None when absent

Absence is always reported with None (or False for the delete-by-match
operations); the store never raises on missing ids, dangling foreign keys
or unvalidated payloads. Translating absence into an HTTP 404, and
enforcing rules such as unique usernames, belong to the calling layer.

Enrichment:
    Reads that cross a relationship map each record into a view type from
    synth.models.views with one point lookup per related record. When the
    related record is missing the view field is None.
"""

import functools
import logging
import threading
from collections import Counter, defaultdict
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Optional

from synth.models.entities import (
    AuthorFollower,
    Bundle,
    Comment,
    Favorite,
    PlaygroundSession,
    Post,
    Purchase,
    Recommendation,
    Review,
    ScheduledTask,
    Share,
    Snippet,
    Subscription,
    User,
)
from synth.models.views import (
    BundleView,
    CommentView,
    FavoriteView,
    FollowerView,
    FollowingView,
    PostView,
    PurchaseView,
    RatingSummary,
    RecommendationView,
    ReviewView,
    SalesSummary,
    SnippetView,
)
from synth.schemas.inserts import (
    InsertAuthorFollower,
    InsertBundle,
    InsertComment,
    InsertFavorite,
    InsertPlaygroundSession,
    InsertPost,
    InsertPurchase,
    InsertRecommendation,
    InsertReview,
    InsertScheduledTask,
    InsertShare,
    InsertSnippet,
    InsertSubscription,
    InsertUser,
)
from synth.storage.table import EntityTable, as_utc

logger = logging.getLogger(__name__)

# Number of snippets returned by get_recommended_snippets
RECOMMENDATION_LIMIT = 10

SNAPSHOT_VERSION = 1


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def synchronized(method: Callable) -> Callable:
    """Run the decorated store method while holding the store's lock."""

    @functools.wraps(method)
    def wrapper(self: "EntityStore", *args: Any, **kwargs: Any) -> Any:
        with self._lock:
            return method(self, *args, **kwargs)

    return wrapper


class EntityStore:
    """
    The single authority over all marketplace state.

    Args:
        clock: Returns the current time. Stamped into `created_at` (and the
               other store-assigned timestamps). Defaults to UTC wall time;
               tests pass a controllable clock.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self._clock = clock
        self._lock = threading.RLock()

        self._users: EntityTable[User] = EntityTable("user", User)
        self._snippets: EntityTable[Snippet] = EntityTable("snippet", Snippet)
        self._bundles: EntityTable[Bundle] = EntityTable("bundle", Bundle)
        self._purchases: EntityTable[Purchase] = EntityTable("purchase", Purchase)
        self._comments: EntityTable[Comment] = EntityTable("comment", Comment)
        self._posts: EntityTable[Post] = EntityTable("post", Post)
        self._reviews: EntityTable[Review] = EntityTable("review", Review)
        self._favorites: EntityTable[Favorite] = EntityTable("favorite", Favorite)
        self._shares: EntityTable[Share] = EntityTable("share", Share)
        self._subscriptions: EntityTable[Subscription] = EntityTable("subscription", Subscription)
        self._author_followers: EntityTable[AuthorFollower] = EntityTable(
            "author_follower", AuthorFollower
        )
        self._recommendations: EntityTable[Recommendation] = EntityTable(
            "recommendation", Recommendation
        )
        self._playground_sessions: EntityTable[PlaygroundSession] = EntityTable(
            "playground_session", PlaygroundSession
        )
        self._scheduled_tasks: EntityTable[ScheduledTask] = EntityTable(
            "scheduled_task", ScheduledTask
        )

        self._tables: Dict[str, EntityTable] = {
            table.kind: table
            for table in (
                self._users,
                self._snippets,
                self._bundles,
                self._purchases,
                self._comments,
                self._posts,
                self._reviews,
                self._favorites,
                self._shares,
                self._subscriptions,
                self._author_followers,
                self._recommendations,
                self._playground_sessions,
                self._scheduled_tasks,
            )
        }

    def now(self) -> datetime:
        """Current time according to the store's clock."""
        return self._clock()

    # ══════════════════════════════════════════════════════════════════════
    # Users
    # ══════════════════════════════════════════════════════════════════════

    @synchronized
    def get_user(self, user_id: int) -> Optional[User]:
        return self._users.get(user_id)

    @synchronized
    def get_user_by_username(self, username: str) -> Optional[User]:
        return self._users.find_first(lambda user: user.username == username)

    @synchronized
    def get_user_by_firebase_id(self, firebase_id: str) -> Optional[User]:
        """Look up the account linked to an external identity provider id."""
        return self._users.find_first(lambda user: user.firebase_id == firebase_id)

    @synchronized
    def create_user(self, payload: InsertUser) -> User:
        user = self._users.insert(self.now(), **payload.model_dump())
        logger.debug("Created user %d (%s)", user.id, user.username)
        return user

    @synchronized
    def update_user(self, user_id: int, **changes: Any) -> Optional[User]:
        return self._users.merge(user_id, changes)

    # ══════════════════════════════════════════════════════════════════════
    # Snippets
    # ══════════════════════════════════════════════════════════════════════

    @synchronized
    def get_all_snippets(self) -> List[SnippetView]:
        """Every published snippet, enriched with author details. Drafts are excluded."""
        review_counts = self._review_counts()
        return [
            self._snippet_view(snippet, review_counts)
            for snippet in self._snippets.scan()
            if snippet.is_published
        ]

    @synchronized
    def get_snippet(self, snippet_id: int) -> Optional[SnippetView]:
        snippet = self._snippets.peek(snippet_id)
        if snippet is None:
            return None
        return self._snippet_view(snippet, self._review_counts())

    @synchronized
    def create_snippet(self, payload: InsertSnippet) -> Snippet:
        """Store a new snippet; it is never downloadable at creation."""
        snippet = self._snippets.insert(self.now(), **payload.model_dump(), downloadable=False)
        logger.debug(
            "Created snippet %d for user %d (%s)",
            snippet.id,
            snippet.user_id,
            "published" if snippet.is_published else "draft",
        )
        return snippet

    @synchronized
    def update_snippet(self, snippet_id: int, **changes: Any) -> Optional[Snippet]:
        return self._snippets.merge(snippet_id, changes)

    @synchronized
    def get_user_snippets(self, user_id: int) -> List[Snippet]:
        """All of a user's snippets, drafts included, without enrichment."""
        return self._snippets.filter(lambda snippet: snippet.user_id == user_id)

    @synchronized
    def get_recommended_snippets(self, user_id: int) -> List[SnippetView]:
        """
        Popularity-ranked snippets the user might want to buy.

        What:    Published snippets the user neither owns nor has purchased,
                 ranked by total_downloads + total_sales, highest first,
                 truncated to RECOMMENDATION_LIMIT.
        How:     `sorted` is stable, so equally popular snippets keep the
                 store's insertion order.

        The Recommendation table is not consulted here; see
        get_user_recommendations for stored recommendations.
        """
        purchased = {
            purchase.snippet_id
            for purchase in self._purchases.scan()
            if purchase.buyer_id == user_id
        }
        candidates = [
            snippet
            for snippet in self._snippets.scan()
            if snippet.is_published
            and snippet.user_id != user_id
            and snippet.id not in purchased
        ]
        ranked = sorted(
            candidates,
            key=lambda snippet: (snippet.total_downloads or 0) + (snippet.total_sales or 0),
            reverse=True,
        )
        review_counts = self._review_counts()
        return [self._snippet_view(snippet, review_counts) for snippet in ranked[:RECOMMENDATION_LIMIT]]

    # ══════════════════════════════════════════════════════════════════════
    # Purchases
    # ══════════════════════════════════════════════════════════════════════

    @synchronized
    def create_purchase(self, payload: InsertPurchase) -> Purchase:
        purchase = self._purchases.insert(self.now(), **payload.model_dump())
        logger.debug(
            "Recorded purchase %d: snippet %d by user %d",
            purchase.id,
            purchase.snippet_id,
            purchase.buyer_id,
        )
        return purchase

    @synchronized
    def get_purchase(self, purchase_id: int) -> Optional[Purchase]:
        return self._purchases.get(purchase_id)

    @synchronized
    def get_user_purchases(self, user_id: int) -> List[PurchaseView]:
        return [
            self._purchase_view(purchase, self._snippets.peek(purchase.snippet_id))
            for purchase in self._purchases.scan()
            if purchase.buyer_id == user_id
        ]

    @synchronized
    def get_user_sales(self, user_id: int) -> List[PurchaseView]:
        """
        Every purchase of a snippet owned by `user_id`.

        How:     Purchases are bucketed by snippet in one pass, then emitted
                 snippet by snippet in the owner's snippet order, so the cost
                 is O(snippets + purchases) rather than a purchase-log scan
                 per owned snippet.
        """
        owned = [snippet for snippet in self._snippets.scan() if snippet.user_id == user_id]
        if not owned:
            return []
        owned_ids = {snippet.id for snippet in owned}

        by_snippet: Dict[int, List[Purchase]] = defaultdict(list)
        for purchase in self._purchases.scan():
            if purchase.snippet_id in owned_ids:
                by_snippet[purchase.snippet_id].append(purchase)

        return [
            self._purchase_view(purchase, snippet)
            for snippet in owned
            for purchase in by_snippet.get(snippet.id, [])
        ]

    @synchronized
    def get_user_sales_summary(self, user_id: int) -> SalesSummary:
        """Dashboard totals: number of sales, earnings, and published snippets."""
        sales = self.get_user_sales(user_id)
        active = sum(
            1
            for snippet in self._snippets.scan()
            if snippet.user_id == user_id and snippet.is_published
        )
        return SalesSummary(
            total_sales=len(sales),
            total_earnings=sum((sale.price for sale in sales), Decimal("0")),
            active_snippets=active,
        )

    # ══════════════════════════════════════════════════════════════════════
    # Comments
    # ══════════════════════════════════════════════════════════════════════

    @synchronized
    def create_comment(self, payload: InsertComment) -> Comment:
        return self._comments.insert(self.now(), **payload.model_dump())

    @synchronized
    def get_comment(self, comment_id: int) -> Optional[Comment]:
        return self._comments.get(comment_id)

    @synchronized
    def update_comment(self, comment_id: int, **changes: Any) -> Optional[Comment]:
        return self._comments.merge(comment_id, changes)

    @synchronized
    def get_snippet_comments(self, snippet_id: int) -> List[CommentView]:
        return self._comment_views(c for c in self._comments.scan() if c.snippet_id == snippet_id)

    @synchronized
    def get_post_comments(self, post_id: int) -> List[CommentView]:
        return self._comment_views(c for c in self._comments.scan() if c.post_id == post_id)

    # ══════════════════════════════════════════════════════════════════════
    # Posts
    # ══════════════════════════════════════════════════════════════════════

    @synchronized
    def get_all_posts(self) -> List[PostView]:
        comment_counts = Counter(
            comment.post_id for comment in self._comments.scan() if comment.post_id is not None
        )
        return [self._post_view(post, comment_counts[post.id]) for post in self._posts.scan()]

    @synchronized
    def get_post(self, post_id: int) -> Optional[PostView]:
        post = self._posts.peek(post_id)
        if post is None:
            return None
        comment_count = sum(1 for comment in self._comments.scan() if comment.post_id == post_id)
        return self._post_view(post, comment_count)

    @synchronized
    def create_post(self, payload: InsertPost) -> Post:
        return self._posts.insert(self.now(), **payload.model_dump(), upvotes=0)

    @synchronized
    def update_post(self, post_id: int, **changes: Any) -> Optional[Post]:
        return self._posts.merge(post_id, changes)

    @synchronized
    def upvote_post(self, post_id: int) -> Optional[Post]:
        """
        Add one upvote to a post.

        Returns None, touching nothing, when the post does not exist. There
        is no per-user tracking: repeated calls keep incrementing.
        """
        post = self._posts.peek(post_id)
        if post is None:
            return None
        return self._posts.merge(post_id, {"upvotes": (post.upvotes or 0) + 1})

    # ══════════════════════════════════════════════════════════════════════
    # Bundles
    # ══════════════════════════════════════════════════════════════════════

    @synchronized
    def get_all_bundles(self) -> List[BundleView]:
        sizes = Counter(
            snippet.bundle_id for snippet in self._snippets.scan() if snippet.bundle_id is not None
        )
        return [self._bundle_view(bundle, sizes[bundle.id]) for bundle in self._bundles.scan()]

    @synchronized
    def get_bundle(self, bundle_id: int) -> Optional[BundleView]:
        bundle = self._bundles.peek(bundle_id)
        if bundle is None:
            return None
        size = sum(1 for snippet in self._snippets.scan() if snippet.bundle_id == bundle_id)
        return self._bundle_view(bundle, size)

    @synchronized
    def create_bundle(self, payload: InsertBundle) -> Bundle:
        return self._bundles.insert(self.now(), **payload.model_dump(), featured=False)

    @synchronized
    def update_bundle(self, bundle_id: int, **changes: Any) -> Optional[Bundle]:
        return self._bundles.merge(bundle_id, changes)

    @synchronized
    def get_bundle_snippets(self, bundle_id: int) -> List[SnippetView]:
        review_counts = self._review_counts()
        return [
            self._snippet_view(snippet, review_counts)
            for snippet in self._snippets.scan()
            if snippet.bundle_id == bundle_id
        ]

    # ══════════════════════════════════════════════════════════════════════
    # Reviews
    # ══════════════════════════════════════════════════════════════════════

    @synchronized
    def create_review(self, payload: InsertReview) -> Review:
        return self._reviews.insert(self.now(), **payload.model_dump())

    @synchronized
    def get_review(self, review_id: int) -> Optional[Review]:
        return self._reviews.get(review_id)

    @synchronized
    def update_review(self, review_id: int, **changes: Any) -> Optional[Review]:
        return self._reviews.merge(review_id, changes)

    @synchronized
    def get_snippet_reviews(self, snippet_id: int) -> List[ReviewView]:
        views = []
        for review in self._reviews.scan():
            if review.snippet_id != snippet_id:
                continue
            author = self._users.peek(review.user_id)
            views.append(
                ReviewView(
                    **review.model_dump(),
                    username=author.username if author else None,
                    user_avatar=author.avatar if author else None,
                )
            )
        return views

    @synchronized
    def get_user_reviews(self, user_id: int) -> List[Review]:
        return self._reviews.filter(lambda review: review.user_id == user_id)

    @synchronized
    def get_snippet_rating_summary(self, snippet_id: int) -> RatingSummary:
        """
        Average rating, review count and per-star distribution for a snippet.

        Ratings outside 1-5 (possible, since the store does not validate)
        count toward the average but have no distribution bucket.
        """
        ratings = [review.rating for review in self._reviews.scan() if review.snippet_id == snippet_id]
        distribution = {stars: 0 for stars in range(1, 6)}
        for rating in ratings:
            if rating in distribution:
                distribution[rating] += 1
        average = sum(ratings) / len(ratings) if ratings else 0.0
        return RatingSummary(average=average, count=len(ratings), distribution=distribution)

    # ══════════════════════════════════════════════════════════════════════
    # Favorites
    # ══════════════════════════════════════════════════════════════════════

    @synchronized
    def create_favorite(self, payload: InsertFavorite) -> Favorite:
        """
        Record that a user likes a snippet.

        Duplicates are not rejected: favoriting the same snippet twice
        stores two rows. Callers wanting toggle semantics check is_favorite.
        """
        return self._favorites.insert(self.now(), **payload.model_dump())

    @synchronized
    def remove_favorite(self, user_id: int, snippet_id: int) -> bool:
        """Delete the first favorite matching (user, snippet). False when none matched."""
        favorite = self._favorites.find_first(
            lambda fav: fav.user_id == user_id and fav.snippet_id == snippet_id
        )
        if favorite is None:
            return False
        return self._favorites.delete(favorite.id)

    @synchronized
    def is_favorite(self, user_id: int, snippet_id: int) -> bool:
        return any(
            fav.user_id == user_id and fav.snippet_id == snippet_id
            for fav in self._favorites.scan()
        )

    @synchronized
    def get_user_favorites(self, user_id: int) -> List[FavoriteView]:
        views = []
        for favorite in self._favorites.scan():
            if favorite.user_id != user_id:
                continue
            snippet = self._snippets.peek(favorite.snippet_id)
            views.append(
                FavoriteView(**favorite.model_dump(), snippet_title=snippet.title if snippet else None)
            )
        return views

    # ══════════════════════════════════════════════════════════════════════
    # Shares
    # ══════════════════════════════════════════════════════════════════════

    @synchronized
    def create_share(self, payload: InsertShare) -> Share:
        return self._shares.insert(self.now(), **payload.model_dump())

    @synchronized
    def get_snippet_shares(self, snippet_id: int) -> List[Share]:
        return self._shares.filter(lambda share: share.snippet_id == snippet_id)

    # ══════════════════════════════════════════════════════════════════════
    # Subscriptions
    # ══════════════════════════════════════════════════════════════════════

    @synchronized
    def create_subscription(self, payload: InsertSubscription) -> Subscription:
        now = self.now()
        fields = payload.model_dump()
        if fields.get("start_date") is None:
            fields["start_date"] = now
        return self._subscriptions.insert(now, **fields)

    @synchronized
    def get_subscription(self, subscription_id: int) -> Optional[Subscription]:
        return self._subscriptions.get(subscription_id)

    @synchronized
    def get_user_subscription(self, user_id: int) -> Optional[Subscription]:
        """The user's first active subscription, if any."""
        return self._subscriptions.find_first(
            lambda sub: sub.user_id == user_id and sub.status == "active"
        )

    @synchronized
    def update_subscription(self, subscription_id: int, **changes: Any) -> Optional[Subscription]:
        return self._subscriptions.merge(subscription_id, changes)

    # ══════════════════════════════════════════════════════════════════════
    # Author Followers
    # ══════════════════════════════════════════════════════════════════════

    @synchronized
    def follow_author(self, payload: InsertAuthorFollower) -> AuthorFollower:
        """Add a follow edge. Repeated follows store repeated edges."""
        return self._author_followers.insert(self.now(), **payload.model_dump())

    @synchronized
    def unfollow_author(self, follower_id: int, author_id: int) -> bool:
        """Delete the first (follower, author) edge. False when none matched."""
        edge = self._author_followers.find_first(
            lambda f: f.follower_id == follower_id and f.author_id == author_id
        )
        if edge is None:
            return False
        return self._author_followers.delete(edge.id)

    @synchronized
    def is_following(self, follower_id: int, author_id: int) -> bool:
        return any(
            f.follower_id == follower_id and f.author_id == author_id
            for f in self._author_followers.scan()
        )

    @synchronized
    def get_author_followers(self, author_id: int) -> List[FollowerView]:
        views = []
        for edge in self._author_followers.scan():
            if edge.author_id != author_id:
                continue
            follower = self._users.peek(edge.follower_id)
            views.append(
                FollowerView(
                    **edge.model_dump(),
                    follower_username=follower.username if follower else None,
                    follower_avatar=follower.avatar if follower else None,
                )
            )
        return views

    @synchronized
    def get_user_following(self, follower_id: int) -> List[FollowingView]:
        views = []
        for edge in self._author_followers.scan():
            if edge.follower_id != follower_id:
                continue
            author = self._users.peek(edge.author_id)
            views.append(
                FollowingView(
                    **edge.model_dump(),
                    author_username=author.username if author else None,
                    author_avatar=author.avatar if author else None,
                )
            )
        return views

    # ══════════════════════════════════════════════════════════════════════
    # Recommendations
    # ══════════════════════════════════════════════════════════════════════

    @synchronized
    def create_recommendation(self, payload: InsertRecommendation) -> Recommendation:
        return self._recommendations.insert(self.now(), **payload.model_dump())

    @synchronized
    def get_user_recommendations(self, user_id: int) -> List[RecommendationView]:
        views = []
        for rec in self._recommendations.scan():
            if rec.user_id != user_id:
                continue
            snippet = self._snippets.peek(rec.snippet_id)
            views.append(
                RecommendationView(
                    **rec.model_dump(),
                    snippet_title=snippet.title if snippet else None,
                    snippet_language=snippet.language if snippet else None,
                )
            )
        return views

    # ══════════════════════════════════════════════════════════════════════
    # Playground Sessions
    # ══════════════════════════════════════════════════════════════════════

    @synchronized
    def create_playground_session(self, payload: InsertPlaygroundSession) -> PlaygroundSession:
        now = self.now()
        return self._playground_sessions.insert(now, **payload.model_dump(), updated_at=now)

    @synchronized
    def get_playground_session(self, session_pk: int) -> Optional[PlaygroundSession]:
        return self._playground_sessions.get(session_pk)

    @synchronized
    def get_playground_session_by_session_id(self, session_id: str) -> Optional[PlaygroundSession]:
        """Look a session up by its external session-id string."""
        return self._playground_sessions.find_first(lambda s: s.session_id == session_id)

    @synchronized
    def update_playground_session(self, session_pk: int, **changes: Any) -> Optional[PlaygroundSession]:
        """Shallow-merge like every update, and refresh `updated_at`."""
        changes["updated_at"] = self.now()
        return self._playground_sessions.merge(session_pk, changes)

    @synchronized
    def get_user_playground_sessions(self, user_id: int) -> List[PlaygroundSession]:
        return self._playground_sessions.filter(lambda s: s.user_id == user_id)

    @synchronized
    def get_snippet_playground_sessions(self, snippet_id: int) -> List[PlaygroundSession]:
        return self._playground_sessions.filter(lambda s: s.snippet_id == snippet_id)

    # ══════════════════════════════════════════════════════════════════════
    # Scheduled Tasks
    # ══════════════════════════════════════════════════════════════════════

    @synchronized
    def create_scheduled_task(self, payload: InsertScheduledTask) -> ScheduledTask:
        task = self._scheduled_tasks.insert(self.now(), **payload.model_dump())
        logger.debug("Scheduled %s for %d at %s", task.kind, task.target_id, task.due_at.isoformat())
        return task

    @synchronized
    def get_scheduled_task(self, task_id: int) -> Optional[ScheduledTask]:
        return self._scheduled_tasks.get(task_id)

    @synchronized
    def get_due_tasks(self, now: Optional[datetime] = None) -> List[ScheduledTask]:
        """Pending tasks whose due time is at or before `now`, in scheduling order."""
        cutoff = as_utc(now or self.now())
        return self._scheduled_tasks.filter(lambda task: task.is_pending and task.due_at <= cutoff)

    @synchronized
    def complete_scheduled_task(
        self, task_id: int, when: Optional[datetime] = None
    ) -> Optional[ScheduledTask]:
        return self._scheduled_tasks.merge(
            task_id,
            {"status": ScheduledTask.DONE, "completed_at": when or self.now()},
        )

    @synchronized
    def count_pending_tasks(self) -> int:
        return sum(1 for task in self._scheduled_tasks.scan() if task.is_pending)

    # ══════════════════════════════════════════════════════════════════════
    # Whole-Store Operations
    # ══════════════════════════════════════════════════════════════════════

    @synchronized
    def count_records(self) -> Dict[str, int]:
        """Number of stored records per entity kind."""
        return {kind: len(table) for kind, table in self._tables.items()}

    @synchronized
    def is_empty(self) -> bool:
        return all(len(table) == 0 for table in self._tables.values())

    @synchronized
    def export_state(self) -> Dict[str, Any]:
        """
        JSON-compatible copy of every table, including id counters.

        Format:
            {"version": 1, "tables": {"snippet": {"next_id": 4, "rows": [...]}, ...}}
        """
        return {
            "version": SNAPSHOT_VERSION,
            "tables": {kind: table.dump() for kind, table in self._tables.items()},
        }

    @synchronized
    def import_state(self, state: Dict[str, Any]) -> None:
        """
        Replace every table with the contents of an exported state.

        Kinds absent from `state` are left empty. Raises ValueError for an
        unsupported version or a state that is not shaped like export_state's
        output, and pydantic's ValidationError for malformed rows; in every
        case the store is left unchanged.
        """
        if not isinstance(state, dict):
            raise ValueError(f"Store state must be an object, got {type(state).__name__}")
        version = state.get("version")
        if version != SNAPSHOT_VERSION:
            raise ValueError(f"Unsupported snapshot version: {version!r}")

        tables = state.get("tables", {})
        if not isinstance(tables, dict):
            raise ValueError("Store state 'tables' must be an object")
        staged = {}
        for kind, table in self._tables.items():
            replacement = EntityTable(kind, table.model)
            replacement.load(tables.get(kind, {}))
            staged[kind] = replacement

        for kind, replacement in staged.items():
            self._tables[kind].adopt(replacement)
        logger.info("Imported store state: %s", self.count_records())

    # ══════════════════════════════════════════════════════════════════════
    # Enrichment (view mapping)
    # ══════════════════════════════════════════════════════════════════════

    def _review_counts(self) -> Counter:
        return Counter(review.snippet_id for review in self._reviews.scan())

    def _snippet_view(self, snippet: Snippet, review_counts: Counter) -> SnippetView:
        author = self._users.peek(snippet.user_id)
        return SnippetView(
            **snippet.model_dump(),
            username=author.username if author else None,
            author_reputation=author.reputation if author else None,
            review_count=review_counts[snippet.id],
        )

    def _purchase_view(self, purchase: Purchase, snippet: Optional[Snippet]) -> PurchaseView:
        return PurchaseView(**purchase.model_dump(), snippet_title=snippet.title if snippet else None)

    def _comment_views(self, comments: Iterable[Comment]) -> List[CommentView]:
        views = []
        for comment in comments:
            author = self._users.peek(comment.user_id)
            views.append(CommentView(**comment.model_dump(), username=author.username if author else None))
        return views

    def _post_view(self, post: Post, comment_count: int) -> PostView:
        author = self._users.peek(post.user_id)
        return PostView(
            **post.model_dump(),
            username=author.username if author else None,
            comment_count=comment_count,
        )

    def _bundle_view(self, bundle: Bundle, snippet_count: int) -> BundleView:
        author = self._users.peek(bundle.user_id)
        return BundleView(
            **bundle.model_dump(),
            username=author.username if author else None,
            snippet_count=snippet_count,
        )
