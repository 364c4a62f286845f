"""
content/store.py -- SQLAlchemy-backed persistence layer for posts, categories
and sponsors.

Uses SQLAlchemy Core (not ORM) so the dataclasses in content/models.py remain
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change, not a rewrite.

Pattern: Repository + Data Mapper. ContentStore is the repository (one small
interface per record kind); the _row_to_* functions are the mappers. Route
handlers never touch SQL directly.

Every record kind follows the same contract:
  create_*  -> inserts; duplicate identifiers raise ConflictError
  get_*     -> the matching record or None
  update_*  -> True if a record matched the identifier
  delete_*  -> True if a record matched the identifier

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = ContentStore(make_engine("sqlite:///content.db"))
    store.create_post(Post(post_id=1, title="Welcome"))
    posts = store.list_posts(limit=10)
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, Column, Integer, MetaData, String, Table, Text, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from content.models import Category, Post, Sponsor
from core.db import storage_errors
from core.errors import ConflictError

DEFAULT_LIST_LIMIT = 10

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_posts = Table(
    "posts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("post_id", Integer, nullable=False, unique=True),
    Column("title", String(255), nullable=False, server_default=""),
    Column("subtitle", String(255), nullable=False, server_default=""),
    Column("post_type", String(50), nullable=False, server_default=""),
    Column("category", Integer, nullable=False, server_default="0"),
    Column("created_on", String(32), nullable=False),
    Column("last_edited_on", String(32), nullable=False),
    Column("content", Text, nullable=False, server_default=""),
    Column("link_github", String(500), nullable=False, server_default=""),
    Column("link_facebook", String(500), nullable=False, server_default=""),
    Column("show_in_menu", Boolean, nullable=False, server_default="0"),
)

_categories = Table(
    "categories",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("category_id", Integer, nullable=False, unique=True),
    Column("name", String(255), nullable=False, server_default=""),
    Column("sort_index", Integer, nullable=False, server_default="0"),  # Row objects shadow .index
)

_sponsors = Table(
    "sponsors",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("sponsor_id", String(36), nullable=False, unique=True),  # UUID4
    Column("name", String(255), nullable=False),
    Column("logo", String(500), nullable=False, server_default=""),
    Column("tier", String(50), nullable=False, server_default=""),
    Column("expiry", Integer, nullable=False, server_default="0"),  # Unix seconds
)

# Columns a post update may touch. post_id and created_on are immutable.
_POST_UPDATE_FIELDS: set = {
    "title",
    "subtitle",
    "post_type",
    "category",
    "content",
    "link_github",
    "link_facebook",
    "show_in_menu",
}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ContentStore:
    """Repository for Post, Category and Sponsor records on the shared engine."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        with storage_errors("create content tables"):
            metadata.create_all(self.engine)

    def _insert(self, table: Table, values: dict, conflict_message: str) -> int:
        try:
            with storage_errors(f"insert {table.name}"), self.engine.connect() as conn:
                result = conn.execute(table.insert().values(**values))
                conn.commit()
                return result.inserted_primary_key[0]
        except IntegrityError as exc:
            raise ConflictError(conflict_message) from exc

    # ------------------------------------------------------------------
    # Posts
    # ------------------------------------------------------------------

    def create_post(self, post: Post) -> int:
        """Insert a post. created_on and last_edited_on are stamped here."""
        now = _now_iso()
        return self._insert(
            _posts,
            {
                "post_id": post.post_id,
                "title": post.title,
                "subtitle": post.subtitle,
                "post_type": post.post_type,
                "category": post.category,
                "created_on": now,
                "last_edited_on": now,
                "content": post.content,
                "link_github": post.link_github,
                "link_facebook": post.link_facebook,
                "show_in_menu": post.show_in_menu,
            },
            f"Post {post.post_id} already exists.",
        )

    def get_post(self, post_id: int, category: Optional[int] = None) -> Optional[Post]:
        """Look up a post by its public ID, optionally also requiring a category."""
        query = _posts.select().where(_posts.c.post_id == post_id)
        if category is not None:
            query = query.where(_posts.c.category == category)
        with storage_errors("get post"), self.engine.connect() as conn:
            row = conn.execute(query).fetchone()
        return _row_to_post(row) if row is not None else None

    def list_posts(self, limit: int = DEFAULT_LIST_LIMIT, category: Optional[int] = None) -> list[Post]:
        """Return up to limit posts in insertion order, optionally for one category."""
        query = select(_posts).order_by(_posts.c.id).limit(limit)
        if category is not None:
            query = query.where(_posts.c.category == category)
        with storage_errors("list posts"), self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [_row_to_post(r) for r in rows]

    def update_post(self, post_id: int, **fields) -> bool:
        """Update mutable post fields and stamp last_edited_on.

        Unknown field names raise ValueError rather than being ignored.
        Returns True if a post was updated, False if post_id was not found.
        """
        unknown = set(fields) - _POST_UPDATE_FIELDS
        if unknown:
            raise ValueError(f"Unknown post fields: {unknown!r}")
        fields["last_edited_on"] = _now_iso()
        with storage_errors("update post"), self.engine.connect() as conn:
            result = conn.execute(_posts.update().where(_posts.c.post_id == post_id).values(**fields))
            conn.commit()
        return result.rowcount > 0

    def delete_post(self, post_id: int) -> bool:
        with storage_errors("delete post"), self.engine.connect() as conn:
            result = conn.execute(_posts.delete().where(_posts.c.post_id == post_id))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def create_category(self, category: Category) -> int:
        return self._insert(
            _categories,
            {"category_id": category.category_id, "name": category.name, "sort_index": category.index},
            f"Category {category.category_id} already exists.",
        )

    def get_category(self, category_id: int) -> Optional[Category]:
        with storage_errors("get category"), self.engine.connect() as conn:
            row = conn.execute(_categories.select().where(_categories.c.category_id == category_id)).fetchone()
        return _row_to_category(row) if row is not None else None

    def update_category(self, category_id: int, name: str, index: int) -> bool:
        """Rename and reorder a category. Returns False if category_id was not found."""
        with storage_errors("update category"), self.engine.connect() as conn:
            result = conn.execute(
                _categories.update()
                .where(_categories.c.category_id == category_id)
                .values(name=name, sort_index=index)
            )
            conn.commit()
        return result.rowcount > 0

    def delete_category(self, category_id: int) -> bool:
        """Delete a category. Posts that reference it are left untouched."""
        with storage_errors("delete category"), self.engine.connect() as conn:
            result = conn.execute(_categories.delete().where(_categories.c.category_id == category_id))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Sponsors
    # ------------------------------------------------------------------

    def create_sponsor(self, sponsor: Sponsor) -> str:
        """Insert a sponsor under a freshly generated UUID4 and return that ID."""
        sponsor_id = str(uuid.uuid4())
        self._insert(
            _sponsors,
            {
                "sponsor_id": sponsor_id,
                "name": sponsor.name,
                "logo": sponsor.logo,
                "tier": sponsor.tier,
                "expiry": sponsor.expiry,
            },
            f"Sponsor {sponsor_id} already exists.",
        )
        return sponsor_id

    def get_sponsor(self, sponsor_id: str) -> Optional[Sponsor]:
        with storage_errors("get sponsor"), self.engine.connect() as conn:
            row = conn.execute(_sponsors.select().where(_sponsors.c.sponsor_id == sponsor_id)).fetchone()
        return _row_to_sponsor(row) if row is not None else None

    def delete_sponsor(self, sponsor_id: str) -> bool:
        with storage_errors("delete sponsor"), self.engine.connect() as conn:
            result = conn.execute(_sponsors.delete().where(_sponsors.c.sponsor_id == sponsor_id))
            conn.commit()
        return result.rowcount > 0


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_post(row) -> Post:
    return Post(
        id=row.id,
        post_id=row.post_id,
        title=row.title,
        subtitle=row.subtitle,
        post_type=row.post_type,
        category=row.category,
        created_on=row.created_on,
        last_edited_on=row.last_edited_on,
        content=row.content,
        link_github=row.link_github,
        link_facebook=row.link_facebook,
        show_in_menu=bool(row.show_in_menu),
    )


def _row_to_category(row) -> Category:
    return Category(
        id=row.id,
        category_id=row.category_id,
        name=row.name,
        index=row.sort_index,
    )


def _row_to_sponsor(row) -> Sponsor:
    return Sponsor(
        id=row.id,
        sponsor_id=row.sponsor_id,
        name=row.name,
        logo=row.logo,
        tier=row.tier,
        expiry=row.expiry,
    )
