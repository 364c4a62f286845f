"""
content/models.py -- Domain dataclasses for the site's content records.

These are pure data containers with zero logic. Timestamps and generated IDs
are assigned in content/store.py; HTTP field naming lives in api/models.py.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Post:
    """A page or article shown on the site.

    post_id is the caller-chosen public identifier (unique). category refers
    to Category.category_id but is not enforced as a foreign key.
    created_on / last_edited_on are ISO 8601 UTC strings set by the store.
    """

    post_id: int
    title: str = ""
    subtitle: str = ""
    post_type: str = ""
    category: int = 0
    content: str = ""
    link_github: str = ""
    link_facebook: str = ""
    show_in_menu: bool = False
    created_on: str = ""
    last_edited_on: str = ""
    id: Optional[int] = None


@dataclass
class Category:
    """A post grouping. index orders categories in the site menu."""

    category_id: int
    name: str = ""
    index: int = 0
    id: Optional[int] = None


@dataclass
class Sponsor:
    """A sponsor shown on the site until expiry (Unix seconds).

    sponsor_id is a UUID4 string generated by the store on insert.
    """

    name: str
    logo: str = ""
    tier: str = ""
    expiry: int = 0
    sponsor_id: str = ""
    id: Optional[int] = None
