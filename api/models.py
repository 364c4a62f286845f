"""
API request and response models for the Content API.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in content/models.py, which own
the internal domain representation. Route handlers map between the two with
the from_domain() factory methods colocated here.

JSON field names are camelCase to match the form field names the site's
frontend already posts (linkGithub, showInMenu, ...). FastAPI serializes
response models by alias, so the Python side keeps snake_case.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from content.models import Category, Post

# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class LoginResponse(BaseModel):
    """Response body for POST /login/."""

    model_config = ConfigDict(frozen=True)

    token: str


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------


class PostOut(BaseModel):
    """One post as returned by GET /post/{id}/ and GET /posts/."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    title: str
    subtitle: str
    post_type: str = Field(alias="type")
    category: int
    created_on: str = Field(alias="createdOn")
    last_edited_on: str = Field(alias="lastEditedOn")
    content: str
    link_github: str = Field(alias="linkGithub")
    link_facebook: str = Field(alias="linkFacebook")
    show_in_menu: bool = Field(alias="showInMenu")

    @classmethod
    def from_domain(cls, post: Post) -> "PostOut":
        return cls(
            id=post.post_id,
            title=post.title,
            subtitle=post.subtitle,
            post_type=post.post_type,
            category=post.category,
            created_on=post.created_on,
            last_edited_on=post.last_edited_on,
            content=post.content,
            link_github=post.link_github,
            link_facebook=post.link_facebook,
            show_in_menu=post.show_in_menu,
        )


class PostResponse(BaseModel):
    """post is null when no post matches the filter."""

    model_config = ConfigDict(frozen=True)

    post: Optional[PostOut]


class PostListResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    posts: list[PostOut]


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


class CategoryOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    index: int

    @classmethod
    def from_domain(cls, category: Category) -> "CategoryOut":
        return cls(id=category.category_id, name=category.name, index=category.index)


class CategoryResponse(BaseModel):
    """category is null when no category matches the ID."""

    model_config = ConfigDict(frozen=True)

    category: Optional[CategoryOut]


# ---------------------------------------------------------------------------
# Sponsors
# ---------------------------------------------------------------------------


class SponsorCreatedResponse(BaseModel):
    """Response for POST /sponsor/. id is the generated UUID used by DELETE /sponsor/."""

    model_config = ConfigDict(frozen=True)

    id: str


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------


class EmptyResponse(BaseModel):
    """{} -- success body for mutations that return no payload."""

    model_config = ConfigDict(frozen=True)


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
