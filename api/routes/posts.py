"""
api/routes/posts.py -- Post routes.

Routes:
  GET    /post/{post_id}/   -- one post, optionally constrained to ?category=
  GET    /posts/            -- up to ?id= posts (default 10), optional ?category=
  POST   /post/             -- create from form fields
  PUT    /post/{post_id}/   -- replace all mutable fields from form fields
  DELETE /post/{post_id}/   -- delete

GET /posts/ takes its count in the "id" query parameter; the frontend has
always sent it under that name. A count above MAX_LIST_LIMIT is clamped.
An empty ?id= or ?category= is treated as absent. Non-numeric IDs and
counts are rejected with a 422.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Form, Query, Request

from api.models import EmptyResponse, PostListResponse, PostOut, PostResponse
from content.models import Post
from content.store import DEFAULT_LIST_LIMIT, ContentStore
from core.errors import NotFoundError, ValidationError

router = APIRouter()


def _post_fields(
    title: str = Form(default=""),
    subtitle: str = Form(default=""),
    post_type: str = Form(default="", alias="type"),
    category: int = Form(default=0),
    content: str = Form(default=""),
    link_github: str = Form(default="", alias="linkGithub"),
    link_facebook: str = Form(default="", alias="linkFacebook"),
    show_in_menu: bool = Form(default=False, alias="showInMenu"),
) -> dict:
    """Collect the mutable post form fields shared by POST and PUT."""
    return {
        "title": title,
        "subtitle": subtitle,
        "post_type": post_type,
        "category": category,
        "content": content,
        "link_github": link_github,
        "link_facebook": link_facebook,
        "show_in_menu": show_in_menu,
    }


def _optional_int(value: Optional[str], name: str) -> Optional[int]:
    """Parse an optional numeric query parameter. An empty string means absent."""
    if value is None or value.strip() == "":
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"Query parameter {name!r} must be an integer.", detail=value) from None


@router.get("/post/{post_id}/", response_model=PostResponse)
def get_post(request: Request, post_id: int, category: Optional[str] = None) -> PostResponse:
    content: ContentStore = request.app.state.content
    post = content.get_post(post_id, category=_optional_int(category, "category"))
    return PostResponse(post=PostOut.from_domain(post) if post is not None else None)


@router.get("/posts/", response_model=PostListResponse)
def list_posts(
    request: Request,
    count: Optional[str] = Query(default=None, alias="id"),
    category: Optional[str] = None,
) -> PostListResponse:
    """Return posts in stored order, DEFAULT_LIST_LIMIT when no count is given."""
    limit = _optional_int(count, "id")
    if limit is None:
        limit = DEFAULT_LIST_LIMIT
    elif limit < 1:
        raise ValidationError("Query parameter 'id' must be at least 1.", detail=count)
    limit = min(limit, request.app.state.max_list_limit)
    content: ContentStore = request.app.state.content
    posts = content.list_posts(limit=limit, category=_optional_int(category, "category"))
    return PostListResponse(posts=[PostOut.from_domain(p) for p in posts])


@router.post("/post/", response_model=EmptyResponse)
def create_post(
    request: Request,
    post_id: int = Form(alias="id"),
    fields: dict = Depends(_post_fields),
) -> EmptyResponse:
    """Create a post. A post_id that is already taken returns 409."""
    content: ContentStore = request.app.state.content
    content.create_post(Post(post_id=post_id, **fields))
    return EmptyResponse()


@router.put("/post/{post_id}/", response_model=EmptyResponse)
def update_post(
    request: Request,
    post_id: int,
    fields: dict = Depends(_post_fields),
) -> EmptyResponse:
    """Overwrite every mutable field of the post and stamp lastEditedOn."""
    content: ContentStore = request.app.state.content
    if not content.update_post(post_id, **fields):
        raise NotFoundError(f"Post {post_id} not found.")
    return EmptyResponse()


@router.delete("/post/{post_id}/", response_model=EmptyResponse)
def delete_post(request: Request, post_id: int) -> EmptyResponse:
    content: ContentStore = request.app.state.content
    if not content.delete_post(post_id):
        raise NotFoundError(f"Post {post_id} not found.")
    return EmptyResponse()
