"""
api/routes/categories.py -- Category routes.

Routes:
  GET    /category/{category_id}/  -- one category or null
  POST   /category/                -- create from form fields id, name, index
  PATCH  /category/                -- rename/reorder the category named by form field id
  DELETE /category/                -- delete the category named by form field id

PATCH and DELETE identify the category in the form body rather than the path;
existing clients depend on that shape.
"""

from fastapi import APIRouter, Form, Request

from api.models import CategoryOut, CategoryResponse, EmptyResponse
from content.models import Category
from content.store import ContentStore
from core.errors import NotFoundError

router = APIRouter()


@router.get("/category/{category_id}/", response_model=CategoryResponse)
def get_category(request: Request, category_id: int) -> CategoryResponse:
    content: ContentStore = request.app.state.content
    category = content.get_category(category_id)
    return CategoryResponse(category=CategoryOut.from_domain(category) if category is not None else None)


@router.post("/category/", response_model=EmptyResponse)
def create_category(
    request: Request,
    category_id: int = Form(alias="id"),
    name: str = Form(default=""),
    index: int = Form(default=0),
) -> EmptyResponse:
    content: ContentStore = request.app.state.content
    content.create_category(Category(category_id=category_id, name=name, index=index))
    return EmptyResponse()


@router.patch("/category/", response_model=EmptyResponse)
def patch_category(
    request: Request,
    category_id: int = Form(alias="id"),
    name: str = Form(default=""),
    index: int = Form(default=0),
) -> EmptyResponse:
    content: ContentStore = request.app.state.content
    if not content.update_category(category_id, name=name, index=index):
        raise NotFoundError(f"Category {category_id} not found.")
    return EmptyResponse()


@router.delete("/category/", response_model=EmptyResponse)
def delete_category(request: Request, category_id: int = Form(alias="id")) -> EmptyResponse:
    content: ContentStore = request.app.state.content
    if not content.delete_category(category_id):
        raise NotFoundError(f"Category {category_id} not found.")
    return EmptyResponse()
