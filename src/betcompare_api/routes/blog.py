"""
# Blog Routes

REST endpoints for **blog posts**: guides, news and head-to-head comparison articles.

## API Endpoints

- `GET /api/blog` - Published posts (filter by category, tag, featured; sticky posts first)
- `GET /api/blog/featured` - Featured posts
- `GET /api/blog/category/{category}` - Published posts in one category
- `GET /api/blog/comparisons` - Comparison articles naming two bookmakers
- `GET /api/blog/slug/{slug}` - Published post with related posts (counts a view)
- `GET /api/blog/{id}` - Post by id
- `POST /api/blog` - Create (admin)
- `PUT /api/blog/{id}` - Partial update (admin)
- `DELETE /api/blog/{id}` - Delete (admin)

Attributes:
    router (APIRouter): FastAPI router with `/api/blog` prefix
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from betcompare_api.managers.logging_manager import get_logger
from betcompare_api.models.blog_models import BlogCategory, CreateBlogPostRequest, UpdateBlogPostRequest
from betcompare_api.routes.dependencies import Pagination, pagination_params, require_admin, valid_object_id
from betcompare_api.routes.responses import document_response, list_response, paginated_response, success
from betcompare_api.services.blog_service import blog_service

logger = get_logger(prefix="[Blog Routes]")

router = APIRouter(prefix="/api/blog", tags=["blog"])

NOT_FOUND = "Blog post not found"


@router.get("")
async def list_posts(
    pagination: Pagination = Depends(pagination_params),
    category: Optional[BlogCategory] = Query(None),
    tag: Optional[str] = Query(None, max_length=50),
    featured: bool = Query(False),
    sort_by: str = Query("publishedAt", alias="sortBy"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$", alias="sortOrder"),
):
    try:
        if featured:
            docs = await blog_service.get_featured(pagination.limit)
            total = len(docs)
        else:
            docs, total = await blog_service.get_published(
                page=pagination.page,
                limit=pagination.limit,
                category=category.value if category else None,
                tag=tag,
                sort_by=sort_by,
                sort_order=sort_order,
            )
        return paginated_response("posts", docs, pagination.page, pagination.limit, total)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to list blog posts: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to list blog posts")


@router.get("/featured")
async def featured_posts(limit: int = Query(5, ge=1, le=50)):
    try:
        return list_response(await blog_service.get_featured(limit))
    except Exception as e:
        logger.error("Failed to get featured posts: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get featured posts")


@router.get("/category/{category}")
async def posts_by_category(category: BlogCategory, pagination: Pagination = Depends(pagination_params)):
    try:
        docs, total = await blog_service.get_by_category(category.value, pagination.page, pagination.limit)
        return paginated_response("posts", docs, pagination.page, pagination.limit, total)
    except Exception as e:
        logger.error("Failed to get %s posts: %s", category.value, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get blog posts")


@router.get("/comparisons")
async def comparison_posts(limit: int = Query(10, ge=1, le=50)):
    try:
        return list_response(await blog_service.get_comparisons(limit))
    except Exception as e:
        logger.error("Failed to get comparison posts: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get comparison posts")


@router.get("/slug/{slug}")
async def get_post_by_slug(slug: str):
    try:
        doc = await blog_service.get_by_slug(slug)
        if not doc:
            raise HTTPException(status_code=404, detail=NOT_FOUND)
        return document_response(doc)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to get blog post %s: %s", slug, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get blog post")


@router.get("/{post_id}")
async def get_post(post_id: str = Depends(valid_object_id("post_id"))):
    try:
        doc = await blog_service.get_by_id(post_id)
        if not doc:
            raise HTTPException(status_code=404, detail=NOT_FOUND)
        return document_response(doc)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to get blog post %s: %s", post_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get blog post")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_post(request: CreateBlogPostRequest, admin: Dict[str, Any] = Depends(require_admin)):
    try:
        doc = await blog_service.create(request)
        return document_response(doc, "Blog post created successfully")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to create blog post: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create blog post")


@router.put("/{post_id}")
async def update_post(
    request: UpdateBlogPostRequest,
    post_id: str = Depends(valid_object_id("post_id")),
    admin: Dict[str, Any] = Depends(require_admin),
):
    try:
        doc = await blog_service.update(post_id, request)
        if not doc:
            raise HTTPException(status_code=404, detail=NOT_FOUND)
        return document_response(doc, "Blog post updated successfully")
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to update blog post %s: %s", post_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update blog post")


@router.delete("/{post_id}")
async def delete_post(
    post_id: str = Depends(valid_object_id("post_id")),
    admin: Dict[str, Any] = Depends(require_admin),
):
    try:
        if not await blog_service.delete(post_id):
            raise HTTPException(status_code=404, detail=NOT_FOUND)
        logger.info("Blog post %s deleted by %s", post_id, admin["email"])
        return success(message="Blog post deleted successfully")
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to delete blog post %s: %s", post_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete blog post")
