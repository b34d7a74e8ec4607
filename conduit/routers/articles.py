from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.database import get_db
from conduit.dependencies import PaginationParams, get_viewer, require_user
from conduit.schemas import (
    ArticleCreateRequest,
    ArticleEnvelope,
    ArticleListQuery,
    ArticlesEnvelope,
    ArticleUpdateRequest,
    CommentCreateRequest,
    CommentEnvelope,
    CommentsEnvelope,
    FeedQuery,
)
from conduit.services import article_service, comment_service, favorite_service

router = APIRouter(prefix="/api/articles", tags=["articles"])


@router.get("", response_model=ArticlesEnvelope)
async def list_articles(
    tag: str | None = None,
    author: str | None = None,
    favorited: str | None = None,
    pagination: PaginationParams = Depends(),
    viewer: str | None = Depends(get_viewer),
    db: AsyncSession = Depends(get_db),
):
    query = ArticleListQuery(
        tag=tag,
        author=author,
        favorited=favorited,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    return await article_service.list_articles(db, query, viewer)


@router.get("/feed", response_model=ArticlesEnvelope)
async def feed(
    pagination: PaginationParams = Depends(),
    user: str = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    query = FeedQuery(limit=pagination.limit, offset=pagination.offset)
    return await article_service.feed(db, query, user)


@router.get("/{slug}", response_model=ArticleEnvelope)
async def get_article(
    slug: str,
    viewer: str | None = Depends(get_viewer),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.get_article(db, slug, viewer)


@router.post("", status_code=201, response_model=ArticleEnvelope)
async def create_article(
    data: ArticleCreateRequest,
    user: str = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.create_article(db, data.article, user)


@router.put("/{slug}", response_model=ArticleEnvelope)
async def update_article(
    slug: str,
    data: ArticleUpdateRequest,
    user: str = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.update_article(db, slug, data.article, user)


@router.delete("/{slug}", status_code=204)
async def delete_article(
    slug: str,
    user: str = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await article_service.delete_article(db, slug, user)
    return Response(status_code=204)


# --- Favorites ---

@router.post("/{slug}/favorite", response_model=ArticleEnvelope)
async def favorite(
    slug: str,
    user: str = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await favorite_service.add(db, slug, user)


@router.delete("/{slug}/favorite", response_model=ArticleEnvelope)
async def unfavorite(
    slug: str,
    user: str = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await favorite_service.delete(db, slug, user)


# --- Comments ---

@router.get("/{slug}/comments", response_model=CommentsEnvelope)
async def list_comments(
    slug: str,
    viewer: str | None = Depends(get_viewer),
    db: AsyncSession = Depends(get_db),
):
    return await comment_service.list_comments(db, slug, viewer)


@router.post("/{slug}/comments", status_code=201, response_model=CommentEnvelope)
async def add_comment(
    slug: str,
    data: CommentCreateRequest,
    user: str = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await comment_service.add_comment(db, slug, data.comment, user)


@router.delete("/{slug}/comments/{comment_id}", status_code=204)
async def delete_comment(
    slug: str,
    comment_id: int,
    user: str = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await comment_service.delete_comment(db, slug, comment_id, user)
    return Response(status_code=204)
