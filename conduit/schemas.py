from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from conduit.config import settings


class CamelModel(BaseModel):
    """Wire models use camelCase keys; Python code uses snake_case."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# --- Profile ---

class Profile(CamelModel):
    username: str
    bio: str | None = None
    image: str | None = None
    following: bool = False


class ProfileEnvelope(CamelModel):
    profile: Profile


# --- Person ---

class PersonCreate(CamelModel):
    username: str = Field(min_length=1, max_length=100, pattern=r"^[\w.-]+$")
    bio: str | None = None
    image: str | None = Field(None, max_length=500)


class PersonUpdate(CamelModel):
    bio: str | None = None
    image: str | None = Field(None, max_length=500)


class PersonResponse(CamelModel):
    username: str
    bio: str | None = None
    image: str | None = None
    model_config = ConfigDict(from_attributes=True)


class PersonEnvelope(CamelModel):
    user: PersonResponse


class PersonCreateRequest(CamelModel):
    user: PersonCreate


class PersonUpdateRequest(CamelModel):
    user: PersonUpdate


# --- Article ---

def _clean_tags(tags: list[str] | None) -> list[str] | None:
    """Strip tag names, drop blanks and collapse duplicates, keeping first-seen order."""
    if tags is None:
        return None
    seen: dict[str, None] = {}
    for tag in tags:
        name = tag.strip()
        if name:
            seen.setdefault(name, None)
    return list(seen)


class ArticleCreate(CamelModel):
    title: str = Field(min_length=1, max_length=300)
    description: str = Field(min_length=1, max_length=500)
    body: str = Field(min_length=1)
    tag_list: list[str] = []

    @field_validator("tag_list")
    @classmethod
    def _normalise_tags(cls, value: list[str]) -> list[str]:
        return _clean_tags(value)


class ArticleUpdate(CamelModel):
    title: str | None = Field(None, min_length=1, max_length=300)
    description: str | None = Field(None, min_length=1, max_length=500)
    body: str | None = Field(None, min_length=1)
    tag_list: list[str] | None = None

    @field_validator("tag_list")
    @classmethod
    def _normalise_tags(cls, value: list[str] | None) -> list[str] | None:
        return _clean_tags(value)


class ArticleCreateRequest(CamelModel):
    article: ArticleCreate


class ArticleUpdateRequest(CamelModel):
    article: ArticleUpdate


class ArticleListQuery(CamelModel):
    tag: str | None = None
    author: str | None = None
    favorited: str | None = None
    limit: int = Field(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE)
    offset: int = Field(0, ge=0)


class FeedQuery(CamelModel):
    limit: int = Field(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE)
    offset: int = Field(0, ge=0)


class ArticleResponse(CamelModel):
    slug: str
    title: str
    description: str
    body: str
    tag_list: list[str] = []
    created_at: datetime
    updated_at: datetime
    favorited: bool = False
    favorites_count: int = 0
    author: Profile


class ArticleEnvelope(CamelModel):
    article: ArticleResponse


class ArticlesEnvelope(CamelModel):
    articles: list[ArticleResponse] = []
    articles_count: int = 0


# --- Comment ---

class CommentCreate(CamelModel):
    body: str = Field(min_length=1)


class CommentCreateRequest(CamelModel):
    comment: CommentCreate


class CommentResponse(CamelModel):
    id: int
    created_at: datetime
    updated_at: datetime
    body: str
    author: Profile


class CommentEnvelope(CamelModel):
    comment: CommentResponse


class CommentsEnvelope(CamelModel):
    comments: list[CommentResponse] = []


# --- Tag ---

class TagsEnvelope(CamelModel):
    tags: list[str] = []
