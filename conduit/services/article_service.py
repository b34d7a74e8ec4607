"""
Article service: business logic for the Article aggregate.

Design notes
------------
- Relationships are declared ``lazy="raise"``; every read states the
  relations it needs through ``article_load_options()`` and the
  viewer-relative data (favorite counts, "favorited", "following") is
  fetched with one batched query each in ``build_articles``.
- Slugs derive from the title.  On collision the first free numeric
  suffix is taken (``my-title``, ``my-title-2``, ...).  New articles are
  inserted inside a SAVEPOINT so that a slug taken by a concurrent request
  between the check and the insert is retried instead of failing.
- Tag associations are written explicitly against ``article_tags`` rather
  than through the ORM collection, so no backref bookkeeping touches the
  Tag rows.  Each link stores its index in the tagList, which is the
  order tags are reported in.
- Service functions flush but do not commit; the transaction boundary
  is owned by ``get_db`` / ``unit_of_work``.
"""
import logging
import re

from sqlalchemy import delete as sql_delete
from sqlalchemy import desc, func, insert, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from conduit.config import settings
from conduit.exceptions import ForbiddenError
from conduit.models import (
    Article,
    ArticleFavorite,
    Comment,
    FollowedPerson,
    Person,
    Tag,
    article_tags,
    utcnow,
)
from conduit.schemas import (
    ArticleCreate,
    ArticleEnvelope,
    ArticleListQuery,
    ArticleResponse,
    ArticlesEnvelope,
    ArticleUpdate,
    FeedQuery,
)
from conduit.services.profile_service import followed_ids, to_profile
from conduit.store import (
    article_load_options,
    find_person,
    insert_if_absent,
    require_article,
    require_person,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Slugs
# ---------------------------------------------------------------------------

_SLUG_STRIP_RE = re.compile(r"[^\w\s-]")
_SLUG_SPACE_RE = re.compile(r"[\s_]+")
_SLUG_DASH_RE = re.compile(r"-+")

_FALLBACK_SLUG = "article"


def slugify(text: str) -> str:
    """Return a URL-safe, lowercase slug derived from *text*."""
    text = _SLUG_STRIP_RE.sub("", text.lower().strip())
    text = _SLUG_SPACE_RE.sub("-", text)
    return _SLUG_DASH_RE.sub("-", text).strip("-")


async def _next_free_slug(db: AsyncSession, base: str, exclude_id: int | None = None) -> str:
    """
    Return *base* if unused, otherwise ``base-N`` for the smallest free N >= 2.

    *exclude_id* lets an article keep its own slug when its title is edited
    to something that slugifies the same way.
    """
    q = select(Article.slug).where(
        or_(Article.slug == base, Article.slug.like(f"{base}-%"))
    )
    if exclude_id is not None:
        q = q.where(Article.id != exclude_id)
    taken = set((await db.execute(q)).scalars().all())
    if base not in taken:
        return base
    n = 2
    while f"{base}-{n}" in taken:
        n += 1
    return f"{base}-{n}"


async def _insert_with_unique_slug(db: AsyncSession, title: str, **fields) -> Article:
    base = slugify(title) or _FALLBACK_SLUG
    last_error: IntegrityError | None = None
    for _ in range(settings.SLUG_MAX_ATTEMPTS):
        slug = await _next_free_slug(db, base)
        article = Article(slug=slug, title=title, **fields)
        try:
            async with db.begin_nested():
                db.add(article)
                await db.flush()
            return article
        except IntegrityError as exc:
            logger.debug("Slug %r taken concurrently, retrying", slug)
            last_error = exc
    raise last_error


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------

async def _resolve_tags(db: AsyncSession, tag_names: list[str]) -> list[Tag]:
    """
    Return Tag rows for *tag_names* in the order given, creating missing ones.
    """
    names = list(dict.fromkeys(tag_names))
    if not names:
        return []
    existing = await db.execute(select(Tag.name).where(Tag.name.in_(names)))
    for name in set(names) - set(existing.scalars().all()):
        await insert_if_absent(db, Tag, name=name)
    result = await db.execute(select(Tag).where(Tag.name.in_(names)))
    by_name = {tag.name: tag for tag in result.scalars().all()}
    return [by_name[name] for name in names]


async def _set_tags(db: AsyncSession, article: Article, tags: list[Tag], replace: bool) -> None:
    if replace:
        await db.execute(sql_delete(article_tags).where(article_tags.c.article_id == article.id))
    if tags:
        await db.execute(
            insert(article_tags),
            [
                {"article_id": article.id, "tag_id": tag.id, "position": position}
                for position, tag in enumerate(tags)
            ],
        )
    set_committed_value(article, "tags", list(tags))


# ---------------------------------------------------------------------------
# Envelope building
# ---------------------------------------------------------------------------

async def _favorite_counts(db: AsyncSession, article_ids: list[int]) -> dict[int, int]:
    q = (
        select(ArticleFavorite.article_id, func.count())
        .where(ArticleFavorite.article_id.in_(article_ids))
        .group_by(ArticleFavorite.article_id)
    )
    return {article_id: count for article_id, count in (await db.execute(q)).all()}


async def _favorited_ids(
    db: AsyncSession, viewer: Person | None, article_ids: list[int]
) -> set[int]:
    if viewer is None:
        return set()
    q = select(ArticleFavorite.article_id).where(
        ArticleFavorite.person_id == viewer.id,
        ArticleFavorite.article_id.in_(article_ids),
    )
    return set((await db.execute(q)).scalars().all())


async def build_articles(
    db: AsyncSession, articles: list[Article], viewer: Person | None
) -> list[ArticleResponse]:
    """
    Render *articles* (author and tags already loaded) relative to *viewer*.
    """
    if not articles:
        return []
    ids = [a.id for a in articles]
    counts = await _favorite_counts(db, ids)
    favorited = await _favorited_ids(db, viewer, ids)
    following = await followed_ids(db, viewer, {a.author_id for a in articles})
    return [
        ArticleResponse(
            slug=a.slug,
            title=a.title,
            description=a.description,
            body=a.body,
            tag_list=[t.name for t in a.tags],
            created_at=a.created_at,
            updated_at=a.updated_at,
            favorited=a.id in favorited,
            favorites_count=counts.get(a.id, 0),
            author=to_profile(a.author, a.author_id in following),
        )
        for a in articles
    ]


async def article_envelope(
    db: AsyncSession, article: Article, viewer: Person | None
) -> ArticleEnvelope:
    (response,) = await build_articles(db, [article], viewer)
    return ArticleEnvelope(article=response)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

async def _page(
    db: AsyncSession,
    conditions: list,
    limit: int,
    offset: int,
    viewer: Person | None,
) -> ArticlesEnvelope:
    """COUNT the matches, then fetch one page newest first."""
    count_q = select(func.count()).select_from(Article).where(*conditions)
    total: int = (await db.execute(count_q)).scalar_one()

    articles_q = (
        select(Article)
        .where(*conditions)
        .options(*article_load_options())
        .order_by(desc(Article.created_at), desc(Article.id))
        .offset(offset)
        .limit(limit)
    )
    result = await db.execute(articles_q)
    articles = list(result.unique().scalars().all())

    return ArticlesEnvelope(
        articles=await build_articles(db, articles, viewer),
        articles_count=total,
    )


async def list_articles(
    db: AsyncSession, query: ArticleListQuery, viewer: str | None = None
) -> ArticlesEnvelope:
    """
    Return one page of articles matching every filter given in *query*.

    A filter naming a tag or person that does not exist simply matches
    nothing.
    """
    conditions = []
    if query.tag:
        conditions.append(
            Article.id.in_(
                select(article_tags.c.article_id)
                .join(Tag, Tag.id == article_tags.c.tag_id)
                .where(Tag.name == query.tag)
            )
        )
    if query.author:
        conditions.append(
            Article.author_id.in_(select(Person.id).where(Person.username == query.author))
        )
    if query.favorited:
        conditions.append(
            Article.id.in_(
                select(ArticleFavorite.article_id)
                .join(Person, Person.id == ArticleFavorite.person_id)
                .where(Person.username == query.favorited)
            )
        )

    viewer_person = await find_person(db, viewer)
    return await _page(db, conditions, query.limit, query.offset, viewer_person)


async def feed(db: AsyncSession, query: FeedQuery, viewer: str) -> ArticlesEnvelope:
    """Articles written by people *viewer* follows, newest first."""
    viewer_person = await require_person(db, viewer)
    conditions = [
        Article.author_id.in_(
            select(FollowedPerson.target_id).where(FollowedPerson.observer_id == viewer_person.id)
        )
    ]
    return await _page(db, conditions, query.limit, query.offset, viewer_person)


async def get_article(db: AsyncSession, slug: str, viewer: str | None = None) -> ArticleEnvelope:
    article = await require_article(db, slug, *article_load_options())
    return await article_envelope(db, article, await find_person(db, viewer))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

async def create_article(
    db: AsyncSession, data: ArticleCreate, author: str
) -> ArticleEnvelope:
    person = await require_person(db, author)
    tags = await _resolve_tags(db, data.tag_list)

    article = await _insert_with_unique_slug(
        db,
        data.title,
        description=data.description,
        body=data.body,
        author_id=person.id,
    )
    await _set_tags(db, article, tags, replace=False)
    set_committed_value(article, "author", person)

    logger.info("Article %r created by %s", article.slug, person.username)
    return await article_envelope(db, article, person)


async def update_article(
    db: AsyncSession, slug: str, data: ArticleUpdate, author: str
) -> ArticleEnvelope:
    """
    Apply the fields set in *data* to the article at *slug*.

    Only the author may edit.  Changing the title regenerates the slug.
    """
    article = await require_article(db, slug, *article_load_options())
    person = await require_person(db, author)
    if article.author_id != person.id:
        raise ForbiddenError("Article", slug)

    update_data = data.model_dump(exclude_unset=True)
    tag_names: list[str] | None = update_data.pop("tag_list", None)

    for field, value in update_data.items():
        if value is not None:
            setattr(article, field, value)

    if update_data.get("title"):
        base = slugify(article.title) or _FALLBACK_SLUG
        article.slug = await _next_free_slug(db, base, exclude_id=article.id)

    article.updated_at = utcnow()
    await db.flush()

    if tag_names is not None:
        await _set_tags(db, article, await _resolve_tags(db, tag_names), replace=True)

    return await article_envelope(db, article, person)


async def delete_article(db: AsyncSession, slug: str, author: str) -> None:
    """
    Delete the article at *slug* with its comments, favorites and tag links.
    """
    article = await require_article(db, slug)
    person = await require_person(db, author)
    if article.author_id != person.id:
        raise ForbiddenError("Article", slug)

    await db.execute(sql_delete(Comment).where(Comment.article_id == article.id))
    await db.execute(sql_delete(ArticleFavorite).where(ArticleFavorite.article_id == article.id))
    await db.execute(sql_delete(article_tags).where(article_tags.c.article_id == article.id))
    await db.execute(sql_delete(Article).where(Article.id == article.id))
    await db.flush()
    logger.info("Article %r deleted by %s", slug, person.username)
