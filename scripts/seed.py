"""Seed a development database through the service layer."""
import argparse
import asyncio
import logging
import random
import time

from conduit.database import Base, engine, unit_of_work
from conduit.schemas import ArticleCreate, CommentCreate, PersonCreate
from conduit.services import (
    article_service,
    comment_service,
    favorite_service,
    follower_service,
    person_service,
)

logger = logging.getLogger("seed")

TAGS = ["python", "fastapi", "postgresql", "docker", "kubernetes",
        "react", "typescript", "aws", "devops", "testing", "performance",
        "security", "microservices", "graphql", "rest-api"]


async def seed(small: bool = False):
    num_people = 10 if small else 50
    num_articles = 100 if small else 2000
    max_comments = 2 if small else 5
    max_follows = 3 if small else 10

    logger.info("Seeding %d people, %d articles", num_people, num_articles)
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    usernames = [f"user_{i:04d}" for i in range(num_people)]
    async with unit_of_work() as db:
        for i, username in enumerate(usernames):
            await person_service.register(
                db,
                PersonCreate(username=username, bio=f"I am test user number {i}. I write about technology."),
            )
        for username in usernames:
            others = [u for u in usernames if u != username]
            for target in random.sample(others, k=random.randint(0, max_follows)):
                await follower_service.add(db, target, username)

    # One transaction per batch keeps a failure from discarding the whole run.
    batch_size = 100
    total_comments = 0
    for batch_start in range(0, num_articles, batch_size):
        batch_end = min(batch_start + batch_size, num_articles)
        async with unit_of_work() as db:
            for i in range(batch_start, batch_end):
                topic = random.choice(TAGS)
                created = await article_service.create_article(
                    db,
                    ArticleCreate(
                        title=f"How to optimize {topic} applications",
                        description=f"A guide to optimizing {topic} applications for production.",
                        body=f"This is the full content of article {i}. " * 20,
                        tag_list=random.sample(TAGS, k=random.randint(1, 4)),
                    ),
                    random.choice(usernames),
                )
                slug = created.article.slug

                for fan in random.sample(usernames, k=random.randint(0, 3)):
                    await favorite_service.add(db, slug, fan)
                for _ in range(random.randint(0, max_comments)):
                    commenter = random.choice(usernames)
                    await comment_service.add_comment(
                        db,
                        slug,
                        CommentCreate(body=f"Great article! Very helpful. Comment by {commenter}."),
                        commenter,
                    )
                    total_comments += 1
        logger.info("Batch %d-%d: articles created", batch_start, batch_end)

    elapsed = time.perf_counter() - start
    logger.info(
        "Seeding complete in %.1fs: %d people, %d articles, %d comments",
        elapsed, num_people, num_articles, total_comments,
    )


def main():
    parser = argparse.ArgumentParser(description="Seed the Conduit database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (100 articles)")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
