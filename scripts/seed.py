"""Database seeder for local development of the blog content API."""
import asyncio
import argparse
import logging
import random
import time

from app.changeset import Invalid
from app.database import engine, async_session, Base
from app.models import User
from app.services import comment_service, post_service

logger = logging.getLogger("seed")

TOPICS = ["python", "sqlalchemy", "fastapi", "postgresql", "testing",
          "pagination", "asyncio", "pydantic"]


async def seed(small: bool = False):
    num_users = 5 if small else 25
    num_posts = 20 if small else 1000
    max_comments_per_post = 3 if small else 8

    logger.info("Seeding: %d users, %d posts, up to %d comments per post",
                num_users, num_posts, max_comments_per_post)
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    total_comments = 0
    async with async_session() as session:
        users = []
        for i in range(num_users):
            user = User(username=f"user_{i:04d}", email=f"user_{i:04d}@example.com")
            session.add(user)
            users.append(user)
        await session.flush()

        for i in range(num_posts):
            topic = random.choice(TOPICS)
            result = await post_service.create_post(session, {
                "title": f"Post {i}: notes on {topic}",
                "body": f"This is the body of post {i}, mostly about {topic}. " * 10,
                "user_id": random.choice(users).id,
            })
            if isinstance(result, Invalid):
                raise SystemExit(f"post {i} rejected: {result.errors}")

            for _ in range(random.randint(0, max_comments_per_post)):
                await comment_service.create_comment(session, {
                    "body": f"Comment on {topic} by {random.choice(users).username}.",
                    "post_id": result.value.id,
                    "user_id": random.choice(users).id,
                })
                total_comments += 1

        await session.commit()

    elapsed = time.perf_counter() - start
    logger.info("Seeding complete in %.1fs: %d users, %d posts, %d comments",
                elapsed, num_users, num_posts, total_comments)


def main():
    parser = argparse.ArgumentParser(description="Seed the blog database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (20 posts)")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
