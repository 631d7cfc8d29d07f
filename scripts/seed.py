"""Database seeder: users, follows, tags, articles and favorites."""
import argparse
import asyncio
import random
import time
from datetime import datetime, timedelta, timezone

from sqlalchemy import insert, select

from blog_api.database import async_session, engine, metadata
from blog_api.models import article_tags, articles, favorites, follows, tags, users
from blog_api.security import hash_password

TAGS = ["python", "fastapi", "postgresql", "redis", "docker", "kubernetes",
        "react", "typescript", "aws", "devops", "testing", "performance",
        "security", "microservices", "graphql", "rest-api"]

PASSWORD = "password123"


async def seed(small: bool = False):
    num_users = 10 if small else 50
    num_articles = 100 if small else 10000
    follows_per_user = 3 if small else 10
    favorites_per_user = 10 if small else 200

    print(f"Seeding: {num_users} users, {num_articles} articles")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
        await conn.run_sync(metadata.create_all)

    async with async_session() as session:
        await session.execute(insert(tags), [{"name": name} for name in TAGS])
        tag_ids = list((await session.scalars(select(tags.c.id))).all())
        print(f"  Created {len(tag_ids)} tags")

        # One hash for everyone; pbkdf2 per user makes seeding slow.
        password = hash_password(PASSWORD)
        await session.execute(
            insert(users),
            [
                {"username": f"user_{i:04d}", "email": f"user_{i:04d}@example.com", "password": password}
                for i in range(num_users)
            ],
        )
        user_ids = list((await session.scalars(select(users.c.id))).all())
        print(f"  Created {len(user_ids)} users (password: {PASSWORD})")

        follow_rows = []
        for follower in user_ids:
            others = [u for u in user_ids if u != follower]
            for following in random.sample(others, k=min(follows_per_user, len(others))):
                follow_rows.append({"follower_id": follower, "following_id": following})
        await session.execute(insert(follows), follow_rows)
        print(f"  Created {len(follow_rows)} follows")

        batch_size = 500
        now = datetime.now(timezone.utc)
        for batch_start in range(0, num_articles, batch_size):
            batch_end = min(batch_start + batch_size, num_articles)
            await session.execute(
                insert(articles),
                [
                    {
                        "slug": f"article-{i}-{random.choice(TAGS)}",
                        "title": f"Article {i}: How to optimize {random.choice(TAGS)} applications",
                        "body": f"This is the full content of article {i}. " * 20,
                        "author_id": random.choice(user_ids),
                        "created_at": now - timedelta(minutes=random.randint(0, 525600)),
                    }
                    for i in range(batch_start, batch_end)
                ],
            )
            print(f"  Batch {batch_start}-{batch_end}: articles created")

        article_ids = list((await session.scalars(select(articles.c.id))).all())
        await session.execute(
            insert(article_tags),
            [
                {"article_id": article_id, "tag_id": tag_id}
                for article_id in article_ids
                for tag_id in random.sample(tag_ids, k=random.randint(0, 4))
            ],
        )

        favorite_rows = [
            {"user_id": user_id, "article_id": article_id}
            for user_id in user_ids
            for article_id in random.sample(article_ids, k=min(favorites_per_user, len(article_ids)))
        ]
        await session.execute(insert(favorites), favorite_rows)
        print(f"  Created {len(favorite_rows)} favorites")

        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")


def main():
    parser = argparse.ArgumentParser(description="Seed the blog database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (100 articles)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
