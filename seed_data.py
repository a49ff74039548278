from datetime import datetime
from sqlmodel import Session, select
from app.db.session import engine, create_db_and_tables
from app.core.security import get_password_hash
from app.models.user import User, UserRole
from app.models.post import Post, PostBlock, PostCategory, PostStatus, BlockType

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "ChangeMe123!"

def seed():
    print("Creating database and tables...")
    create_db_and_tables()

    with Session(engine) as session:
        admin = session.exec(select(User).where(User.email == ADMIN_EMAIL)).first()
        if admin:
            print(f"Admin {ADMIN_EMAIL} already exists. Skipping seed.")
            return

        print("Seeding admin and welcome post...")
        admin = User(
            email=ADMIN_EMAIL,
            username="admin",
            full_name="Club Admin",
            password_hash=get_password_hash(ADMIN_PASSWORD),
            role=UserRole.ADMIN
        )
        session.add(admin)
        session.flush()

        post = Post(
            slug="welcome-to-the-club",
            title="Welcome to the club",
            summary="What we do and how to get involved.",
            category=PostCategory.NEWS,
            status=PostStatus.PUBLISHED,
            author_id=admin.id,
            reading_time=2,
            published_at=datetime.utcnow()
        )
        session.add(post)
        session.flush()

        blocks = [
            PostBlock(post_id=post.id, type=BlockType.TEXT, order_index=0, content={
                "html": "<p>We build things together every week.</p>",
                "word_count": 6
            }),
            PostBlock(post_id=post.id, type=BlockType.QUOTE, order_index=1, content={
                "quote": "Ship small, ship often.",
                "author": "The organisers"
            }),
            PostBlock(post_id=post.id, type=BlockType.TEXT, order_index=2, content={
                "html": "<p>Sign up and say hello in the next meetup.</p>",
                "word_count": 9
            }),
        ]
        for block in blocks:
            session.add(block)

        session.commit()
        print(f"Seeded admin {ADMIN_EMAIL} and post '{post.slug}' with {len(blocks)} blocks!")

if __name__ == "__main__":
    seed()
