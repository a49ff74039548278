import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from app.core.security import create_access_token
from app.db.session import get_session
from app.main import app
from app.models.post import Post, PostBlock, PostStatus, BlockType
from app.models.user import User, UserRole
from app.services.ownership import ownership_cache


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(engine):
    def get_session_override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def clear_ownership_cache():
    ownership_cache.clear()
    yield
    ownership_cache.clear()


@pytest.fixture(name="make_user")
def make_user_fixture(session):
    def make_user(username: str, role: UserRole = UserRole.MEMBER, **fields) -> User:
        user = User(
            email=f"{username}@example.com",
            username=username,
            password_hash="not-a-real-hash",
            role=role,
            **fields,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user
    return make_user


@pytest.fixture(name="author")
def author_fixture(make_user):
    return make_user("author")


@pytest.fixture(name="stranger")
def stranger_fixture(make_user):
    return make_user("stranger")


@pytest.fixture(name="admin")
def admin_fixture(make_user):
    return make_user("admin", role=UserRole.ADMIN)


@pytest.fixture(name="make_post")
def make_post_fixture(session):
    counter = {"n": 0}

    def make_post(author: User, status: PostStatus = PostStatus.DRAFT, **fields) -> Post:
        counter["n"] += 1
        post = Post(
            slug=fields.pop("slug", f"post-{counter['n']}"),
            title=fields.pop("title", f"Post {counter['n']}"),
            author_id=author.id,
            status=status,
            **fields,
        )
        session.add(post)
        session.commit()
        session.refresh(post)
        return post
    return make_post


@pytest.fixture(name="post")
def post_fixture(make_post, author):
    return make_post(author)


@pytest.fixture(name="add_blocks")
def add_blocks_fixture(session):
    """Insert blocks directly, bypassing the composer rules."""
    def add_blocks(post: Post, *types: BlockType) -> None:
        for index, block_type in enumerate(types):
            content = {
                BlockType.TEXT: {"html": "<p>x</p>", "word_count": 1},
                BlockType.QUOTE: {"quote": "q"},
                BlockType.IMAGE: {"image_id": f"img-{index}"},
                BlockType.YOUTUBE: {"youtube_url": "https://youtu.be/abc", "video_id": "abc"},
            }[block_type]
            session.add(PostBlock(post_id=post.id, type=block_type, content=content, order_index=index))
        session.commit()
    return add_blocks


@pytest.fixture(name="auth_headers")
def auth_headers_fixture():
    def auth_headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token({'sub': user.email})}"}
    return auth_headers
