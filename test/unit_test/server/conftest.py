from typing import AsyncGenerator, Awaitable, Callable, Dict, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel.pool import StaticPool

from promptatrium.core.database.entities import MarketplaceListing, Prompt, SellerProfile, User

# Use in-memory SQLite for testing
# Note: We use check_same_thread=False for SQLite with async
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

UserFactory = Callable[..., Awaitable[User]]
ListingFactory = Callable[..., Awaitable[MarketplaceListing]]


@pytest_asyncio.fixture
async def test_engine():
    """Create a fresh in-memory database for each test."""
    from promptatrium.core.database import Base

    # Import entities to register them with the metadata
    import promptatrium.core.database.entities  # noqa: F401

    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, expire_on_commit=False)


@pytest_asyncio.fixture(name="session")
async def session_fixture(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a new session for each test."""
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    from promptatrium.server.services.rate_limit import rate_limiter

    rate_limiter.reset()
    yield
    rate_limiter.reset()


@pytest.fixture
def make_user(session: AsyncSession) -> UserFactory:
    """Factory fixture persisting users with an optional platform role."""
    counter = {"n": 0}

    async def _make(role: str = "user", username: Optional[str] = None, **fields) -> User:
        counter["n"] += 1
        user = User(
            username=username or f"user{counter['n']}",
            email=f"user{counter['n']}@example.com",
            role=role,
            **fields,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user

    return _make


@pytest.fixture
def headers_for() -> Callable[[User], Dict[str, str]]:
    from promptatrium.server.core.constant import USER_ID_HEADER

    def _headers(user: User) -> Dict[str, str]:
        return {USER_ID_HEADER: user.id}

    return _headers


@pytest_asyncio.fixture(name="client")
async def client_fixture(session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client bound to the test session.

    ASGITransport does not send lifespan events, so the app starts without
    touching the configured database or the payout scheduler.
    """
    from promptatrium.core.database import get_session
    from promptatrium.server.main import app

    async def get_session_override() -> AsyncGenerator[AsyncSession, None]:
        yield session

    app.dependency_overrides[get_session] = get_session_override

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def make_listing(session: AsyncSession, make_user: UserFactory) -> ListingFactory:
    """Factory fixture for an active listing owned by an onboarded seller.

    The seller is created (or reused) with a completed PayPal seller profile,
    and the listed prompt belongs to them.
    """
    from promptatrium.core.database.repositories import SellerProfileRepository

    async def _make(
        seller: Optional[User] = None,
        price_cents: Optional[int] = 1000,
        credit_price: Optional[int] = 100,
        status: str = "active",
        **profile_fields,
    ) -> MarketplaceListing:
        seller = seller or await make_user()
        if await SellerProfileRepository(session).get_by_user(seller.id) is None:
            session.add(
                SellerProfile(
                    user_id=seller.id,
                    onboarding_status="completed",
                    payout_method=profile_fields.pop("payout_method", "paypal"),
                    paypal_email=profile_fields.pop("paypal_email", f"{seller.username}@paypal.example.com"),
                    **profile_fields,
                )
            )
        prompt = Prompt(
            name="Neon alley",
            prompt_content="a neon-lit alley in the rain, cinematic lighting, reflections on wet asphalt",
            user_id=seller.id,
        )
        listing = MarketplaceListing(
            prompt_id=prompt.id,
            seller_id=seller.id,
            title="Neon alley prompt",
            price_cents=price_cents,
            credit_price=credit_price,
            status=status,
        )
        session.add(prompt)
        session.add(listing)
        await session.commit()
        await session.refresh(listing)
        return listing

    return _make
