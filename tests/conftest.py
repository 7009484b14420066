"""
Pytest configuration and shared fixtures.

Every test gets its own SQLite database file, created from the model
metadata.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from trustledger.config.database import build_engine, build_session_maker, init_db
from trustledger.config.settings import Settings
from trustledger.models import User
from trustledger.repositories import (
    CommissionRepository,
    FeeEventRepository,
    PayoutRepository,
    TransactionRepository,
    UserRepository,
)
from trustledger.services import (
    CommissionService,
    ExportService,
    IdentityService,
    LedgerCore,
    LedgerService,
    ReconciliationService,
    ReferralService,
    TransactionService,
)

# ==================== PYTEST CONFIGURATION ====================


def pytest_configure(config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "e2e: marks end-to-end tests")


# ==================== DATABASE FIXTURES ====================


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Default settings, isolated from .env and the environment."""
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        environment="test",
        debug=False,
        log_level="DEBUG",
        log_file=None,
    )


@pytest_asyncio.fixture
async def async_engine(
    test_settings: Settings,  # pylint: disable=redefined-outer-name
) -> AsyncGenerator[AsyncEngine, None]:
    """Create engine on a fresh database with all tables."""
    engine = build_engine(test_settings.database_url)
    await init_db(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(
    async_engine: AsyncEngine,  # pylint: disable=redefined-outer-name
) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return build_session_maker(async_engine)


@pytest_asyncio.fixture
async def db_session(
    session_maker: async_sessionmaker[AsyncSession],  # pylint: disable=redefined-outer-name
) -> AsyncGenerator[AsyncSession, None]:
    """
    Create database session for tests.

    Yields:
        AsyncSession: Database session
    """
    async with session_maker() as session:
        yield session
        await session.rollback()


# ==================== REPOSITORY FIXTURES ====================


@pytest.fixture
def user_repository(
    db_session: AsyncSession,  # pylint: disable=redefined-outer-name
) -> UserRepository:
    """User repository instance."""
    return UserRepository(db_session)


@pytest.fixture
def transaction_repository(
    db_session: AsyncSession,  # pylint: disable=redefined-outer-name
) -> TransactionRepository:
    """Transaction repository instance."""
    return TransactionRepository(db_session)


@pytest.fixture
def commission_repository(
    db_session: AsyncSession,  # pylint: disable=redefined-outer-name
) -> CommissionRepository:
    """Commission repository instance."""
    return CommissionRepository(db_session)


@pytest.fixture
def payout_repository(
    db_session: AsyncSession,  # pylint: disable=redefined-outer-name
) -> PayoutRepository:
    """Payout repository instance."""
    return PayoutRepository(db_session)


@pytest.fixture
def fee_event_repository(
    db_session: AsyncSession,  # pylint: disable=redefined-outer-name
) -> FeeEventRepository:
    """Fee event repository instance."""
    return FeeEventRepository(db_session)


# ==================== SERVICE FIXTURES ====================


@pytest.fixture
def identity_service(
    db_session: AsyncSession,  # pylint: disable=redefined-outer-name
    test_settings: Settings,  # pylint: disable=redefined-outer-name
) -> IdentityService:
    """Identity service instance."""
    return IdentityService(db_session, test_settings)


@pytest.fixture
def referral_service(
    db_session: AsyncSession,  # pylint: disable=redefined-outer-name
    test_settings: Settings,  # pylint: disable=redefined-outer-name
) -> ReferralService:
    """Referral service instance."""
    return ReferralService(db_session, test_settings)


@pytest.fixture
def transaction_service(
    db_session: AsyncSession,  # pylint: disable=redefined-outer-name
    test_settings: Settings,  # pylint: disable=redefined-outer-name
) -> TransactionService:
    """Transaction service instance."""
    return TransactionService(db_session, test_settings)


@pytest.fixture
def ledger_service(
    db_session: AsyncSession,  # pylint: disable=redefined-outer-name
) -> LedgerService:
    """Ledger service instance."""
    return LedgerService(db_session)


@pytest.fixture
def commission_service(
    db_session: AsyncSession,  # pylint: disable=redefined-outer-name
    test_settings: Settings,  # pylint: disable=redefined-outer-name
) -> CommissionService:
    """Commission service instance."""
    return CommissionService(db_session, test_settings)


@pytest.fixture
def reconciliation_service(
    db_session: AsyncSession,  # pylint: disable=redefined-outer-name
) -> ReconciliationService:
    """Reconciliation service instance."""
    return ReconciliationService(db_session)


@pytest.fixture
def export_service(
    db_session: AsyncSession,  # pylint: disable=redefined-outer-name
) -> ExportService:
    """Export service instance."""
    return ExportService(db_session)


@pytest.fixture
def core(
    db_session: AsyncSession,  # pylint: disable=redefined-outer-name
    test_settings: Settings,  # pylint: disable=redefined-outer-name
) -> LedgerCore:
    """All services around the test session."""
    return LedgerCore.from_session(db_session, test_settings)


# ==================== HELPER FIXTURES ====================


@pytest.fixture
def create_user_helper(
    identity_service: IdentityService,  # pylint: disable=redefined-outer-name
) -> Callable[..., Awaitable[User]]:
    """
    Factory for registered users.

    Returns:
        Async function (phone, full_name=..., email=None, referrer=None)
    """

    async def _create_user(
        phone: str,
        full_name: str = "Test User",
        email: str | None = None,
        referrer: User | None = None,
    ) -> User:
        return await identity_service.create_user(
            phone=phone,
            full_name=full_name,
            email=email,
            referrer_code=referrer.referral_code if referrer else None,
        )

    return _create_user


@pytest_asyncio.fixture
async def test_referral_chain(
    create_user_helper: Callable[..., Awaitable[User]],  # pylint: disable=redefined-outer-name
) -> list[User]:
    """
    Create referral chain: root <- a1 <- a2 <- a3 <- a4 <- a5.

    Returns:
        list: [root, a1, a2, a3, a4, a5]
    """
    root = await create_user_helper("9100000000", full_name="Root")
    chain = [root]
    for i in range(1, 6):
        chain.append(
            await create_user_helper(
                f"910000000{i}", full_name=f"A{i}", referrer=chain[-1]
            )
        )
    return chain


@pytest_asyncio.fixture
async def alice_and_bob(
    create_user_helper: Callable[..., Awaitable[User]],  # pylint: disable=redefined-outer-name
) -> tuple[User, User]:
    """Two unrelated users."""
    alice = await create_user_helper("9000000001", full_name="Alice")
    bob = await create_user_helper("9000000002", full_name="Bob")
    return alice, bob
