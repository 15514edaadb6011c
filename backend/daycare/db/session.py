import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from daycare.settings import get_settings

settings = get_settings()

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.APP_DEBUG,
    pool_pre_ping=True,
    pool_size=10,
    max_overflow=20,
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,
    autoflush=False,
)

# Read by app_current_org() in rls/init_rls.sql
RLS_SETTINGS = {
    "organization_id": "app.organization_id",
    "user_id": "app.user_id",
}

# set_config(..., true) is transaction-local, the bound-parameter form of SET LOCAL
_SET_CONFIG = text("SELECT set_config(:name, :value, true)")


async def set_rls_context(
    session: AsyncSession,
    organization_id: uuid.UUID | None,
    user_id: uuid.UUID | None,
) -> None:
    """Scope the current transaction to one organization for the RLS policies."""
    values = {"organization_id": organization_id, "user_id": user_id}
    for key, name in RLS_SETTINGS.items():
        value = values[key]
        await session.execute(_SET_CONFIG, {"name": name, "value": str(value) if value else ""})


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        async with session.begin():
            yield session


@asynccontextmanager
async def organization_session(
    organization_id: uuid.UUID,
    user_id: uuid.UUID | None = None,
) -> AsyncGenerator[AsyncSession, None]:
    """One transaction already scoped to ``organization_id``, for scripts outside a request."""
    async with get_session() as session:
        await set_rls_context(session, organization_id, user_id)
        yield session
