from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import sessionmaker
from .config import settings

# Create Async Engine
engine = create_async_engine(settings.DATABASE_URL, echo=settings.DB_ECHO, future=True)


def build_session_factory(bind: AsyncEngine = engine) -> sessionmaker:
    """Session factory for code running outside a request (poll tasks)."""
    return sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


async_session_factory = build_session_factory()


async def init_db(bind: AsyncEngine = engine):
    # Import models so they are registered with SQLModel
    from campaign_assist.models import CampaignDraft  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

async def get_session() -> AsyncSession:
    async with async_session_factory() as session:
        yield session
