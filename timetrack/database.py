# timetrack/database.py
from typing import Any, AsyncGenerator, Dict
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from timetrack.config import settings


def engine_options(url: str) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.SQL_ECHO}
    if url.startswith("postgresql"):
        # Long-lived API workers outlive idle server connections.
        options["pool_pre_ping"] = True
    return options


engine = create_async_engine(settings.effective_database_url, **engine_options(settings.effective_database_url))

# Services keep using loaded rows after commit to build responses.
AsyncSessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)
Base = declarative_base()

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session
