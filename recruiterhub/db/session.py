from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from recruiterhub.core.config import settings


engine = create_async_engine(settings.database_url, echo=False, pool_pre_ping=True)
SessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


async def create_tables() -> None:
    from recruiterhub.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
