from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from printshop.core.config import settings
from printshop.models.base import Base


def _connect_args(url: str) -> dict:
    # SQLite connections are shared with the FastAPI thread pool
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,
    connect_args=_connect_args(settings.database_url),
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    # Create tables in dev/test without running Alembic
    if settings.env in {"dev", "test"}:
        import printshop.models  # noqa: F401  (registers every table on Base)

        Base.metadata.create_all(bind=engine)
