from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from .config import settings


class Base(DeclarativeBase):
    pass


# Normalize DATABASE_URL for SQLAlchemy if needed
def _normalize_database_url(url: str) -> str:
    if url.startswith("postgres://"):
        # Convert deprecated postgres:// to postgresql+psycopg2://
        return url.replace("postgres://", "postgresql+psycopg2://", 1)
    if url.startswith("postgresql://"):
        # Prefer explicit driver
        return url.replace("postgresql://", "postgresql+psycopg2://", 1)
    if url.startswith("postgresql+psycopg://"):
        # Map psycopg v3 DSN to psycopg2 since psycopg2-binary is installed
        return url.replace("postgresql+psycopg://", "postgresql+psycopg2://", 1)
    return url


def _connect_args(url: str) -> dict:
    # FastAPI runs sync handlers in a threadpool
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


DATABASE_URL = _normalize_database_url(settings.database_url)

engine = create_engine(DATABASE_URL, pool_pre_ping=True, connect_args=_connect_args(DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
