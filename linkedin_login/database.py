from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from linkedin_login.config import settings

engine = create_engine(
    settings.database_url,
    connect_args={"check_same_thread": False} if settings.database_url.startswith("sqlite") else {},
    echo=settings.debug,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


def get_db():
    """FastAPI dependency that yields a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """Create all tables. Called at startup."""
    import linkedin_login.models  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)
