from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from config import DATABASE_URL

# SQLAlchemy engine and session factory
connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    connect_args["check_same_thread"] = False  # sessions are used from the threadpool

engine = create_engine(DATABASE_URL, connect_args=connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db(bind=None) -> None:
    """Create the users and facial_templates tables if they do not exist."""
    # models must be imported so their tables are registered on Base.metadata
    import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def get_db():
    """
    FastAPI dependency that provides a database session and makes
    sure it is closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
