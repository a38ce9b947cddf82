import os
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from roomreserve import config


connect_args = {"check_same_thread": False} if config.DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(config.DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_database(bind=None):
    """Create the sqlite data directory if needed and all tables."""
    bind = bind or engine
    database = bind.url.database
    if bind.url.get_backend_name() == "sqlite" and database and database != ":memory:":
        directory = os.path.dirname(database)
        if directory and not os.path.exists(directory):
            os.makedirs(directory)
    # models must be imported so their tables are registered on Base.metadata
    from roomreserve.models import reservation, review, room, user  # noqa: F401
    Base.metadata.create_all(bind=bind)


def get_db():
    """Provide a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
