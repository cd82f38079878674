from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from rollup_api.config import settings

# SQLite needs check_same_thread=False since FastAPI serves sync routes from a threadpool.
connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine = create_engine(settings.database_url, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Yield one database session per request and always close it."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
