from sqlmodel import SQLModel, create_engine
from app.core.config import settings

# SQLite needs this for the threadpool FastAPI runs sync handlers in
connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args)


def init_db(bind=None) -> None:
    """Create all tables registered on the SQLModel metadata"""
    import app.models  # noqa: F401  registers the tables

    SQLModel.metadata.create_all(bind or engine)
