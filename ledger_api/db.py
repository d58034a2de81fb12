from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from ledger_api.settings import get_settings

DATABASE_URL = get_settings()["database_url"]

connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(DATABASE_URL, connect_args=connect_args, future=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)

Base = declarative_base()


def get_db():
    from sqlalchemy.orm import Session

    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    from ledger_api import db_models  # noqa: F401

    Base.metadata.create_all(bind=engine)
