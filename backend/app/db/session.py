from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app import config
from app.db.models import Base


def make_session_factory(database_url: Optional[str] = None) -> sessionmaker:
    url = database_url or config.DATABASE_URL
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    engine = create_engine(url, connect_args=connect_args)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
