from sqlalchemy import Column, String, Text, TIMESTAMP, func
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class KeyValueBlob(Base):
    """One serialized state blob (question bank, attempt records, settings) per key."""
    __tablename__ = "kv_blobs"
    key        = Column(String, primary_key=True)     # e.g. "ge_questions"
    value      = Column(Text, nullable=False)          # JSON document
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())
