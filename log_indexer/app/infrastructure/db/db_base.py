from __future__ import annotations

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase


INDEXER_SCHEMA = "indexer"


class BaseDB(DeclarativeBase):
    """Declarative base shared by all indexer tables."""

    metadata = MetaData(schema=INDEXER_SCHEMA)
