"""
Database tables and session management for the Hot Issue Tagger.

Two tables are owned by this package:
- ``tags``: the flat taxonomy, unique by name (enforced in application logic)
- ``tickets_tags``: ticket/tag links with a confidence score

Neither table declares a uniqueness constraint on ``name`` or on
``(ticket_id, tag_id)``; duplicates are avoided with read-then-write checks
in the repository. Usage count is derived from the links and never stored.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker, Session

from .config import DatabaseConfig


logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class Tag(Base):
    """A category applied to tickets."""

    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_ai_generated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    def __repr__(self) -> str:
        return f"<Tag {self.id} {self.name!r}>"


class TicketTag(Base):
    """Association of a ticket with a tag."""

    __tablename__ = "tickets_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ticket_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    tag_id: Mapped[int] = mapped_column(
        ForeignKey("tags.id"), nullable=False, index=True
    )
    confidence: Mapped[float] = mapped_column(Float, nullable=False)
    is_ai_generated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )

    def __repr__(self) -> str:
        return f"<TicketTag {self.ticket_id} -> {self.tag_id} ({self.confidence:.2f})>"


def create_db_engine(config: DatabaseConfig) -> Engine:
    """
    Create the SQLAlchemy engine for the configured database.

    Args:
        config: Database configuration.

    Returns:
        Engine bound to ``config.url``.
    """
    url = config.url
    # Use psycopg (v3) for bare postgresql:// URLs
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+psycopg://", 1)

    logger.debug(f"Creating database engine for {url.split('://')[0]}")
    return create_engine(url, echo=config.echo, pool_pre_ping=True)


def create_session_factory(
    config: Optional[DatabaseConfig] = None,
    engine: Optional[Engine] = None,
) -> sessionmaker[Session]:
    """
    Build a session factory from either a config or an existing engine.

    Args:
        config: Database configuration (used when no engine is given).
        engine: Pre-built engine.

    Returns:
        sessionmaker producing sessions without autoflush.
    """
    if engine is None:
        engine = create_db_engine(config or DatabaseConfig())
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create the tables if they do not exist."""
    Base.metadata.create_all(engine)
    logger.info("Database tables ready")
