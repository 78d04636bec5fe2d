"""
Storage operations for tags and ticket/tag links.

Wraps a SQLAlchemy session and exposes the queries the pipeline needs:
- vocabulary ranked by usage (LEFT JOIN tags -> links)
- point lookup/insert for tags and links
- range-filtered usage aggregate for the stats view

Every write commits on its own; no transaction spans several calls.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import and_, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .db import Tag, TicketTag, utcnow
from .models import ExistingTag, TagStat, TimeRange


logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """A storage operation failed."""
    pass


class TagRepository:
    """
    Repository for the tag taxonomy and its ticket links.

    Holds no cache; each call reads the database.
    """

    def __init__(self, session: Session):
        self._session = session

    def _fail(self, action: str, error: SQLAlchemyError) -> PersistenceError:
        self._session.rollback()
        logger.error(f"Failed to {action}: {error}")
        return PersistenceError(f"Failed to {action}: {error}")

    def list_top_tags(self, limit: int = 50) -> list[ExistingTag]:
        """
        Get the current vocabulary ordered by usage.

        Args:
            limit: Maximum number of tags to return.

        Returns:
            Tags by descending link count, ties in insertion order.

        Raises:
            PersistenceError: If the query fails.
        """
        usage_count = func.count(TicketTag.id)
        stmt = (
            select(Tag.name, Tag.description, usage_count.label("usage_count"))
            .outerjoin(TicketTag, Tag.id == TicketTag.tag_id)
            .group_by(Tag.id, Tag.name, Tag.description)
            .order_by(usage_count.desc(), Tag.id.asc())
            .limit(limit)
        )

        try:
            rows = self._session.execute(stmt).all()
        except SQLAlchemyError as e:
            raise self._fail("list existing tags", e) from e

        return [
            ExistingTag(
                name=row.name,
                description=row.description or "",
                usage_count=int(row.usage_count),
            )
            for row in rows
        ]

    def find_tag_by_name(self, name: str) -> Optional[Tag]:
        """Exact, case-sensitive lookup by tag name."""
        try:
            return self._session.scalars(
                select(Tag).where(Tag.name == name).order_by(Tag.id).limit(1)
            ).first()
        except SQLAlchemyError as e:
            raise self._fail(f"look up tag '{name}'", e) from e

    def create_tag(
        self,
        name: str,
        description: str,
        is_ai_generated: bool = True,
    ) -> Tag:
        """
        Insert a new tag and commit.

        Args:
            name: Tag name.
            description: Tag description.
            is_ai_generated: Whether the tag was proposed by the analyzer.

        Returns:
            The persisted tag with its assigned id.

        Raises:
            PersistenceError: If the insert fails.
        """
        tag = Tag(name=name, description=description, is_ai_generated=is_ai_generated)
        try:
            self._session.add(tag)
            self._session.commit()
        except SQLAlchemyError as e:
            raise self._fail(f"create tag '{name}'", e) from e

        logger.info(f"Created tag '{name}' (id={tag.id})")
        return tag

    def is_ticket_tag_linked(self, ticket_id: str, tag_id: int) -> bool:
        """Check whether the ticket already carries the tag."""
        stmt = (
            select(TicketTag.id)
            .where(and_(TicketTag.ticket_id == ticket_id, TicketTag.tag_id == tag_id))
            .limit(1)
        )
        try:
            return self._session.execute(stmt).first() is not None
        except SQLAlchemyError as e:
            raise self._fail(f"check link {ticket_id} -> {tag_id}", e) from e

    def link_ticket_to_tag(
        self,
        ticket_id: str,
        tag_id: int,
        confidence: float,
        is_ai_generated: bool = True,
        created_at: Optional[datetime] = None,
    ) -> TicketTag:
        """
        Insert a ticket/tag link and commit.

        Raises:
            PersistenceError: If the insert fails.
        """
        link = TicketTag(
            ticket_id=ticket_id,
            tag_id=tag_id,
            confidence=confidence,
            is_ai_generated=is_ai_generated,
            created_at=created_at or utcnow(),
        )
        try:
            self._session.add(link)
            self._session.commit()
        except SQLAlchemyError as e:
            raise self._fail(f"link ticket {ticket_id} to tag {tag_id}", e) from e

        logger.info(f"Linked ticket {ticket_id} to tag {tag_id} (confidence: {confidence:.2f})")
        return link

    def tag_stats(self, time_range: TimeRange) -> list[TagStat]:
        """
        Aggregate link counts and mean confidence per tag.

        Only links with ``created_at`` inside ``[start, end]`` are counted.

        Args:
            time_range: Inclusive window.

        Returns:
            One row per linked tag, most used first.

        Raises:
            PersistenceError: If the query fails.
        """
        link_count = func.count(TicketTag.id)
        stmt = (
            select(
                Tag.name,
                Tag.description,
                link_count.label("link_count"),
                func.avg(TicketTag.confidence).label("avg_confidence"),
            )
            .join(TicketTag, Tag.id == TicketTag.tag_id)
            .where(
                and_(
                    TicketTag.created_at >= time_range.start,
                    TicketTag.created_at <= time_range.end,
                )
            )
            .group_by(Tag.id, Tag.name, Tag.description)
            .order_by(link_count.desc(), Tag.id.asc())
        )

        try:
            rows = self._session.execute(stmt).all()
        except SQLAlchemyError as e:
            raise self._fail("aggregate tag stats", e) from e

        return [
            TagStat(
                tag_name=row.name,
                tag_description=row.description or "",
                count=int(row.link_count),
                avg_confidence=float(row.avg_confidence) if row.avg_confidence is not None else None,
            )
            for row in rows
        ]
