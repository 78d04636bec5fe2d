"""Tests for tag resolution and ticket linking."""

from sqlalchemy import func, select

from hot_issues.db import Tag, TicketTag
from hot_issues.taxonomy import ensure_link, resolve_tag


class TestResolveTag:
    """Tests for resolve_tag."""

    def test_creates_missing_tag(self, repository, session):
        tag_id = resolve_tag(repository, "Database", "postgres ECONNREFUSED")

        tag = session.get(Tag, tag_id)
        assert tag.name == "Database"
        assert tag.description == "postgres ECONNREFUSED"
        assert tag.is_ai_generated is True

    def test_first_write_wins(self, repository, session):
        """Test the same name resolves to one tag keeping the first description."""
        first = resolve_tag(repository, "Database", "postgres ECONNREFUSED")
        second = resolve_tag(repository, "Database", "mysql too many connections")

        assert first == second
        assert session.get(Tag, first).description == "postgres ECONNREFUSED"
        assert session.scalar(select(func.count(Tag.id))) == 1

    def test_case_sensitive_names(self, repository):
        """Test names differing only in case are distinct tags."""
        assert resolve_tag(repository, "Database", "a") != resolve_tag(repository, "database", "b")


class TestEnsureLink:
    """Tests for ensure_link."""

    def test_creates_link(self, repository, session):
        tag_id = resolve_tag(repository, "Database", "postgres ECONNREFUSED")

        assert ensure_link(repository, "t-1", tag_id, 0.42) is True

        link = session.scalars(select(TicketTag)).one()
        assert link.ticket_id == "t-1"
        assert link.confidence == 0.42
        assert link.is_ai_generated is True

    def test_idempotent(self, repository, session):
        """Test repeated calls are no-ops and keep the first confidence."""
        tag_id = resolve_tag(repository, "Database", "postgres ECONNREFUSED")

        assert ensure_link(repository, "t-1", tag_id, 0.4) is True
        assert ensure_link(repository, "t-1", tag_id, 0.9) is False

        assert session.scalar(select(func.count(TicketTag.id))) == 1
        assert session.scalars(select(TicketTag)).one().confidence == 0.4
        assert repository.list_top_tags()[0].usage_count == 1

    def test_same_tag_different_tickets(self, repository):
        tag_id = resolve_tag(repository, "Database", "postgres ECONNREFUSED")
        ensure_link(repository, "t-1", tag_id, 0.4)
        ensure_link(repository, "t-2", tag_id, 0.6)
        assert repository.list_top_tags()[0].usage_count == 2
