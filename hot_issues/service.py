"""
Hot issue pipeline orchestration.

analyze_and_save_hot_issue runs one ticket through the pipeline:
1. Check the completion service is configured
2. Read the most used existing tags
3. Analyze the ticket with the LLM
4. Resolve (reuse or create) the proposed tag
5. Link the ticket to the tag if not already linked

Any failure aborts the remaining steps. Nothing is rolled back: a tag
created before a failed link step stays in the taxonomy unused.

get_hot_issues_stats is an independent read path over the links.
"""

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session, sessionmaker

from .analyzer import HotIssueAnalyzer
from .config import AppConfig, get_config, require_llm_config
from .db import create_session_factory
from .models import HotIssuesStats, TimeRange
from .repository import TagRepository
from .taxonomy import ensure_link, resolve_tag


logger = logging.getLogger(__name__)


class HotIssueService:
    """Entry points for tagging tickets and reading tag usage."""

    def __init__(
        self,
        config: AppConfig,
        session_factory: Optional[sessionmaker[Session]] = None,
        analyzer: Optional[HotIssueAnalyzer] = None,
    ):
        """
        Initialize the service.

        Args:
            config: Application configuration.
            session_factory: Database session factory; built from config when omitted.
            analyzer: Pre-built analyzer; created on first use when omitted.
        """
        self._config = config
        self._session_factory = session_factory or create_session_factory(config.database)
        self._analyzer = analyzer

    def _get_analyzer(self) -> HotIssueAnalyzer:
        if self._analyzer is None:
            self._analyzer = HotIssueAnalyzer(self._config.llm, self._config.analysis)
        return self._analyzer

    def analyze_and_save_hot_issue(
        self,
        ticket_id: str,
        title: str,
        description: Any,
    ) -> None:
        """
        Tag a ticket and persist the link.

        Args:
            ticket_id: External ticket identifier.
            title: Ticket title.
            description: Rich-text ticket description.

        Raises:
            ConfigurationError: If the credential or model is missing.
            AnalysisServiceError: If the completion call fails.
            PersistenceError: If a storage operation fails.
        """
        # Before any storage or network access
        require_llm_config(self._config.llm)

        with self._session_factory() as session:
            repository = TagRepository(session)

            existing_tags = repository.list_top_tags(self._config.analysis.max_existing_tags)
            logger.debug(f"Loaded {len(existing_tags)} existing tags for ticket {ticket_id}")

            analysis = self._get_analyzer().analyze(title, description, existing_tags)

            tag_id = resolve_tag(repository, analysis.name, analysis.description)
            created = ensure_link(repository, ticket_id, tag_id, analysis.confidence)

        logger.info(
            f"Ticket {ticket_id} tagged '{analysis.name}' "
            f"(confidence: {analysis.confidence:.2f}, new link: {created})"
        )

    def get_hot_issues_stats(self, time_range: TimeRange) -> HotIssuesStats:
        """
        Aggregate tag usage within a time window.

        Args:
            time_range: Inclusive window on link creation time.

        Returns:
            HotIssuesStats with rows ordered by descending count.
        """
        with self._session_factory() as session:
            tag_stats = TagRepository(session).tag_stats(time_range)

        logger.debug(
            f"Computed stats for {len(tag_stats)} tags between "
            f"{time_range.start.isoformat()} and {time_range.end.isoformat()}"
        )
        return HotIssuesStats(tag_stats=tag_stats)


def analyze_and_save_hot_issue(
    ticket_id: str,
    title: str,
    description: Any,
    config: Optional[AppConfig] = None,
) -> None:
    """Convenience wrapper building a service from the environment."""
    config = config or get_config()
    # Fail before the engine is created
    require_llm_config(config.llm)
    HotIssueService(config).analyze_and_save_hot_issue(ticket_id, title, description)


def get_hot_issues_stats(
    time_range: TimeRange,
    config: Optional[AppConfig] = None,
) -> HotIssuesStats:
    """Convenience wrapper building a service from the environment."""
    return HotIssueService(config or get_config()).get_hot_issues_stats(time_range)
