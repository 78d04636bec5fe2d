"""Shared fixtures: temporary SQLite database and configuration."""

from pathlib import Path
from unittest.mock import Mock

import pytest
from sqlalchemy import create_engine

from hot_issues.analyzer import HotIssueAnalysisResponse
from hot_issues.config import AnalysisSettings, AppConfig, DatabaseConfig, LLMConfig, OutputConfig
from hot_issues.db import create_session_factory, init_db
from hot_issues.repository import TagRepository


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    """URL of an empty SQLite database file."""
    return f"sqlite:///{tmp_path / 'hot_issues.db'}"


@pytest.fixture
def engine(db_url: str):
    """Engine with the tag tables created."""
    engine = create_engine(db_url)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine=engine)


@pytest.fixture
def session(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture
def repository(session) -> TagRepository:
    return TagRepository(session)


@pytest.fixture
def llm_config() -> LLMConfig:
    """LLM config with credential and model set."""
    return LLMConfig(
        api_key="test-api-key",
        api_base_url=None,
        model="gpt-4o-mini",
        temperature=0.3,
    )


@pytest.fixture
def settings() -> AnalysisSettings:
    return AnalysisSettings(
        max_existing_tags=50,
        max_description_length=24,
        max_reasoning_length=50,
        similarity_threshold=0.7,
        default_confidence=0.5,
        max_images=6,
    )


@pytest.fixture
def app_config(llm_config, settings, db_url, tmp_path) -> AppConfig:
    return AppConfig(
        llm=llm_config,
        analysis=settings,
        database=DatabaseConfig(url=db_url, echo=False),
        output=OutputConfig(output_dir=tmp_path / "output", report_filename="report.xlsx"),
        log_level="DEBUG",
    )


@pytest.fixture
def make_completion():
    """Factory for fake parse() responses carrying a structured result."""

    def _make(parsed):
        response = Mock()
        response.choices = [Mock(message=Mock(parsed=parsed))]
        return response

    return _make


@pytest.fixture
def openai_client(make_completion) -> Mock:
    """OpenAI client double returning a fixed structured result."""
    client = Mock()
    client.chat.completions.parse.return_value = make_completion(
        HotIssueAnalysisResponse(
            name="Deployment",
            description="ImagePullBackOff deploy",
            confidence=0.86,
            reasoning="error code in title",
        )
    )
    return client


@pytest.fixture
def rich_document() -> dict:
    """Ticket description with two paragraphs and two images."""
    return {
        "type": "doc",
        "content": [
            {
                "type": "paragraph",
                "content": [{"type": "text", "text": "Pod stuck in ImagePullBackOff"}],
            },
            {"type": "image", "attrs": {"src": "https://img.example.com/1.png"}},
            {
                "type": "paragraph",
                "content": [
                    {"type": "text", "text": "namespace: ns-dev"},
                    {"type": "image", "attrs": {"src": "https://img.example.com/2.png"}},
                ],
            },
        ],
    }
