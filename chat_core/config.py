"""
Runtime configuration read from environment variables (and a local .env file).
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()  # Load .env file


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class ComposerOptions(BaseModel):
    """Options for the general formatting pipeline."""
    include_metadata: bool = Field(default=True, description="Attach next steps and links to metadata")
    include_suggestions: bool = Field(default=True, description="Generate follow-up suggestions")
    max_response_length: int = Field(default=1000, gt=3, description="Draft truncation limit in characters")
    personalize_response: bool = Field(default=True, description="Apply user preference personalization")


class SearchDefaults(BaseModel):
    """Default knowledge search parameters."""
    limit: int = Field(default=10, ge=0, description="Maximum number of results")
    min_score: float = Field(default=0.1, description="Minimum score to keep a result")


class ContextConfig(BaseModel):
    """Limits for in-memory conversation contexts."""
    max_messages: int = Field(default=50, ge=1, description="Messages kept after compression")
    compression_threshold: int = Field(default=30, ge=1, description="History length that triggers compression")
    retention_hours: int = Field(default=24, ge=1, description="Idle hours before a context expires")


def get_composer_options() -> ComposerOptions:
    """Build composer options from the environment."""
    return ComposerOptions(
        max_response_length=int(os.getenv("CHAT_MAX_RESPONSE_LENGTH", "1000")),
        include_suggestions=_env_bool("CHAT_INCLUDE_SUGGESTIONS", True),
        personalize_response=_env_bool("CHAT_PERSONALIZE", True),
    )


def get_search_defaults() -> SearchDefaults:
    """Build search defaults from the environment."""
    return SearchDefaults(
        limit=int(os.getenv("KB_SEARCH_LIMIT", "10")),
        min_score=float(os.getenv("KB_MIN_SCORE", "0.1")),
    )


def get_context_config() -> ContextConfig:
    """Build conversation context limits from the environment."""
    return ContextConfig(
        max_messages=int(os.getenv("CHAT_MAX_MESSAGES", "50")),
        compression_threshold=int(os.getenv("CHAT_COMPRESSION_THRESHOLD", "30")),
        retention_hours=int(os.getenv("CHAT_RETENTION_HOURS", "24")),
    )


def get_log_level() -> str:
    """Log level name for setup_logging."""
    return os.getenv("LOG_LEVEL", "INFO").upper()
