"""Configuration with environment variable loading.

Pydantic-based settings for the retrieval graph (LLM access) and for the
chat client (API location, stream filtering). Supports OpenAI and
OpenAI-compatible APIs via custom base URL.
"""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from ragchat.streaming.constants import ROUTE_PAYLOAD_MAX_LENGTH

# Load environment variables from .env file
load_dotenv()

_DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"


class GraphConfig(BaseModel):
    """Configuration for the retrieval graph agents.

    Attributes:
        api_key: API key for model access.
        base_url: API base URL (None for OpenAI default).
        model_name: Model identifier used for routing and answering.
        temperature: Sampling temperature (0.0 = deterministic, 2.0 = creative).
        max_tokens: Maximum tokens in generated response.
        retrieval_k: Number of document chunks fetched for retrieval answers.
        data_dir: Directory holding the LanceDB knowledge tables.
    """

    api_key: str = Field(
        default_factory=lambda: os.getenv("LLM_API_KEY", os.getenv("OPENAI_API_KEY", "")),
        description="API key for LLM provider",
    )
    base_url: str | None = Field(
        default_factory=lambda: os.getenv("LLM_BASE_URL") or None,
        description="API base URL (None for OpenAI default)",
    )
    model_name: str = Field(
        default_factory=lambda: os.getenv("LLM_MODEL", "gpt-4o-mini"),
        description="Model to use",
    )
    temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1024, ge=1, le=128000)
    retrieval_k: int = Field(
        default_factory=lambda: int(os.getenv("RETRIEVAL_K", "5")),
        ge=1,
        le=50,
        description="Number of chunks retrieved per query",
    )
    data_dir: Path = Field(
        default_factory=lambda: Path(os.getenv("RAGCHAT_DATA_DIR", str(_DEFAULT_DATA_DIR))),
    )

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Validate that API key is provided and non-empty."""
        if not v or not v.strip():
            raise ValueError(
                "API key required. Set LLM_API_KEY or OPENAI_API_KEY in .env"
            )
        return v.strip()


class ChatSettings(BaseModel):
    """Settings for the chat client and the stream consumer.

    Attributes:
        api_base_url: Where the chat API is served.
        request_timeout: Seconds before an idle stream read times out.
        route_payload_max_length: Longest text still treated as an internal
            route decision. Longer messages are always shown.
    """

    api_base_url: str = Field(
        default_factory=lambda: os.getenv("API_BASE_URL", "http://localhost:8000"),
    )
    request_timeout: float = Field(default=120.0, gt=0)
    route_payload_max_length: int = Field(
        default_factory=lambda: int(
            os.getenv("ROUTE_PAYLOAD_MAX_LENGTH", str(ROUTE_PAYLOAD_MAX_LENGTH))
        ),
        ge=0,
    )


def get_graph_config() -> GraphConfig:
    """Create graph configuration from environment.

    Returns:
        Configured GraphConfig instance.

    Raises:
        ValueError: If no API key is set.
    """
    return GraphConfig()


def get_chat_settings() -> ChatSettings:
    """Create chat client settings from environment."""
    return ChatSettings()
