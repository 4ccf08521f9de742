"""Configuration for the flow engine.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

Pydantic-settings supports overriding the env file in tests via
`FlowSettings(_env_file=path_to_env)`.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FlowSettings(BaseSettings):
    """Settings shared by the engine and the HTTP server.

    Environment variables:
    - HITL_ENDPOINT_URL
    - HITL_DEFAULT_TIMEOUT_MINUTES  (optional)
    - HITL_FLOW_RETENTION_MINUTES   (optional)
    - HITL_ID_LENGTH                (optional)
    - LOG_LEVEL                     (optional)
    """

    endpoint_url: str = Field(
        default="http://127.0.0.1:8000",
        validation_alias="HITL_ENDPOINT_URL",
        description="Externally reachable base URL; flow URLs are built from it",
    )

    default_timeout_minutes: float = Field(
        default=30.0,
        ge=0,
        validation_alias="HITL_DEFAULT_TIMEOUT_MINUTES",
        description="Deadline used by `start` when no timeout is given",
    )

    flow_retention_minutes: float = Field(
        default=0.0,
        ge=0,
        validation_alias="HITL_FLOW_RETENTION_MINUTES",
        description=(
            "How long finished flows stay in the registry. "
            "0 keeps them for the lifetime of the process."
        ),
    )

    id_length: int = Field(
        default=16,
        ge=4,
        le=64,
        validation_alias="HITL_ID_LENGTH",
        description="Length of generated flow and step ids",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    def flow_url(self, flow_id: str) -> str:
        return f"{self.endpoint_url.rstrip('/')}/flow/{flow_id}"
