"""Configuration for the HTTP server."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from hitl_flows.config import FlowSettings


class ServerSettings(FlowSettings):
    """Settings for hosting the callback endpoint.

    Notes:
        - `endpoint_url` (inherited) should be the URL humans reach this server
          on; it only affects the flow URLs that are logged.
    """

    host: str = Field(default="127.0.0.1", validation_alias="HITL_HOST")
    port: int = Field(default=8000, ge=1, le=65535, validation_alias="HITL_PORT")

    page_title: str = Field(
        default="Flows",
        validation_alias="HITL_PAGE_TITLE",
        description="Title used for every rendered page",
    )

    cors_origins: str = Field(
        default="",
        validation_alias="HITL_CORS_ORIGINS",
        description="Comma-separated list of allowed CORS origins (empty disables CORS).",
    )

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    def parsed_cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
