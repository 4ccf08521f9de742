"""Pydantic models for the HTTP surface."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

Indicator = Literal["done", "aborted", "pending"]


class SubmitRequest(BaseModel):
    """Body of `POST /flow/{flow_id}/{step_id}`."""

    value: str = Field(min_length=1)


class ErrorBody(BaseModel):
    error: str
    status: int


class ApiStep(BaseModel):
    id: str
    label: str
    kind: str
    status: str
    value: str | None = None
    reason: str | None = None
    created_at: datetime
    settled_at: datetime | None = None


class FlowSummary(BaseModel):
    id: str
    title: str
    status: str
    indicator: Indicator
    url: str
    step_count: int
    created_at: datetime
    finished_at: datetime | None = None


class FlowDetail(FlowSummary):
    steps: list[ApiStep] = Field(default_factory=list)
