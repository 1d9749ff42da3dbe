"""Shared Pydantic data models for studio-gateway."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# --- Enums ---


class PackageTier(str, Enum):
    START = "START"
    GROW = "GROW"
    SCALE = "SCALE"
    CUSTOM = "CUSTOM"


class AuditEventType(str, Enum):
    ESTIMATE = "estimate"
    WEBHOOK_AUTH_FAILURE = "webhook_auth_failure"
    WEBHOOK_RELAY = "webhook_relay"


class RiskLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


# --- Estimate Models ---


class EstimateRequest(BaseModel):
    """Validated pricing inquiry, already trimmed and clamped."""

    model_config = ConfigDict(frozen=True)

    category: str = Field(min_length=1, max_length=80)
    budget: str = Field(default="", max_length=40)
    details: str = Field(min_length=1, max_length=2500)


class UahRange(BaseModel):
    model_config = ConfigDict(extra="forbid")

    min: float = Field(ge=0)
    max: float = Field(ge=0)


class DayRange(BaseModel):
    model_config = ConfigDict(extra="forbid")

    min: float = Field(ge=1)
    max: float = Field(ge=1)


class AdditionalCost(BaseModel):
    model_config = ConfigDict(extra="forbid")

    item: str = Field(min_length=1)
    uah: float = Field(ge=0)
    notes: str


class EstimateResult(BaseModel):
    """Structured estimate returned by the model.

    Mirrors the JSON schema sent upstream so the parsed content can be
    re-checked before it reaches the caller. min <= max is not enforced.
    """

    model_config = ConfigDict(extra="forbid")

    recommended_package: PackageTier
    package_base_uah: float = Field(ge=0)
    estimated_total_uah: float = Field(ge=0)
    range_uah: UahRange
    timeline_days: DayRange
    included: list[str] = Field(max_length=12)
    additional_costs: list[AdditionalCost] = Field(max_length=10)
    why_this_package: str
    assumptions: list[str] = Field(max_length=8)
    questions: list[str] = Field(max_length=8)
    confidence: float = Field(ge=0, le=1)


# --- Audit Models ---


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class AuditEvent(BaseModel):
    timestamp: str = Field(default_factory=_now_iso)
    event_type: AuditEventType
    source_ip: str | None = None
    action: str
    result: str  # "success" | "failure" | "blocked"
    risk_level: RiskLevel
    details: dict[str, object] | None = None
