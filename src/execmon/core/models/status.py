from pydantic import AliasChoices, BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime
from enum import StrEnum


class LifecycleState(StrEnum):
    pending = "pending"
    running = "running"
    passed = "passed"
    failed = "failed"
    cancelled = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES

    @property
    def is_completion(self) -> bool:
        """Terminal outcome states; `cancelled` is terminal but user driven."""
        return self in COMPLETION_STATES


TERMINAL_STATES = frozenset(
    {LifecycleState.passed, LifecycleState.failed, LifecycleState.cancelled}
)
COMPLETION_STATES = frozenset({LifecycleState.passed, LifecycleState.failed})

# Some backends report a finished run as "completed"
_STATE_ALIASES = {"completed": LifecycleState.passed}

_FROZEN = {"frozen": True, "extra": "ignore", "populate_by_name": True}


class ExecutionSummary(BaseModel):
    model_config = _FROZEN

    total: int = Field(0, ge=0)
    passed: int = Field(0, ge=0)
    failed: int = Field(0, ge=0)
    skipped: int = Field(0, ge=0)
    duration_ms: Optional[int] = Field(
        None, ge=0, validation_alias=AliasChoices("duration_ms", "durationMs", "duration")
    )

    @property
    def pass_rate(self) -> float:
        """Percentage of passed tests, 0 when nothing ran."""
        if not self.total:
            return 0.0
        return round(self.passed * 100.0 / self.total, 1)


class ExecutionProgress(BaseModel):
    model_config = _FROZEN

    current: int = Field(0, ge=0)
    total: int = Field(0, ge=0)
    current_label: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("current_label", "currentLabel", "currentTest"),
    )


class Artifact(BaseModel):
    """Named reference to a captured artifact (e.g. a screenshot)."""

    model_config = _FROZEN

    name: str
    path: Optional[str] = None
    timestamp: Optional[datetime] = None


class StatusSnapshot(BaseModel):
    """Known state of one execution at a point in time.

    Snapshots are immutable. A poller replaces the stored snapshot wholesale on
    every successful fetch, so readers can keep a reference to the previous
    snapshot for diffing.

    Field names follow Python conventions; the execution API wire names
    (`status`, `output`, `screenshots`, `error`, camelCase timestamps) are
    accepted on validation.
    """

    model_config = _FROZEN

    id: str
    lifecycle_state: LifecycleState = Field(
        validation_alias=AliasChoices("lifecycle_state", "lifecycleState", "status")
    )
    started_at: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("started_at", "startedAt")
    )
    completed_at: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("completed_at", "completedAt")
    )
    summary: Optional[ExecutionSummary] = None
    progress: Optional[ExecutionProgress] = None
    output_lines: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("output_lines", "outputLines", "output"),
    )
    auxiliary_artifacts: List[Artifact] = Field(
        default_factory=list,
        validation_alias=AliasChoices(
            "auxiliary_artifacts", "auxiliaryArtifacts", "screenshots"
        ),
    )
    failure_detail: Optional[str] = Field(
        None, validation_alias=AliasChoices("failure_detail", "failureDetail", "error")
    )

    @field_validator("lifecycle_state", mode="before")
    @classmethod
    def _normalize_state(cls, value):
        if isinstance(value, str):
            key = value.strip().lower()
            return _STATE_ALIASES.get(key, key)
        return value

    @field_validator("output_lines", "auxiliary_artifacts", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return [] if value is None else value
