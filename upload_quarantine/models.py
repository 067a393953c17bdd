from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class UploadEvent(BaseModel):
    """Storage object resource delivered by the host when an upload finalizes."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    bucket: str = Field(min_length=1)
    name: str = Field(min_length=1)
    md5_hash: str = Field(default="", alias="md5Hash")
    content_type: str | None = Field(default=None, alias="contentType")
    size: str | None = Field(default=None)
    generation: str | None = Field(default=None)


class VerdictKind(str, Enum):
    BENIGN = "benign"
    MALWARE = "malware"
    GRAYWARE = "grayware"
    PHISHING = "phishing"
    COMMAND_AND_CONTROL = "c2"
    PENDING = "pending"
    UNKNOWN = "unknown"
    ANALYSIS_ERROR = "analysis_error"


@dataclass(frozen=True)
class Verdict:
    kind: VerdictKind
    code: str = ""
    reason: str = ""

    def __str__(self) -> str:
        if self.reason:
            return f"{self.kind.value} ({self.reason})"
        return self.kind.value


class RoutingDecision(str, Enum):
    MOVE_TO_CLEAN = "move_to_clean"
    MOVE_TO_QUARANTINE = "move_to_quarantine"
    AWAIT_ANALYSIS = "await_analysis"


_QUARANTINE_KINDS = {
    VerdictKind.MALWARE,
    VerdictKind.PHISHING,
    VerdictKind.COMMAND_AND_CONTROL,
}


def routing_decision(verdict: Verdict) -> RoutingDecision:
    # Grayware has no destination and keeps waiting like pending.
    if verdict.kind is VerdictKind.BENIGN:
        return RoutingDecision.MOVE_TO_CLEAN
    if verdict.kind in _QUARANTINE_KINDS:
        return RoutingDecision.MOVE_TO_QUARANTINE
    return RoutingDecision.AWAIT_ANALYSIS


@dataclass(frozen=True)
class FileMoveOperation:
    source_bucket: str
    destination_bucket: str
    object_name: str


class ResolutionState(str, Enum):
    ROUTED = "routed"
    ALREADY_RESOLVED = "already_resolved"
    FAILED = "failed"
    ANALYSIS_TIMED_OUT = "analysis_timed_out"


class Resolution(BaseModel):
    state: ResolutionState
    object_name: str
    hash: str | None = None
    verdict: str | None = None
    destination: str | None = None
    polls: int = Field(default=0, ge=0)
    detail: str = Field(default="")
