from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class RiskLevel(str, Enum):
    SAFE = "safe"
    SUSPICIOUS = "suspicious"
    DANGEROUS = "dangerous"


class FindingStatus(str, Enum):
    POSITIVE = "positive"
    WARNING = "warning"
    NEGATIVE = "negative"


class FindingIcon(str, Enum):
    """Category tag the UI maps to an icon."""
    LOCK = "lock"
    ALERT_OCTAGON = "alert-octagon"
    HASH = "hash"
    TIMER = "timer"


class Finding(BaseModel):
    """One observation produced by a URL check."""
    model_config = ConfigDict(frozen=True)

    title: str
    description: str
    status: FindingStatus
    icon: Optional[FindingIcon] = None


class AnalysisResult(BaseModel):
    """Verdict for a single URL. Built once per evaluation, never mutated."""
    model_config = ConfigDict(frozen=True)

    url: str
    risk_score: int = Field(ge=0, le=100)
    risk_level: RiskLevel
    findings: Tuple[Finding, ...]
    scanned_at: datetime


class ScanResponse(BaseModel):
    """Response for a QR image scan: what was decoded and how it scored."""
    source: str  # upload | paste | camera | demo
    decoded: str
    simulated: bool = False
    result: AnalysisResult


class StatusResponse(BaseModel):
    status: str
    version: str
    environment: str
    auth_enabled: bool
    decoders: List[str]
    reference_lists: Dict[str, int]


class ListStatsResponse(BaseModel):
    trusted_domains: int
    shorteners: int
    brand_tokens: int
    keyword_patterns: int


class ListCheckResponse(BaseModel):
    url: str
    hostname: Optional[str]
    matched: bool
    list_type: Optional[str]
    pattern: Optional[str]
