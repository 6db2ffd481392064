from enum import Enum
from typing import List, Optional

from pydantic import BaseModel


class RunType(str, Enum):
    WED_WARN = "wed_warn"
    THU_WARN = "thu_warn"
    SUN_AM_WARN = "sun_am_warn"
    SUN_PM_OFFICIAL = "sun_pm_official"
    ADMIN_RERUN = "admin_rerun"


class ViolationCode(str, Enum):
    TOO_MANY_ON_TAXI = "too_many_on_taxi"
    TOO_MANY_QBS = "too_many_qbs"
    INVALID_INTAKE = "invalid_intake"
    ROSTER_INCONSISTENT = "roster_inconsistent"
    BOOMERANG_ACTIVE_PLAYER = "boomerang_active_player"


class ComplianceStatus(str, Enum):
    COMPLIANT = "compliant"
    NON_COMPLIANT = "non_compliant"
    UNKNOWN = "unknown"


class Violation(BaseModel):
    code: ViolationCode
    detail: Optional[str] = None
    players: List[str] = []


class TaxiLimits(BaseModel):
    max_slots: int
    max_qb: int


class TaxiPlayer(BaseModel):
    player_id: str
    name: Optional[str] = None
    position: Optional[str] = None
    intake: Optional[str] = None
    joined_at: Optional[str] = None  # ISO timestamp of the last join, when known
    activated_at: Optional[str] = None  # "<season>-W<week>" of the first start since joining
    observed_since: Optional[str] = None


class TaxiCounts(BaseModel):
    total: int = 0
    qbs: int = 0


class TeamRef(BaseModel):
    team_name: str
    roster_id: int
    season: str


class TaxiCurrent(BaseModel):
    taxi: List[TaxiPlayer] = []
    counts: TaxiCounts = TaxiCounts()


class TaxiValidateResult(BaseModel):
    team: TeamRef
    run_type: RunType
    status: ComplianceStatus
    compliant: Optional[bool] = None  # None while status is unknown
    limits: TaxiLimits
    current: TaxiCurrent = TaxiCurrent()
    violations: List[Violation] = []
    warnings: List[Violation] = []
    note: Optional[str] = None


class TaxiSnapshot(BaseModel):
    season: int
    week: int
    run_type: RunType
    run_ts: str
    team_id: str
    taxi_ids: List[str] = []
    status: ComplianceStatus
    compliant: Optional[bool] = None
    violations: List[Violation] = []
    degraded: bool = False


class TaxiRunMeta(BaseModel):
    season: int
    week: int
    run_type: RunType
    run_ts: str


class TaxiFlag(BaseModel):
    team: str
    type: str  # "violation" | "warning"
    message: str


class TaxiFlagsReport(BaseModel):
    generated_at: str
    run_type: Optional[RunType] = None
    season: Optional[int] = None
    week: Optional[int] = None
    actual: List[TaxiFlag] = []
    potential: List[TaxiFlag] = []


class TaxiCronResult(BaseModel):
    ok: bool = True
    run_type: Optional[RunType] = None
    skipped: Optional[str] = None
    season: Optional[int] = None
    week: Optional[int] = None
    processed: int = 0
    degraded: int = 0
