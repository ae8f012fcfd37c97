"""Data models for risk findings, annotations and the final report."""

from enum import Enum
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from abitur_risk.rulesets import StateRuleset


class RiskSeverity(str, Enum):
    """Finding severity. RED blocks ORANGE, ORANGE blocks GREEN."""
    RED = 'RED'
    ORANGE = 'ORANGE'
    GREEN = 'GREEN'

    @property
    def rank(self) -> int:
        """Sort position, worst first."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    RiskSeverity.RED: 0,
    RiskSeverity.ORANGE: 1,
    RiskSeverity.GREEN: 2,
}


class TrapType(str, Enum):
    """Which detector produced a finding."""
    ZERO_POINT = 'ZeroPoint'
    DEFICIT = 'Deficit'
    ANCHOR = 'Anchor'
    POINTS_PROJECTION = 'PointsProjection'
    EXAM_RISK = 'ExamRisk'
    VOLATILITY = 'Volatility'
    PROFILE_VIOLATION = 'ProfileViolation'
    SPECIAL_2026 = 'Special2026'
    PSYCHOSOCIAL = 'Psychosocial'


Trend = Literal['improving', 'declining', 'stable']
StressType = Literal['METHODOLOGICAL', 'PSYCHOLOGICAL', 'STRUCTURAL']


class RiskFinding(BaseModel):
    """A single detected risk issue."""
    model_config = ConfigDict(frozen=True)

    severity: RiskSeverity
    trap_type: TrapType
    message: str
    i18n_key: str
    i18n_params: Dict[str, Union[str, int, float]] = Field(default_factory=dict)
    affected_subject_ids: List[str] = Field(default_factory=list)


class AnnotationPatch(BaseModel):
    """Partial per-subject annotation produced by one detector."""
    model_config = ConfigDict(frozen=True)

    subject_id: str
    subject_name: Optional[str] = None
    is_keystone: Optional[bool] = None
    has_zero_point: Optional[bool] = None
    is_deficit: Optional[bool] = None
    contributed_points: Optional[float] = None
    trend: Optional[Trend] = None
    risk_multiplier: Optional[float] = None
    is_fragile: Optional[bool] = None
    is_unstable: Optional[bool] = None
    has_structural_barriers: Optional[bool] = None
    dominant_stress_type: Optional[StressType] = None


class SubjectRiskAnnotation(BaseModel):
    """Merged per-subject facts across all detectors."""
    model_config = ConfigDict(frozen=True)

    subject_id: str
    subject_name: str
    # Cannot be dropped without breaking a structural requirement.
    is_keystone: bool = False
    has_zero_point: bool = False
    is_deficit: bool = False
    contributed_points: float = 0.0
    trend: Trend = 'stable'
    risk_multiplier: Optional[float] = None
    is_fragile: bool = False
    is_unstable: bool = False
    has_structural_barriers: bool = False
    dominant_stress_type: Optional[StressType] = None


class DetectorResult(BaseModel):
    """Findings and partial annotations returned by one detector."""
    model_config = ConfigDict(frozen=True)

    trap_type: TrapType
    findings: List[RiskFinding] = Field(default_factory=list)
    subject_annotations: List[AnnotationPatch] = Field(default_factory=list)


class ReportStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_projected_points: float
    total_deficits: int
    total_zero_points: int
    keystone_count: int
    red_findings_count: int
    orange_findings_count: int
    green_findings_count: int


class RiskReport(BaseModel):
    """Aggregate output of one engine run."""
    model_config = ConfigDict(frozen=True)

    federal_state: str
    ruleset: StateRuleset
    findings: List[RiskFinding]
    subject_annotations: Dict[str, SubjectRiskAnnotation]
    overall_severity: RiskSeverity
    stats: ReportStats
