"""
Risk engine orchestrator.

Resolves the ruleset for a profile, runs every registered detector,
sorts the findings worst-first and merges the per-subject annotations
into one report.
"""

import logging
from typing import Dict, List, Sequence

from abitur_risk.detectors import Detector
from abitur_risk.detectors.anchor import anchor_detector
from abitur_risk.detectors.deficit import deficit_detector
from abitur_risk.detectors.exam_risk import exam_risk_detector
from abitur_risk.detectors.points_projection import points_projection_detector
from abitur_risk.detectors.profile import profile_detector
from abitur_risk.detectors.psychosocial import psychosocial_detector
from abitur_risk.detectors.transition_year import transition_year_detector
from abitur_risk.detectors.volatility import volatility_detector
from abitur_risk.detectors.zero_point import zero_point_detector
from abitur_risk.report_models import (
    AnnotationPatch,
    ReportStats,
    RiskFinding,
    RiskReport,
    RiskSeverity,
    SubjectRiskAnnotation,
)
from abitur_risk.rulesets import resolve_ruleset

logger = logging.getLogger(__name__)

DETECTORS: List[Detector] = [
    zero_point_detector,
    deficit_detector,
    anchor_detector,
    points_projection_detector,
    exam_risk_detector,
    volatility_detector,
    profile_detector,
    transition_year_detector,
    psychosocial_detector,
]

_OR_FLAGS = ('is_keystone', 'has_zero_point', 'is_deficit', 'is_fragile', 'is_unstable', 'has_structural_barriers')
_OVERWRITE_FIELDS = ('contributed_points', 'trend', 'risk_multiplier', 'dominant_stress_type')


def initial_annotations(profile) -> Dict[str, dict]:
    return {
        s.id: SubjectRiskAnnotation(subject_id=s.id, subject_name=s.name).model_dump()
        for s in profile.subjects
    }


def merge_annotation(current: dict, patch: AnnotationPatch) -> None:
    """Fold one patch into a subject's annotation: flags OR together, values overwrite."""
    for name in _OR_FLAGS:
        value = getattr(patch, name)
        if value is not None:
            current[name] = current[name] or value
    for name in _OVERWRITE_FIELDS:
        value = getattr(patch, name)
        if value is not None:
            current[name] = value


def sort_findings(findings: Sequence[RiskFinding]) -> List[RiskFinding]:
    """Worst severity first; ties keep emission order."""
    return sorted(findings, key=lambda f: f.severity.rank)


def overall_severity(findings: Sequence[RiskFinding]) -> RiskSeverity:
    if not findings:
        return RiskSeverity.GREEN
    return min((f.severity for f in findings), key=lambda s: s.rank)


def compute_stats(findings: Sequence[RiskFinding], annotations: Dict[str, SubjectRiskAnnotation]) -> ReportStats:
    values = list(annotations.values())
    return ReportStats(
        total_projected_points=sum(a.contributed_points for a in values),
        total_deficits=sum(1 for a in values if a.is_deficit),
        total_zero_points=sum(1 for a in values if a.has_zero_point),
        keystone_count=sum(1 for a in values if a.is_keystone),
        red_findings_count=sum(1 for f in findings if f.severity == RiskSeverity.RED),
        orange_findings_count=sum(1 for f in findings if f.severity == RiskSeverity.ORANGE),
        green_findings_count=sum(1 for f in findings if f.severity == RiskSeverity.GREEN),
    )


def run_risk_engine(profile, detectors: Sequence[Detector] = DETECTORS) -> RiskReport:
    """
    Evaluate a validated profile and return its risk report.

    Args:
        profile: an NRWProfile, BavariaProfile or GeneralProfile
        detectors: registry to run, in emission order

    Returns:
        RiskReport with findings sorted worst-first
    """
    ruleset = resolve_ruleset(profile)
    logger.debug("Running %d detectors for %s (%d subjects)",
                 len(detectors), profile.federal_state, len(profile.subjects))

    findings: List[RiskFinding] = []
    merged = initial_annotations(profile)

    for detector in detectors:
        result = detector(profile, ruleset)
        logger.debug("%s: %d finding(s)", detector.trap_type.value, len(result.findings))
        findings.extend(result.findings)
        for patch in result.subject_annotations:
            current = merged.get(patch.subject_id)
            if current is None:
                continue
            merge_annotation(current, patch)

    findings = sort_findings(findings)
    annotations = {sid: SubjectRiskAnnotation(**data) for sid, data in merged.items()}
    stats = compute_stats(findings, annotations)
    severity = overall_severity(findings)

    logger.info(
        "Risk report for %s: %s (%d red, %d orange, %d green)",
        profile.federal_state, severity.value,
        stats.red_findings_count, stats.orange_findings_count, stats.green_findings_count,
    )

    return RiskReport(
        federal_state=profile.federal_state,
        ruleset=ruleset,
        findings=findings,
        subject_annotations=annotations,
        overall_severity=severity,
        stats=stats,
    )
