"""
Zero-point detection.

Pass 1 looks for existing 0-point semesters that disqualify the student
under the state's rules and stops at the first one. Pass 2 only runs
when nothing was fatal and flags subjects whose average is so low that
a future 0 is likely.
"""

from typing import List, NamedTuple

from abitur_risk.detectors import Detector
from abitur_risk.grades import mean, round_half_up
from abitur_risk.models import FatalScope, FederalState, Subject
from abitur_risk.report_models import (
    AnnotationPatch,
    DetectorResult,
    RiskFinding,
    RiskSeverity,
    TrapType,
)

DANGER_ZONE_AVERAGE = 3.0


class ZeroPointHit(NamedTuple):
    subject: Subject
    semester_label: str


def is_zero_fatal(subject: Subject, profile) -> bool:
    """
    Whether a 0 in this subject is a legal disqualification.

    NRW (APO-GOSt §28): a 0-point course counts as not taken, fatal when
    attendance is required. Bavaria: every 0 is treated as fatal.
    General: follows zero_is_fatal and fatal_scope.
    """
    if profile.federal_state == FederalState.NRW:
        return subject.is_belegpflichtig
    if profile.federal_state == FederalState.BAVARIA:
        return True

    config = profile.rules_config
    if not config.zero_is_fatal:
        return False
    if config.fatal_scope == FatalScope.ALL_COURSES:
        return True
    if config.fatal_scope == FatalScope.MANDATORY_ONLY:
        return subject.is_mandatory
    return False


def find_zero_points(profile):
    """Return (fatal_hits, all_hits) over every known semester score."""
    fatal_hits: List[ZeroPointHit] = []
    all_hits: List[ZeroPointHit] = []

    for subject in profile.subjects:
        for label, grade in subject.semester_grades.labelled():
            if grade != 0:
                continue
            hit = ZeroPointHit(subject, label)
            all_hits.append(hit)
            if is_zero_fatal(subject, profile):
                fatal_hits.append(hit)

    return fatal_hits, all_hits


def find_danger_zones(profile):
    """Subjects whose known average is below 3.0, as (subject, rounded average)."""
    zones = []
    for subject in profile.subjects:
        avg = mean(subject.existing_grades())
        if avg is not None and avg < DANGER_ZONE_AVERAGE:
            zones.append((subject, round_half_up(avg, 2)))
    return zones


def _fatal_finding(hit: ZeroPointHit) -> RiskFinding:
    return RiskFinding(
        severity=RiskSeverity.RED,
        trap_type=TrapType.ZERO_POINT,
        message=f"Disqualification Risk: 0 points in {hit.subject.name} (Semester {hit.semester_label}).",
        i18n_key='report.zeroPoint.detail',
        i18n_params={'subjectName': hit.subject.name, 'semester': hit.semester_label},
        affected_subject_ids=[hit.subject.id],
    )


def _danger_zone_finding(subject: Subject, average: float) -> RiskFinding:
    return RiskFinding(
        severity=RiskSeverity.ORANGE,
        trap_type=TrapType.ZERO_POINT,
        message=(
            f"High Risk in {subject.name}. Current average is critical ({average} pts). "
            f"A failed exam could result in 0 points."
        ),
        i18n_key='report.zeroPoint.found',
        i18n_params={'subjectName': subject.name, 'average': average},
        affected_subject_ids=[subject.id],
    )


def detect(profile, ruleset) -> DetectorResult:
    """
    Run both zero-point passes.

    Args:
        profile: validated input profile
        ruleset: resolved constants for the profile's jurisdiction

    Returns:
        DetectorResult with zero-point findings and has_zero_point annotations
    """
    fatal_hits, all_hits = find_zero_points(profile)

    hit_ids = {hit.subject.id for hit in all_hits}
    annotations = [
        AnnotationPatch(subject_id=s.id, subject_name=s.name, has_zero_point=s.id in hit_ids)
        for s in profile.subjects
    ]

    if fatal_hits:
        # Only the first fatal hit is reported; more would be the same alarm.
        findings = [_fatal_finding(fatal_hits[0])]
    else:
        findings = [_danger_zone_finding(s, avg) for s, avg in find_danger_zones(profile)]

    return DetectorResult(
        trap_type=TrapType.ZERO_POINT,
        findings=findings,
        subject_annotations=annotations,
    )


zero_point_detector = Detector(TrapType.ZERO_POINT, detect)
