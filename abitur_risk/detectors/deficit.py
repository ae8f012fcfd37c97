"""
Deficit accumulation.

Scores below the deficit threshold (usually 5) are deficits. Every
state caps how many a student may collect; NRW also caps deficits in
LK courses. The detector counts current deficits, projects future ones
from subjects that are trending into deficit territory, then reports
the first disqualifying condition or the closest warning.
"""

from typing import List, NamedTuple, Set

from abitur_risk.detectors import Detector
from abitur_risk.grades import count_below, mean, round_half_up, unknown_slots
from abitur_risk.models import FederalState, SubjectType
from abitur_risk.report_models import (
    AnnotationPatch,
    DetectorResult,
    RiskFinding,
    RiskSeverity,
    TrapType,
)
from abitur_risk.rulesets import StateRuleset

# A subject averaging below this is assumed to produce a deficit in
# every semester that is not graded yet.
PREDICTION_THRESHOLD = 4.8

NRW_TRANSITION_YEAR = 2026
NRW_TRANSITION_DEFICITS = 6


class DeficitCounts(NamedTuple):
    total: int
    lk: int
    subject_ids: List[str]


class DeficitProjection(NamedTuple):
    predicted: int
    projected_total: int
    projected_lk: int


def count_current_deficits(subjects, deficit_threshold: int) -> DeficitCounts:
    """
    Count known semester scores below the threshold, across all subjects.

    Args:
        subjects: subjects to scan, active or not
        deficit_threshold: a score strictly below this is a deficit

    Returns:
        DeficitCounts with totals and the ids of subjects holding a deficit
    """
    total = 0
    lk = 0
    subject_ids: List[str] = []
    seen: Set[str] = set()

    for subject in subjects:
        found = count_below(subject.semester_grades.as_list(), deficit_threshold)
        if found == 0:
            continue
        total += found
        if subject.type == SubjectType.LK:
            lk += found
        if subject.id not in seen:
            seen.add(subject.id)
            subject_ids.append(subject.id)

    return DeficitCounts(total, lk, subject_ids)


def predict_future_deficits(subjects, counts: DeficitCounts) -> DeficitProjection:
    """
    Project deficits for semesters that are not graded yet.

    Args:
        subjects: subjects to project
        counts: current deficit counts to add the prediction to

    Returns:
        DeficitProjection with predicted and projected totals
    """
    predicted = 0
    predicted_lk = 0

    for subject in subjects:
        grades = subject.semester_grades.as_list()
        open_slots = unknown_slots(grades)
        avg = mean(subject.existing_grades())
        if avg is None or open_slots == 0:
            continue
        if avg < PREDICTION_THRESHOLD:
            predicted += open_slots
            if subject.type == SubjectType.LK:
                predicted_lk += open_slots

    return DeficitProjection(
        predicted=predicted,
        projected_total=counts.total + predicted,
        projected_lk=counts.lk + predicted_lk,
    )


def _finding(severity, message, key, params, affected) -> RiskFinding:
    return RiskFinding(
        severity=severity,
        trap_type=TrapType.DEFICIT,
        message=message,
        i18n_key=key,
        i18n_params=params,
        affected_subject_ids=list(affected),
    )


def assess_deficits(
    profile,
    ruleset: StateRuleset,
    counts: DeficitCounts,
    projection: DeficitProjection,
) -> List[RiskFinding]:
    """Turn counts into findings, stopping at the first disqualification."""
    findings: List[RiskFinding] = []
    max_total = ruleset.max_deficits
    max_lk = ruleset.max_lk_deficits
    is_nrw = profile.federal_state == FederalState.NRW
    affected = counts.subject_ids

    if counts.total > max_total:
        findings.append(_finding(
            RiskSeverity.RED,
            f"Disqualified: {counts.total} deficits detected, maximum allowed is {max_total}.",
            'report.deficit.disqualified',
            {'current': counts.total, 'max': max_total},
            affected,
        ))
        return findings

    # APO-GOSt §29: at most 3 deficits in Leistungskurse.
    if is_nrw and counts.lk > max_lk:
        findings.append(_finding(
            RiskSeverity.RED,
            f"Disqualified: {counts.lk} LK deficits detected (APO-GOSt limit: {max_lk}).",
            'report.deficit.lkDisqualified',
            {'lkCurrent': counts.lk, 'maxLk': max_lk},
            affected,
        ))
        return findings

    if (
        is_nrw
        and profile.graduation_year == NRW_TRANSITION_YEAR
        and counts.total >= NRW_TRANSITION_DEFICITS
    ):
        findings.append(_finding(
            RiskSeverity.ORANGE,
            f"Bündelungsgymnasium Warning: {counts.total} deficits in G8/G9 transition year "
            f"{NRW_TRANSITION_YEAR}. Repeating the year carries high risk.",
            'report.deficit.buendelungsWarning',
            {'current': counts.total},
            affected,
        ))

    if projection.projected_total > max_total:
        findings.append(_finding(
            RiskSeverity.RED,
            f"On track to exceed deficit quota: projected {projection.projected_total} "
            f"deficits (limit: {max_total}).",
            'report.deficit.projectedExceed',
            {'projected': projection.projected_total, 'max': max_total},
            affected,
        ))
        return findings

    if is_nrw and projection.projected_lk > max_lk:
        findings.append(_finding(
            RiskSeverity.RED,
            f"On track to exceed LK deficit quota: projected {projection.projected_lk} "
            f"LK deficits (limit: {max_lk}).",
            'report.deficit.projectedLkExceed',
            {'projectedLk': projection.projected_lk, 'maxLk': max_lk},
            affected,
        ))
        return findings

    remaining = max_total - counts.total
    if counts.total >= max_total - 1:
        plural = '' if remaining == 1 else 's'
        findings.append(_finding(
            RiskSeverity.ORANGE,
            f"Critical: only {remaining} deficit{plural} remaining before disqualification.",
            'report.deficit.critical',
            {'remaining': remaining, 'current': counts.total, 'max': max_total},
            affected,
        ))
    elif counts.total >= max_total // 2:
        percent = round_half_up(counts.total / max_total * 100) if max_total else 100
        findings.append(_finding(
            RiskSeverity.ORANGE,
            f"Warning: {counts.total} of {max_total} deficit quota used ({percent}%).",
            'report.deficit.warning',
            {'current': counts.total, 'max': max_total, 'percent': percent},
            affected,
        ))

    if is_nrw and counts.lk > 0 and counts.lk >= max_lk - 1:
        lk_remaining = max_lk - counts.lk
        findings.append(_finding(
            RiskSeverity.ORANGE,
            f"LK deficit alert: {counts.lk} of {max_lk} LK deficits used. "
            f"Only {lk_remaining} remaining.",
            'report.deficit.lkWarning',
            {'lkCurrent': counts.lk, 'maxLk': max_lk, 'lkRemaining': lk_remaining},
            affected,
        ))

    return findings


def detect(profile, ruleset: StateRuleset) -> DetectorResult:
    """
    Run the deficit check.

    Args:
        profile: validated input profile
        ruleset: resolved constants for the profile's jurisdiction

    Returns:
        DetectorResult with deficit findings and is_deficit annotations
    """
    counts = count_current_deficits(profile.subjects, ruleset.deficit_threshold)
    projection = predict_future_deficits(profile.subjects, counts)
    findings = assess_deficits(profile, ruleset, counts, projection)

    deficit_ids = set(counts.subject_ids)
    annotations = [
        AnnotationPatch(subject_id=s.id, subject_name=s.name, is_deficit=s.id in deficit_ids)
        for s in profile.subjects
    ]

    return DetectorResult(
        trap_type=TrapType.DEFICIT,
        findings=findings,
        subject_annotations=annotations,
    )


deficit_detector = Detector(TrapType.DEFICIT, detect)
