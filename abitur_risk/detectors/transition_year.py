"""
One-off regulatory exceptions for the 2026 cohort.

NRW 2026 is the G8/G9 "void year": a student who fails cannot repeat
at their own school and has to move to a Bündelungsgymnasium. Bavaria's
G9 rollout makes seminar courses structurally expensive to fail. The
General mode has no such rules.
"""

from typing import List, Optional

from abitur_risk.detectors import Detector
from abitur_risk.grades import count_below, fixed, mean, round_half_up
from abitur_risk.models import FederalState, Subject, SubjectType
from abitur_risk.report_models import DetectorResult, RiskFinding, RiskSeverity, TrapType
from abitur_risk.rulesets import StateRuleset

NRW_VOID_YEAR = 2026
NRW_HIGH_DEFICIT_THRESHOLD = 6
NRW_LK_DEFICIT_THRESHOLD = 2

SEMINAR_DEFICIT_THRESHOLD = 5
SEMINAR_OPTIMIZATION_THRESHOLD = 9

SEMINAR_TYPES = (SubjectType.SEMINAR_W, SubjectType.SEMINAR_P)


def count_deficits(subjects, threshold: int, lk_only: bool = False) -> int:
    return sum(
        count_below(s.semester_grades.as_list(), threshold)
        for s in subjects
        if not lk_only or s.type == SubjectType.LK
    )


def is_disqualified(subjects, total_deficits: int, max_deficits: int) -> bool:
    """Deficit overflow, or a 0 in a mandatory or required-attendance subject."""
    if total_deficits > max_deficits:
        return True
    return any(
        0 in s.semester_grades.as_list()
        for s in subjects
        if s.is_mandatory or s.is_belegpflichtig
    )


def seminar_mean(subject: Subject) -> Optional[float]:
    return mean(subject.existing_grades())


def evaluate_nrw(profile, ruleset: StateRuleset) -> List[RiskFinding]:
    """
    Gap-year risk for the NRW 2026 cohort.

    Args:
        profile: NRW profile
        ruleset: NRW constants

    Returns:
        At most one RED finding; empty for other graduation years
    """
    if profile.graduation_year != NRW_VOID_YEAR:
        return []

    active = [s for s in profile.subjects if s.is_active]
    total = count_deficits(active, ruleset.deficit_threshold)
    lk = count_deficits(active, ruleset.deficit_threshold, lk_only=True)

    if is_disqualified(active, total, ruleset.max_deficits):
        return [RiskFinding(
            severity=RiskSeverity.RED,
            trap_type=TrapType.SPECIAL_2026,
            message=(
                "Critical Transition: Since you must repeat, verify immediately if your "
                "school offers a 'G8-Repeater' class. If not, you must register at a "
                "Bündelungsgymnasium."
            ),
            i18n_key='report.special2026.nrw.criticalTransition',
        )]

    if total >= NRW_HIGH_DEFICIT_THRESHOLD or lk >= NRW_LK_DEFICIT_THRESHOLD:
        return [RiskFinding(
            severity=RiskSeverity.RED,
            trap_type=TrapType.SPECIAL_2026,
            message=(
                f"CRITICAL TRANSITION RISK: With {total} total deficits ({lk} in LK courses), "
                f"you are in the danger zone for the 2026 \"Gap Year\" void. Repeating the year at "
                f"this school is likely IMPOSSIBLE due to the G8/G9 transition. Failure may force "
                f"a transfer to a centralized 'Bündelungsgymnasium' with limited capacity. Take "
                f"immediate action to secure your grades."
            ),
            i18n_key='report.special2026.nrw.gapYearCritical',
            i18n_params={'totalDeficits': total, 'lkDeficits': lk},
        )]

    return []


def evaluate_bavaria(profile) -> List[RiskFinding]:
    """Seminar alerts for active Bavarian seminar courses with known scores."""
    findings = []
    for seminar in profile.subjects:
        if not seminar.is_active or seminar.type not in SEMINAR_TYPES:
            continue
        avg = seminar_mean(seminar)
        if avg is None:
            continue

        params = {'subjectName': seminar.name, 'average': round_half_up(avg, 1)}
        if avg < SEMINAR_DEFICIT_THRESHOLD:
            findings.append(RiskFinding(
                severity=RiskSeverity.RED,
                trap_type=TrapType.SPECIAL_2026,
                message=(
                    f"Hard Anchor Alert: \"{seminar.name}\" (avg {fixed(avg, 1)} pts) - A deficit in a "
                    f"Seminar is structurally dangerous in the new G9 system. Prioritize fixing this immediately."
                ),
                i18n_key='report.special2026.bavaria.seminarHardAnchor',
                i18n_params=params,
                affected_subject_ids=[seminar.id],
            ))
        elif avg < SEMINAR_OPTIMIZATION_THRESHOLD:
            findings.append(RiskFinding(
                severity=RiskSeverity.ORANGE,
                trap_type=TrapType.SPECIAL_2026,
                message=(
                    f"Optimization Alert: \"{seminar.name}\" (avg {fixed(avg, 1)} pts) - Seminar points are "
                    f"high-yield. Improving this adds more value than a standard Grundkurs."
                ),
                i18n_key='report.special2026.bavaria.seminarOptimization',
                i18n_params=params,
                affected_subject_ids=[seminar.id],
            ))
    return findings


def detect(profile, ruleset: StateRuleset) -> DetectorResult:
    """
    Apply the transition-year rules of the profile's state.

    Args:
        profile: validated input profile
        ruleset: resolved constants for the profile's jurisdiction

    Returns:
        DetectorResult with findings only; General mode never produces any
    """
    if profile.federal_state == FederalState.NRW:
        findings = evaluate_nrw(profile, ruleset)
    elif profile.federal_state == FederalState.BAVARIA:
        findings = evaluate_bavaria(profile)
    else:
        findings = []

    return DetectorResult(trap_type=TrapType.SPECIAL_2026, findings=findings)


transition_year_detector = Detector(TrapType.SPECIAL_2026, detect)
