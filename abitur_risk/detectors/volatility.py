"""
Exam volatility index.

Exam subjects cannot be swapped once chosen, so an exam subject with
wildly swinging semester scores is an unpredictable bet. Subjects are
tiered by the population standard deviation of their known scores:

    STABLE    sigma <= 1.5
    VARIABLE  1.5 < sigma <= ceiling (3.5, or volatility_threshold in General mode)
    VOLATILE  sigma > ceiling

With no exam subjects selected the detector switches to suggesting
the most stable active subjects instead.
"""

from typing import List, NamedTuple

from abitur_risk.detectors import Detector
from abitur_risk.grades import fixed, is_strictly_declining, mean, population_std
from abitur_risk.models import FederalState, Subject
from abitur_risk.report_models import (
    AnnotationPatch,
    DetectorResult,
    RiskFinding,
    RiskSeverity,
    TrapType,
)

SD_STABLE_CEIL = 1.5
SD_VARIABLE_CEIL = 3.5
PERFORMANCE_RISK_MEAN = 5
MIN_GRADES_FOR_SD = 2
SAFE_BET_LIMIT = 3

STABLE = 'STABLE'
VARIABLE = 'VARIABLE'
VOLATILE = 'VOLATILE'


class SubjectAnalysis(NamedTuple):
    subject_id: str
    subject_name: str
    grades: List[int]
    mean: float
    sd: float
    tier: str
    is_downward_trend: bool
    insufficient_data: bool


def classify_tier(sd: float, volatile_ceil: float = SD_VARIABLE_CEIL) -> str:
    """
    Map a standard deviation to STABLE, VARIABLE or VOLATILE.

    Args:
        sd: population standard deviation of the scores
        volatile_ceil: largest sd still counted as VARIABLE

    Returns:
        Tier name
    """
    if sd <= SD_STABLE_CEIL:
        return STABLE
    if sd <= volatile_ceil:
        return VARIABLE
    return VOLATILE


def volatile_ceiling(profile) -> float:
    """Volatile ceiling for the profile (configurable in General mode only)."""
    if profile.federal_state == FederalState.GENERAL:
        return profile.rules_config.volatility_threshold
    return SD_VARIABLE_CEIL


def analyze_subject(subject: Subject, volatile_ceil: float) -> SubjectAnalysis:
    """
    Compute the volatility statistics of one subject.

    Args:
        subject: subject to analyse
        volatile_ceil: largest sd still counted as VARIABLE

    Returns:
        SubjectAnalysis; fewer than two scores are marked insufficient and tiered STABLE
    """
    grades = subject.existing_grades()
    insufficient = len(grades) < MIN_GRADES_FOR_SD
    sd = population_std(grades)
    return SubjectAnalysis(
        subject_id=subject.id,
        subject_name=subject.name,
        grades=grades,
        mean=mean(grades) or 0.0,
        sd=sd,
        tier=STABLE if insufficient else classify_tier(sd, volatile_ceil),
        is_downward_trend=is_strictly_declining(grades),
        insufficient_data=insufficient,
    )


def trend_of(analysis: SubjectAnalysis) -> str:
    if analysis.is_downward_trend:
        return 'declining'
    if len(analysis.grades) >= 2 and analysis.grades[-1] > analysis.grades[0]:
        return 'improving'
    return 'stable'


def _finding(severity, key, message, subject_ids) -> RiskFinding:
    return RiskFinding(
        severity=severity,
        trap_type=TrapType.VOLATILITY,
        message=message,
        i18n_key=key,
        affected_subject_ids=subject_ids,
    )


def _stats(a: SubjectAnalysis) -> str:
    return f"σ = {fixed(a.sd, 2)}, mean = {fixed(a.mean, 1)}"


def _safe_bets(active: List[Subject], volatile_ceil: float) -> List[RiskFinding]:
    analyses = [analyze_subject(s, volatile_ceil) for s in active]
    ranked = sorted((a for a in analyses if not a.insufficient_data), key=lambda a: a.sd)

    findings = [
        _finding(
            RiskSeverity.GREEN,
            'report.volatility.safeBet',
            f"\"{a.subject_name}\" is a SAFE BET for exam selection ({_stats(a)}). "
            f"Consistent, reliable performance.",
            [a.subject_id],
        )
        for a in ranked[:SAFE_BET_LIMIT]
        if a.tier == STABLE
    ]
    if not findings:
        findings.append(_finding(
            RiskSeverity.ORANGE,
            'report.volatility.noExamSubjects',
            'No exam subjects have been selected yet. Select your exam subjects for a volatility analysis.',
            [],
        ))
    return findings


def detect(profile, ruleset) -> DetectorResult:
    """
    Analyse exam subjects, or suggest safe bets when none are selected.

    Args:
        profile: validated input profile
        ruleset: resolved constants for the profile's jurisdiction

    Returns:
        DetectorResult with volatility findings and trend annotations
    """
    volatile_ceil = volatile_ceiling(profile)
    active = [s for s in profile.subjects if s.is_active]
    exam_subjects = [s for s in active if s.is_exam_subject]

    if not exam_subjects:
        return DetectorResult(
            trap_type=TrapType.VOLATILITY,
            findings=_safe_bets(active, volatile_ceil),
        )

    findings: List[RiskFinding] = []
    annotations: List[AnnotationPatch] = []

    for subject in exam_subjects:
        a = analyze_subject(subject, volatile_ceil)

        if a.insufficient_data:
            findings.append(_finding(
                RiskSeverity.ORANGE,
                'report.volatility.insufficientData',
                f"\"{a.subject_name}\" has only {len(a.grades)} grade(s) - not enough data to "
                f"assess volatility. At least {MIN_GRADES_FOR_SD} grades are needed.",
                [a.subject_id],
            ))
            continue

        if a.tier == VOLATILE:
            findings.append(_finding(
                RiskSeverity.RED,
                'report.volatility.volatile',
                f"Exam subject \"{a.subject_name}\" is VOLATILE ({_stats(a)}). Grades swing wildly "
                f"between semesters - high risk of an unpredictable exam result.",
                [a.subject_id],
            ))
        elif a.tier == VARIABLE:
            findings.append(_finding(
                RiskSeverity.ORANGE,
                'report.volatility.variable',
                f"Exam subject \"{a.subject_name}\" shows VARIABLE performance ({_stats(a)}). "
                f"Monitor closely for further fluctuation.",
                [a.subject_id],
            ))

        if a.is_downward_trend:
            path = ' → '.join(str(g) for g in a.grades)
            findings.append(_finding(
                RiskSeverity.ORANGE,
                'report.volatility.downwardTrend',
                f"Exam subject \"{a.subject_name}\" has a NEGATIVE MOMENTUM - grades are strictly "
                f"declining across semesters ({path}).",
                [a.subject_id],
            ))

        # A volatile subject already carries a RED alarm.
        if a.mean < PERFORMANCE_RISK_MEAN and a.tier != VOLATILE:
            findings.append(_finding(
                RiskSeverity.ORANGE,
                'report.volatility.performanceRisk',
                f"Exam subject \"{a.subject_name}\" has a consistently LOW mean ({fixed(a.mean, 1)} pts). "
                f"Even with low volatility, the baseline performance is concerning.",
                [a.subject_id],
            ))

        annotations.append(AnnotationPatch(
            subject_id=a.subject_id,
            subject_name=a.subject_name,
            trend=trend_of(a),
        ))

    if not findings:
        findings.append(_finding(
            RiskSeverity.GREEN,
            'report.volatility.allClear',
            'All exam subjects show stable or acceptable performance. No volatility concerns detected.',
            [],
        ))

    return DetectorResult(
        trap_type=TrapType.VOLATILITY,
        findings=findings,
        subject_annotations=annotations,
    )


volatility_detector = Detector(TrapType.VOLATILITY, detect)
