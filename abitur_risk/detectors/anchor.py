"""
GPA anchor / Einbringungspflicht.

Statutory subjects must be counted into the final score. When they
score well below the electives they drag the average down (the anchor
effect); when they score above, they lift it.
"""

import re
from typing import List, NamedTuple, Optional, Set

from abitur_risk.detectors import Detector
from abitur_risk.grades import mean, round_half_up
from abitur_risk.models import FederalState
from abitur_risk.report_models import (
    AnnotationPatch,
    DetectorResult,
    RiskFinding,
    RiskSeverity,
    TrapType,
)

DEFAULT_ANCHOR_THRESHOLD = 3.0

MATH_PATTERN = re.compile(r'^math', re.IGNORECASE)
GERMAN_PATTERN = re.compile(r'^deutsch', re.IGNORECASE)
FOREIGN_LANGUAGE_PATTERN = re.compile(
    r'^(englisch|franz[öo]sisch|latein|spanisch|italienisch|russisch|chinesisch|'
    r'japanisch|t[üu]rkisch|niederl[äa]ndisch|portugiesisch|polnisch|hebr[äa]isch|'
    r'altgriechisch|neugriechisch)',
    re.IGNORECASE,
)
NATURAL_SCIENCE_PATTERN = re.compile(r'^(physik|chemie|biologie|bio|informatik)', re.IGNORECASE)


def _is_core(name: str) -> bool:
    return bool(MATH_PATTERN.match(name) or GERMAN_PATTERN.match(name))


def identify_statutory_subjects(profile) -> Set[str]:
    """
    IDs of subjects that must be counted toward the final score.

    NRW: math, German, the first foreign language and the first natural
    science. Bavaria: math, German and every exam subject. General: any
    subject whose name contains one of the configured mandatory names.
    """
    subjects = profile.subjects
    statutory: Set[str] = set()

    if profile.federal_state == FederalState.NRW:
        statutory.update(s.id for s in subjects if _is_core(s.name))
        first_language = next((s for s in subjects if FOREIGN_LANGUAGE_PATTERN.match(s.name)), None)
        if first_language is not None:
            statutory.add(first_language.id)
        first_science = next((s for s in subjects if NATURAL_SCIENCE_PATTERN.match(s.name)), None)
        if first_science is not None:
            statutory.add(first_science.id)

    elif profile.federal_state == FederalState.BAVARIA:
        statutory.update(s.id for s in subjects if _is_core(s.name) or s.is_exam_subject)

    else:
        names = [n.lower() for n in profile.rules_config.custom_mandatory_subjects]
        if names:
            for s in subjects:
                lowered = s.name.lower()
                if any(n in lowered for n in names):
                    statutory.add(s.id)

    return statutory


class BucketAnalysis(NamedTuple):
    anchor_avg: Optional[float]
    float_avg: Optional[float]
    delta: Optional[float]
    anchor_ids: List[str]
    float_ids: List[str]


def analyze_buckets(subjects, statutory_ids: Set[str]) -> BucketAnalysis:
    """Split graded subjects into anchor and float buckets and compare means."""
    anchor_grades: List[int] = []
    float_grades: List[int] = []
    anchor_ids: List[str] = []
    float_ids: List[str] = []

    for subject in subjects:
        grades = subject.existing_grades()
        if not grades:
            continue
        if subject.id in statutory_ids:
            anchor_grades.extend(grades)
            anchor_ids.append(subject.id)
        else:
            float_grades.extend(grades)
            float_ids.append(subject.id)

    anchor_avg = mean(anchor_grades)
    float_avg = mean(float_grades)
    delta = None
    if anchor_avg is not None and float_avg is not None:
        # positive = anchors pulling the score down
        delta = round_half_up(float_avg - anchor_avg, 2)

    return BucketAnalysis(anchor_avg, float_avg, delta, anchor_ids, float_ids)


def anchor_threshold(profile) -> float:
    """Gap in points above which anchors count as a drag."""
    if profile.federal_state == FederalState.GENERAL:
        return profile.rules_config.anchor_threshold
    return DEFAULT_ANCHOR_THRESHOLD


def build_findings(profile, analysis: BucketAnalysis) -> List[RiskFinding]:
    """
    Turn the bucket comparison into at most one finding.

    Args:
        profile: validated input profile
        analysis: anchor and float bucket means

    Returns:
        An ORANGE drag warning, a GREEN foundation note, or nothing
    """
    if analysis.delta is None:
        return []

    threshold = anchor_threshold(profile)
    anchor_avg = round_half_up(analysis.anchor_avg, 2)
    float_avg = round_half_up(analysis.float_avg, 2)

    if analysis.delta > threshold:
        return [RiskFinding(
            severity=RiskSeverity.ORANGE,
            trap_type=TrapType.ANCHOR,
            message=(
                f"Structural Drag Detected. Your electives average {float_avg} pts, "
                f"but mandatory subjects average {anchor_avg} pts. "
                f"This \"Anchor\" ({analysis.delta} pt gap) is lowering your final GPA prediction."
            ),
            i18n_key='report.anchor.detected',
            i18n_params={
                'floatAvg': float_avg,
                'anchorAvg': anchor_avg,
                'delta': analysis.delta,
                'threshold': threshold,
            },
            affected_subject_ids=analysis.anchor_ids,
        )]

    if analysis.delta < 0:
        return [RiskFinding(
            severity=RiskSeverity.GREEN,
            trap_type=TrapType.ANCHOR,
            message=(
                f"Strong Foundation. Your mandatory core subjects average {anchor_avg} pts, "
                f"which is actually boosting your GPA compared to electives ({float_avg} pts)."
            ),
            i18n_key='report.anchor.inverted',
            i18n_params={
                'floatAvg': float_avg,
                'anchorAvg': anchor_avg,
                'delta': abs(analysis.delta),
            },
            affected_subject_ids=analysis.anchor_ids + analysis.float_ids,
        )]

    return []


def detect(profile, ruleset) -> DetectorResult:
    """
    Compare statutory subjects against electives.

    Args:
        profile: validated input profile
        ruleset: resolved constants for the profile's jurisdiction

    Returns:
        DetectorResult with anchor findings; statutory subjects are annotated as keystones
    """
    statutory_ids = identify_statutory_subjects(profile)
    analysis = analyze_buckets(profile.subjects, statutory_ids)

    return DetectorResult(
        trap_type=TrapType.ANCHOR,
        findings=build_findings(profile, analysis),
        subject_annotations=[
            AnnotationPatch(subject_id=s.id, subject_name=s.name, is_keystone=s.id in statutory_ids)
            for s in profile.subjects
        ],
    )


anchor_detector = Detector(TrapType.ANCHOR, detect)
