"""Psychosocial and confidence risk: hidden risks that grades alone do not show."""

from typing import List

from abitur_risk.detectors import Detector
from abitur_risk.grades import fixed, mean
from abitur_risk.models import Subject
from abitur_risk.psychosocial_risk import (
    CRITICAL_STABILITY,
    HIDDEN_VOLATILITY,
    dominant_stress_type,
    evaluate_psychosocial_risk,
)
from abitur_risk.report_models import (
    AnnotationPatch,
    DetectorResult,
    RiskFinding,
    RiskSeverity,
    TrapType,
)


def average_grade(subject: Subject) -> float:
    """Semester average, else the final exam grade, else 0."""
    avg = mean(subject.existing_grades())
    if avg is not None:
        return avg
    if subject.final_exam_grade is not None:
        return float(subject.final_exam_grade)
    return 0.0


def _orange(message, key, params, affected) -> RiskFinding:
    return RiskFinding(
        severity=RiskSeverity.ORANGE,
        trap_type=TrapType.PSYCHOSOCIAL,
        message=message,
        i18n_key=key,
        i18n_params=params,
        affected_subject_ids=list(affected),
    )


def detect(profile, ruleset) -> DetectorResult:
    """
    Score every subject for fragility and instability.

    Args:
        profile: validated input profile
        ruleset: resolved constants for the profile's jurisdiction

    Returns:
        DetectorResult with psychosocial findings and per-subject risk annotations
    """
    findings: List[RiskFinding] = []
    annotations: List[AnnotationPatch] = []
    fragile = 0
    unstable = 0
    critical = 0
    affected: List[str] = []

    for subject in profile.subjects:
        grade = average_grade(subject)
        risk = evaluate_psychosocial_risk(grade, subject.confidence, subject.stress_factors)

        annotations.append(AnnotationPatch(
            subject_id=subject.id,
            risk_multiplier=risk.risk_multiplier,
            is_fragile=risk.is_fragile,
            is_unstable=risk.is_unstable,
            has_structural_barriers=risk.has_structural_barriers,
            dominant_stress_type=dominant_stress_type(risk.stress_classification),
        ))

        if risk.is_fragile:
            fragile += 1
            affected.append(subject.id)
        if risk.is_unstable:
            unstable += 1
            if subject.id not in affected:
                affected.append(subject.id)
        if risk.severity == 'CRITICAL':
            critical += 1

        if risk.risk_type == HIDDEN_VOLATILITY:
            findings.append(_orange(
                f"{subject.name}: {risk.message}",
                'report.psychosocial.fragility',
                {'subjectName': subject.name, 'grade': fixed(grade, 1), 'confidence': subject.confidence},
                [subject.id],
            ))
        elif risk.risk_type == CRITICAL_STABILITY:
            findings.append(_orange(
                f"{subject.name}: {risk.message}",
                'report.psychosocial.collapse',
                {'subjectName': subject.name, 'grade': fixed(grade, 1)},
                [subject.id],
            ))

    if fragile >= 2:
        findings.append(_orange(
            f"{fragile} subjects show fragility (good grades but low confidence). High burnout risk detected.",
            'report.psychosocial.multipleFragile',
            {'count': fragile},
            affected,
        ))
    if unstable >= 2:
        findings.append(_orange(
            f"{unstable} subjects are unstable (borderline grades with anxiety). Critical stability risk.",
            'report.psychosocial.multipleUnstable',
            {'count': unstable},
            affected,
        ))
    if critical >= 1:
        findings.append(_orange(
            f"{critical} subject(s) at critical psychosocial risk. Immediate intervention recommended.",
            'report.psychosocial.criticalRisk',
            {'count': critical},
            affected,
        ))

    if not findings:
        findings.append(RiskFinding(
            severity=RiskSeverity.GREEN,
            trap_type=TrapType.PSYCHOSOCIAL,
            message='No significant psychosocial risks detected. Confidence and stress levels appear manageable.',
            i18n_key='report.psychosocial.healthy',
        ))

    return DetectorResult(
        trap_type=TrapType.PSYCHOSOCIAL,
        findings=findings,
        subject_annotations=annotations,
    )


psychosocial_detector = Detector(TrapType.PSYCHOSOCIAL, detect)
