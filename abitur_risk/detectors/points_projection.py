"""Projected weighted point contribution per subject. Annotates only, never emits findings."""

from abitur_risk.detectors import Detector
from abitur_risk.grades import known, mean, unknown_slots
from abitur_risk.models import Subject, SubjectType
from abitur_risk.report_models import AnnotationPatch, DetectorResult, TrapType
from abitur_risk.rulesets import StateRuleset


def project_points(subject: Subject, ruleset: StateRuleset) -> float:
    """
    Weighted semester points, with unknown semesters filled by the subject's mean.

    Inactive subjects and subjects with no known score contribute 0.
    """
    if not subject.is_active:
        return 0.0
    slots = subject.semester_grades.as_list()
    scores = known(slots)
    avg = mean(scores)
    if avg is None:
        return 0.0

    weight = ruleset.lk_weight if subject.type == SubjectType.LK else ruleset.gk_weight
    return weight * (sum(scores) + avg * unknown_slots(slots))


def detect(profile, ruleset: StateRuleset) -> DetectorResult:
    """
    Annotate every subject with its projected weighted points.

    Args:
        profile: validated input profile
        ruleset: resolved constants for the profile's jurisdiction

    Returns:
        DetectorResult without findings
    """
    return DetectorResult(
        trap_type=TrapType.POINTS_PROJECTION,
        subject_annotations=[
            AnnotationPatch(
                subject_id=s.id,
                subject_name=s.name,
                contributed_points=project_points(s, ruleset),
            )
            for s in profile.subjects
        ],
    )


points_projection_detector = Detector(TrapType.POINTS_PROJECTION, detect)
