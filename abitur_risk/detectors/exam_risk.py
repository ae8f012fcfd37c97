"""Exam-block risk. Registered so the registry is complete; produces nothing yet."""

from abitur_risk.detectors import Detector
from abitur_risk.report_models import DetectorResult, TrapType


def detect(profile, ruleset) -> DetectorResult:
    # TODO: project the exam block against ruleset.min_exam_points once exam weights per state are modelled.
    return DetectorResult(trap_type=TrapType.EXAM_RISK)


exam_risk_detector = Detector(TrapType.EXAM_RISK, detect)
