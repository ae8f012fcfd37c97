"""Unit tests for the points-projection and exam-risk detectors."""

from abitur_risk.detectors import exam_risk, points_projection
from abitur_risk.models import SubjectType
from abitur_risk.report_models import TrapType
from abitur_risk.rulesets import NRW_RULESET, resolve_ruleset
from tests.factories import general_profile, make_subject, nrw_profile


def test_unknown_semesters_filled_with_mean():
    """LK: 2 * (8 + 10 + 9 + 9)."""
    subject = make_subject('Mathematik', (8, 10, None, None), type=SubjectType.LK)
    assert points_projection.project_points(subject, NRW_RULESET) == 72.0


def test_inactive_or_ungraded_contribute_nothing():
    assert points_projection.project_points(make_subject(grades=(10, 10, 10, 10), is_active=False), NRW_RULESET) == 0.0
    assert points_projection.project_points(make_subject(grades=()), NRW_RULESET) == 0.0


def test_general_weights():
    profile = general_profile([make_subject('Chemie', (10, 10, 10, 10), id='ch')], gk_weight=1.5)
    result = points_projection.detect(profile, resolve_ruleset(profile))

    assert result.findings == []
    assert result.subject_annotations[0].contributed_points == 60.0


def test_exam_risk_is_silent():
    profile = nrw_profile()
    result = exam_risk.detect(profile, resolve_ruleset(profile))

    assert result.trap_type == TrapType.EXAM_RISK
    assert result.findings == []
    assert result.subject_annotations == []
