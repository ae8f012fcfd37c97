"""Unit tests for psychosocial risk scoring and its detector."""

import pytest

from abitur_risk import psychosocial_risk as psr
from abitur_risk.detectors import psychosocial
from abitur_risk.report_models import RiskSeverity
from abitur_risk.rulesets import resolve_ruleset
from tests.factories import make_subject, nrw_profile


def run(profile):
    return psychosocial.detect(profile, resolve_ruleset(profile))


def keys(result):
    return [f.i18n_key for f in result.findings]


def test_classify_stress_factors():
    classes = psr.classify_stress_factors(['Time Management', 'Anxiety', 'External Pressure', 'Perfectionism'])

    assert [c.type for c in classes] == [psr.METHODOLOGICAL, psr.PSYCHOLOGICAL, psr.STRUCTURAL]
    assert classes[1].factors == ['Anxiety', 'Perfectionism']
    assert psr.classify_stress_factors([]) == []
    assert psr.classify_stress_factors(['Something else']) == []


def test_risk_multiplier():
    assert psr.calculate_risk_multiplier(10, 10, []) == 1.0
    # confidence gap 8/20 plus the fragility bonus
    assert psr.calculate_risk_multiplier(12, 2, []) == pytest.approx(1.8)
    assert psr.calculate_risk_multiplier(9, 6, ['Procrastination']) == pytest.approx(1.35)
    assert psr.calculate_risk_multiplier(5, 2, ['Anxiety', 'Health Issues', 'Procrastination']) == 2.0


def test_fragility_scenario():
    risk = psr.evaluate_psychosocial_risk(12, 3, [])

    assert risk.risk_type == psr.HIDDEN_VOLATILITY
    assert risk.severity == 'HIGH'
    assert risk.is_fragile
    assert not risk.is_unstable


def test_instability_scenario():
    risk = psr.evaluate_psychosocial_risk(5, 6, ['Anxiety', 'Health Issues'])

    assert risk.risk_type == psr.CRITICAL_STABILITY
    assert risk.severity == 'CRITICAL'
    assert risk.is_unstable
    assert risk.has_structural_barriers


def test_moderate_scenarios():
    low_confidence = psr.evaluate_psychosocial_risk(9, 4, [])
    assert low_confidence.risk_type == psr.NO_RISK
    assert low_confidence.severity == 'MODERATE'
    assert low_confidence.is_fragile
    assert low_confidence.message == psr.MESSAGES['moderate_confidence']

    many_tags = psr.evaluate_psychosocial_risk(7, 6, ['Time Management', 'Procrastination', 'Perfectionism'])
    assert many_tags.severity == 'HIGH'
    assert many_tags.is_unstable
    assert not many_tags.is_fragile
    assert many_tags.message == psr.MESSAGES['moderate_stress']


def test_low_scenario_resets_multiplier():
    risk = psr.evaluate_psychosocial_risk(10, 8, ['Procrastination'])

    assert risk.severity == 'LOW'
    assert risk.risk_multiplier == 1.0
    assert not risk.is_fragile and not risk.is_unstable


def test_dominant_stress_type():
    tie = psr.classify_stress_factors(['Anxiety', 'Time Management'])
    assert psr.dominant_stress_type(tie) == psr.METHODOLOGICAL

    mostly_psychological = psr.classify_stress_factors(['Anxiety', 'Perfectionism', 'Procrastination'])
    assert psr.dominant_stress_type(mostly_psychological) == psr.PSYCHOLOGICAL

    assert psr.dominant_stress_type([]) is None


def test_summarize_psychosocial_risks():
    results = {
        'a': psr.evaluate_psychosocial_risk(12, 2, []),
        'b': psr.evaluate_psychosocial_risk(5, 6, ['Anxiety']),
        'c': psr.evaluate_psychosocial_risk(10, 8, []),
    }
    summary = psr.summarize_psychosocial_risks(results)

    assert summary.total_subjects == 3
    assert summary.fragile_subjects == 1
    assert summary.unstable_subjects == 1
    assert summary.critical_subjects == 1
    assert summary.dominant_stress_type == psr.PSYCHOLOGICAL


def test_average_grade_fallbacks():
    assert psychosocial.average_grade(make_subject(grades=(8, 10, None, None))) == 9.0
    assert psychosocial.average_grade(make_subject(grades=(), final_exam_grade=12)) == 12.0
    assert psychosocial.average_grade(make_subject(grades=())) == 0.0


def test_healthy_profile():
    result = run(nrw_profile())

    assert keys(result) == ['report.psychosocial.healthy']
    assert result.findings[0].severity == RiskSeverity.GREEN
    assert all(a.risk_multiplier == 1.0 for a in result.subject_annotations)


def test_multiple_fragile_subjects():
    profile = nrw_profile([
        make_subject('Mathematik', (12, 12, 12, 12), id='ma', confidence=2),
        make_subject('Physik', (13, 13, 13, 13), id='ph', confidence=3),
    ])
    result = run(profile)

    assert keys(result) == [
        'report.psychosocial.fragility',
        'report.psychosocial.fragility',
        'report.psychosocial.multipleFragile',
    ]
    assert all(f.severity == RiskSeverity.ORANGE for f in result.findings)
    assert result.findings[0].i18n_params == {'subjectName': 'Mathematik', 'grade': '12.0', 'confidence': 2}
    assert result.findings[2].affected_subject_ids == ['ma', 'ph']


def test_unstable_subject_is_critical():
    profile = nrw_profile([
        make_subject('Chemie', (5, 5, 6, 6), id='ch', stress_factors=['Exam Anxiety', 'Health Issues']),
        make_subject('Geschichte', (11, 11, 11, 11), id='ge'),
    ])
    result = run(profile)

    assert keys(result) == ['report.psychosocial.collapse', 'report.psychosocial.criticalRisk']
    assert result.findings[1].affected_subject_ids == ['ch']

    annotations = {a.subject_id: a for a in result.subject_annotations}
    assert annotations['ch'].is_unstable
    assert annotations['ch'].has_structural_barriers
    assert annotations['ch'].dominant_stress_type == psr.PSYCHOLOGICAL
    assert not annotations['ge'].is_unstable
