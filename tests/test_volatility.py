"""Unit tests for the exam volatility detector."""

import pytest

from abitur_risk.detectors import volatility
from abitur_risk.report_models import RiskSeverity
from abitur_risk.rulesets import resolve_ruleset
from tests.factories import general_profile, make_subject, nrw_profile


def run(profile):
    return volatility.detect(profile, resolve_ruleset(profile))


def exam(name, grades, **overrides):
    return make_subject(name, grades, is_exam_subject=True, **overrides)


def test_classify_tier_boundaries():
    assert volatility.classify_tier(0.0) == volatility.STABLE
    assert volatility.classify_tier(1.5) == volatility.STABLE
    assert volatility.classify_tier(1.51) == volatility.VARIABLE
    assert volatility.classify_tier(3.5) == volatility.VARIABLE
    assert volatility.classify_tier(3.51) == volatility.VOLATILE


def test_stable_subject_has_no_warning():
    """[10,10,10,10] is stable and only yields the all-clear."""
    result = run(nrw_profile([exam('Mathematik', (10, 10, 10, 10))]))

    assert [f.i18n_key for f in result.findings] == ['report.volatility.allClear']
    assert result.findings[0].severity == RiskSeverity.GREEN


def test_volatile_subject_single_finding():
    """[15,2,14,1] is volatile and yields exactly one volatile finding."""
    subject = exam('Physik', (15, 2, 14, 1), id='ph')
    analysis = volatility.analyze_subject(subject, volatility.SD_VARIABLE_CEIL)
    assert analysis.tier == volatility.VOLATILE
    assert analysis.sd == pytest.approx(6.519, abs=0.001)

    findings = run(nrw_profile([subject])).findings
    assert len(findings) == 1
    assert findings[0].severity == RiskSeverity.RED
    assert findings[0].i18n_key == 'report.volatility.volatile'
    assert findings[0].affected_subject_ids == ['ph']


def test_variable_subject():
    findings = run(nrw_profile([exam('Chemie', (8, 12, 8, 12))])).findings
    assert [f.i18n_key for f in findings] == ['report.volatility.variable']
    assert findings[0].severity == RiskSeverity.ORANGE


def test_downward_trend():
    result = run(nrw_profile([exam('Biologie', (12, 10, 8, 6), id='bi')]))

    assert [f.i18n_key for f in result.findings] == [
        'report.volatility.variable',
        'report.volatility.downwardTrend',
    ]
    assert '12 → 10 → 8 → 6' in result.findings[1].message
    assert result.subject_annotations[0].trend == 'declining'


def test_improving_trend_annotation():
    result = run(nrw_profile([exam('Biologie', (10, 11, 11, 12), id='bi')]))
    assert result.subject_annotations[0].trend == 'improving'


def test_low_mean_performance_risk():
    findings = run(nrw_profile([exam('Latein', (4, 4, 4, 4))])).findings
    assert [f.i18n_key for f in findings] == ['report.volatility.performanceRisk']


def test_insufficient_data():
    findings = run(nrw_profile([exam('Latein', (10, None, None, None))])).findings
    assert [f.i18n_key for f in findings] == ['report.volatility.insufficientData']
    assert findings[0].severity == RiskSeverity.ORANGE


def test_safe_bets_without_exam_subjects():
    """Up to three of the most stable active subjects are suggested."""
    profile = nrw_profile([
        make_subject('Geschichte', (10, 10, 10, 10), id='a'),
        make_subject('Erdkunde', (10, 11, 10, 11), id='b'),
        make_subject('Religion', (9, 10, 9, 10), id='c'),
        make_subject('Kunst', (10, 11, 10, 12), id='d'),
        make_subject('Musik', (10, 10, 10, 10), id='e', is_active=False),
    ])
    findings = run(profile).findings

    assert len(findings) == 3
    assert all(f.i18n_key == 'report.volatility.safeBet' for f in findings)
    assert findings[0].affected_subject_ids == ['a']
    assert ['e'] not in [f.affected_subject_ids for f in findings]


def test_no_exam_subjects_and_no_safe_bet():
    profile = nrw_profile([make_subject('Geschichte', (15, 2, 14, 1))])
    findings = run(profile).findings

    assert [f.i18n_key for f in findings] == ['report.volatility.noExamSubjects']
    assert findings[0].severity == RiskSeverity.ORANGE


def test_general_volatility_threshold():
    """General mode lowers or raises the volatile ceiling."""
    subjects = [exam('Chemie', (8, 12, 8, 12))]
    strict = run(general_profile(subjects, volatility_threshold=1.8)).findings
    assert [f.i18n_key for f in strict] == ['report.volatility.volatile']
