"""Unit tests for the anchor (mandatory drag) detector."""

from abitur_risk.detectors import anchor
from abitur_risk.report_models import RiskSeverity
from abitur_risk.rulesets import resolve_ruleset
from tests.factories import bavaria_profile, general_profile, make_subject, nrw_profile


def run(profile):
    return anchor.detect(profile, resolve_ruleset(profile))


def test_anchor_drag_detected():
    """Anchor mean 5 against float mean 12 is one structural warning."""
    profile = nrw_profile([
        make_subject('Mathematik', (5, 5, 5, 5), id='ma'),
        make_subject('Kunst', (12, 12, 12, 12), id='ku'),
    ])
    findings = run(profile).findings

    assert len(findings) == 1
    assert findings[0].severity == RiskSeverity.ORANGE
    assert findings[0].i18n_key == 'report.anchor.detected'
    assert findings[0].i18n_params['delta'] == 7.0
    assert findings[0].affected_subject_ids == ['ma']


def test_anchor_inverted_is_positive():
    """Anchor mean 12 against float mean 8 is one positive finding."""
    profile = nrw_profile([
        make_subject('Mathematik', (12, 12, 12, 12), id='ma'),
        make_subject('Kunst', (8, 8, 8, 8), id='ku'),
    ])
    findings = run(profile).findings

    assert len(findings) == 1
    assert findings[0].severity == RiskSeverity.GREEN
    assert findings[0].i18n_key == 'report.anchor.inverted'
    assert findings[0].i18n_params['delta'] == 4.0
    assert findings[0].affected_subject_ids == ['ma', 'ku']


def test_small_gap_is_quiet():
    """Anchor mean 9 against float mean 11 stays under the 3.0 threshold."""
    profile = nrw_profile([
        make_subject('Mathematik', (9, 9, 9, 9)),
        make_subject('Kunst', (11, 11, 11, 11)),
    ])
    assert run(profile).findings == []


def test_missing_bucket_gives_no_finding():
    profile = nrw_profile([make_subject('Kunst', (4, 4, 4, 4))])
    assert run(profile).findings == []


def test_nrw_statutory_subjects():
    """Math, German, the first foreign language and the first science."""
    profile = nrw_profile([
        make_subject('Mathematik', id='ma'),
        make_subject('Deutsch', id='de'),
        make_subject('Englisch', id='en'),
        make_subject('Französisch', id='fr'),
        make_subject('Biologie', id='bi'),
        make_subject('Chemie', id='ch'),
        make_subject('Geschichte', id='ge'),
    ])
    assert anchor.identify_statutory_subjects(profile) == {'ma', 'de', 'en', 'bi'}


def test_bavaria_exam_subjects_are_anchors():
    profile = bavaria_profile([
        make_subject('Mathematik', id='ma'),
        make_subject('Deutsch', id='de'),
        make_subject('Geschichte', id='ge', is_exam_subject=True),
        make_subject('Kunst', id='ku'),
    ])
    assert anchor.identify_statutory_subjects(profile) == {'ma', 'de', 'ge'}


def test_general_custom_mandatory_and_threshold():
    subjects = [
        make_subject('Biologie', (5, 5, 5, 5), id='bi'),
        make_subject('Kunst', (12, 12, 12, 12), id='ku'),
    ]

    profile = general_profile(subjects, custom_mandatory_subjects=['Bio'])
    assert anchor.identify_statutory_subjects(profile) == {'bi'}
    assert run(profile).findings[0].i18n_key == 'report.anchor.detected'

    relaxed = general_profile(subjects, custom_mandatory_subjects=['Bio'], anchor_threshold=10)
    assert run(relaxed).findings == []

    assert anchor.identify_statutory_subjects(general_profile(subjects)) == set()


def test_statutory_subjects_annotated_as_keystones():
    profile = nrw_profile([
        make_subject('Mathematik', id='ma'),
        make_subject('Kunst', id='ku'),
    ])
    flags = {a.subject_id: a.is_keystone for a in run(profile).subject_annotations}
    assert flags == {'ma': True, 'ku': False}
