"""Tests for CSV and Excel report export."""

from io import BytesIO, StringIO

import pandas as pd

from abitur_risk import run_risk_engine
from abitur_risk.exports import (
    FINDING_COLUMNS,
    SUBJECT_COLUMNS,
    annotations_frame,
    findings_frame,
    report_to_csv,
    report_to_excel,
)
from tests.factories import make_subject, nrw_profile


def anchored_report():
    return run_risk_engine(nrw_profile([
        make_subject('Mathematik', (5, 5, 5, 5), id='ma'),
        make_subject('Deutsch', (5, 5, 5, 5), id='de'),
        make_subject('Kunst', (12, 12, 12, 12), id='ku'),
    ]))


def test_findings_frame():
    report = anchored_report()
    df = findings_frame(report)

    assert list(df.columns) == FINDING_COLUMNS
    assert len(df) == len(report.findings)
    assert df['Severity'].iloc[0] == report.findings[0].severity.value
    anchor_row = df[df['I18n Key'] == 'report.anchor.detected'].iloc[0]
    assert anchor_row['Affected Subjects'] == 'ma,de'
    assert anchor_row['Trap Type'] == 'Anchor'


def test_findings_frame_empty_report_keeps_columns():
    report = run_risk_engine(nrw_profile(), detectors=[])
    df = findings_frame(report)

    assert df.empty
    assert list(df.columns) == FINDING_COLUMNS


def test_annotations_frame():
    df = annotations_frame(anchored_report())

    assert list(df.columns) == SUBJECT_COLUMNS
    assert list(df['Subject ID']) == ['ma', 'de', 'ku']
    assert df.set_index('Subject ID').loc['ma', 'Keystone']
    assert df.set_index('Subject ID').loc['ku', 'Projected Points'] == 48


def test_report_to_csv():
    report = anchored_report()
    text = report_to_csv(report)

    assert text.splitlines()[0] == 'Severity,Trap Type,Message,I18n Key,Affected Subjects'
    df = pd.read_csv(StringIO(text))
    assert len(df) == len(report.findings)


def test_report_to_excel():
    report = anchored_report()
    data = report_to_excel(report)

    assert data[:2] == b'PK'
    sheets = pd.read_excel(BytesIO(data), sheet_name=None)
    assert set(sheets) == {'Findings', 'Subjects'}
    assert len(sheets['Findings']) == len(report.findings)
    assert len(sheets['Subjects']) == 3
