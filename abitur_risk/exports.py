"""Tabular report export (CSV and Excel)."""

from io import BytesIO

import pandas as pd

from abitur_risk import config
from abitur_risk.grades import round_half_up
from abitur_risk.report_models import RiskReport

FINDING_COLUMNS = ['Severity', 'Trap Type', 'Message', 'I18n Key', 'Affected Subjects']
SUBJECT_COLUMNS = [
    'Subject ID', 'Subject Name', 'Keystone', 'Zero Point', 'Deficit', 'Projected Points',
    'Trend', 'Risk Multiplier', 'Fragile', 'Unstable', 'Structural Barriers', 'Dominant Stress',
]


def findings_frame(report: RiskReport) -> pd.DataFrame:
    """One row per finding, in report order."""
    rows = [
        {
            'Severity': f.severity.value,
            'Trap Type': f.trap_type.value,
            'Message': f.message,
            'I18n Key': f.i18n_key,
            'Affected Subjects': ','.join(f.affected_subject_ids),
        }
        for f in report.findings
    ]
    return pd.DataFrame(rows, columns=FINDING_COLUMNS)


def annotations_frame(report: RiskReport) -> pd.DataFrame:
    """One row per subject annotation."""
    rows = [
        {
            'Subject ID': a.subject_id,
            'Subject Name': a.subject_name,
            'Keystone': a.is_keystone,
            'Zero Point': a.has_zero_point,
            'Deficit': a.is_deficit,
            'Projected Points': round_half_up(a.contributed_points, 2),
            'Trend': a.trend,
            'Risk Multiplier': a.risk_multiplier,
            'Fragile': a.is_fragile,
            'Unstable': a.is_unstable,
            'Structural Barriers': a.has_structural_barriers,
            'Dominant Stress': a.dominant_stress_type,
        }
        for a in report.subject_annotations.values()
    ]
    return pd.DataFrame(rows, columns=SUBJECT_COLUMNS)


def report_to_csv(report: RiskReport) -> str:
    return findings_frame(report).to_csv(index=False)


def report_to_excel(report: RiskReport) -> bytes:
    """
    Write findings and subject annotations to an .xlsx workbook.

    Returns:
        Workbook bytes with one sheet per table
    """
    output = BytesIO()
    with pd.ExcelWriter(output, engine='openpyxl') as writer:
        findings_frame(report).to_excel(writer, sheet_name=config.EXPORT_SHEET_FINDINGS, index=False)
        annotations_frame(report).to_excel(writer, sheet_name=config.EXPORT_SHEET_SUBJECTS, index=False)
    return output.getvalue()
