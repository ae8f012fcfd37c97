"""
Profile / Schwerpunkt validation.

Counts active subjects per content area, checks the state's minimum
counts, and simulates dropping each subject: when a requirement sits
exactly at its minimum, every subject feeding it is a keystone.
"""

import re
from typing import Dict, List, NamedTuple, Set

from abitur_risk.detectors import Detector
from abitur_risk.models import FederalState, ProfileType, Subject, SubjectCategory
from abitur_risk.report_models import (
    AnnotationPatch,
    DetectorResult,
    RiskFinding,
    RiskSeverity,
    TrapType,
)

MATH_PATTERN = re.compile(r'^math', re.IGNORECASE)
GERMAN_PATTERN = re.compile(r'^deutsch', re.IGNORECASE)
ART_MUSIC_PATTERN = re.compile(r'^(kunst|musik|music|art)', re.IGNORECASE)


class Constraint(NamedTuple):
    label: str
    category: SubjectCategory
    min: int
    i18n_key: str


def build_inventory(subjects) -> Dict[SubjectCategory, List[Subject]]:
    """Active subjects grouped by content area."""
    inventory: Dict[SubjectCategory, List[Subject]] = {c: [] for c in SubjectCategory}
    for s in subjects:
        if s.is_active:
            inventory[s.subject_category].append(s)
    return inventory


def get_constraints(profile) -> List[Constraint]:
    """
    Minimum subject-area counts that apply to the profile.

    Args:
        profile: validated input profile

    Returns:
        List of constraints, empty when General mode disables all minimums
    """
    if profile.federal_state == FederalState.NRW:
        return [
            Constraint(
                'At least 1 foreign language through Abitur',
                SubjectCategory.LANGUAGE, 1,
                'report.profileViolations.nrw.languageRequired',
            ),
        ]

    if profile.federal_state == FederalState.BAVARIA:
        return [
            Constraint(
                'At least 1 continuous foreign language',
                SubjectCategory.LANGUAGE, 1,
                'report.profileViolations.bavaria.languageRequired',
            ),
            Constraint(
                'At least 1 continuous natural science',
                SubjectCategory.SCIENCE, 1,
                'report.profileViolations.bavaria.scienceRequired',
            ),
        ]

    config = profile.rules_config
    constraints: List[Constraint] = []
    if config.min_languages > 0:
        constraints.append(Constraint(
            f'At least {config.min_languages} active language(s)',
            SubjectCategory.LANGUAGE, config.min_languages,
            'report.profileViolations.general.languageRequired',
        ))
    if config.min_sciences > 0:
        constraints.append(Constraint(
            f'At least {config.min_sciences} active science(s)',
            SubjectCategory.SCIENCE, config.min_sciences,
            'report.profileViolations.general.scienceRequired',
        ))

    if config.profile_type == ProfileType.LINGUISTIC and config.min_languages < 2:
        constraints.append(Constraint(
            'Linguistic profile requires ≥2 languages',
            SubjectCategory.LANGUAGE, 2,
            'report.profileViolations.general.linguisticLanguages',
        ))
    elif config.profile_type == ProfileType.SCIENTIFIC and config.min_sciences < 2:
        constraints.append(Constraint(
            'Scientific profile requires ≥2 sciences',
            SubjectCategory.SCIENCE, 2,
            'report.profileViolations.general.scientificSciences',
        ))

    return constraints


def validate_constraints(inventory, constraints: List[Constraint]) -> List[RiskFinding]:
    """
    Flag every constraint the active subjects do not meet.

    Args:
        inventory: active subjects grouped by category
        constraints: requirements to check

    Returns:
        One RED finding per violated constraint
    """
    findings = []
    for c in constraints:
        bucket = inventory[c.category]
        if len(bucket) < c.min:
            findings.append(RiskFinding(
                severity=RiskSeverity.RED,
                trap_type=TrapType.PROFILE_VIOLATION,
                message=f"Profile Violation: {c.label}. Currently {len(bucket)} active, need {c.min}.",
                i18n_key=c.i18n_key,
                i18n_params={'actual': len(bucket), 'required': c.min},
                affected_subject_ids=[s.id for s in bucket],
            ))
    return findings


def simulate_drops(inventory, constraints: List[Constraint]):
    """Return (warnings, keystone_ids) for constraints sitting exactly at their minimum."""
    findings: List[RiskFinding] = []
    keystone_ids: Set[str] = set()

    for c in constraints:
        bucket = inventory[c.category]
        if len(bucket) != c.min:
            continue
        for s in bucket:
            keystone_ids.add(s.id)
            findings.append(RiskFinding(
                severity=RiskSeverity.ORANGE,
                trap_type=TrapType.PROFILE_VIOLATION,
                message=f"\"{s.name}\" is a keystone subject - dropping it would violate: {c.label}.",
                i18n_key='report.profileViolations.keystoneWarning',
                i18n_params={'subjectName': s.name, 'rule': c.label},
                affected_subject_ids=[s.id],
            ))

    return findings, keystone_ids


def check_bavaria_core_subjects(subjects) -> List[RiskFinding]:
    """Bavaria requires math and German to stay active through the Abitur."""
    active = [s for s in subjects if s.is_active]
    findings = []

    if not any(MATH_PATTERN.match(s.name) for s in active):
        findings.append(RiskFinding(
            severity=RiskSeverity.RED,
            trap_type=TrapType.PROFILE_VIOLATION,
            message='Mathematics is required through Abitur in Bavaria but is not active.',
            i18n_key='report.profileViolations.bavaria.mathRequired',
        ))
    if not any(GERMAN_PATTERN.match(s.name) for s in active):
        findings.append(RiskFinding(
            severity=RiskSeverity.RED,
            trap_type=TrapType.PROFILE_VIOLATION,
            message='German (Deutsch) is required through Abitur in Bavaria but is not active.',
            i18n_key='report.profileViolations.bavaria.germanRequired',
        ))

    return findings


def check_nrw_art_music(subjects) -> List[RiskFinding]:
    """NRW requires an art or music course in the qualification phase."""
    has_art = any(
        ART_MUSIC_PATTERN.match(s.name) or s.subject_category == SubjectCategory.ART
        for s in subjects
        if s.is_active
    )
    if has_art:
        return []
    return [RiskFinding(
        severity=RiskSeverity.ORANGE,
        trap_type=TrapType.PROFILE_VIOLATION,
        message='NRW requires at least one art or music course (Kunst/Musik) in the qualification phase.',
        i18n_key='report.profileViolations.nrw.artMusicRequired',
    )]


def detect(profile, ruleset) -> DetectorResult:
    """
    Check profile requirements and mark keystone subjects.

    Args:
        profile: validated input profile
        ruleset: resolved constants for the profile's jurisdiction

    Returns:
        DetectorResult with profile findings and is_keystone annotations
    """
    inventory = build_inventory(profile.subjects)
    constraints = get_constraints(profile)

    findings = validate_constraints(inventory, constraints)
    if profile.federal_state == FederalState.BAVARIA:
        findings.extend(check_bavaria_core_subjects(profile.subjects))
    if profile.federal_state == FederalState.NRW:
        findings.extend(check_nrw_art_music(profile.subjects))

    drop_findings, keystone_ids = simulate_drops(inventory, constraints)
    findings.extend(drop_findings)

    if not findings:
        findings.append(RiskFinding(
            severity=RiskSeverity.GREEN,
            trap_type=TrapType.PROFILE_VIOLATION,
            message='Profile structure is intact. All mandatory subject-area requirements are met.',
            i18n_key='report.profileViolations.allClear',
            i18n_params={
                'languageCount': len(inventory[SubjectCategory.LANGUAGE]),
                'scienceCount': len(inventory[SubjectCategory.SCIENCE]),
            },
        ))

    return DetectorResult(
        trap_type=TrapType.PROFILE_VIOLATION,
        findings=findings,
        subject_annotations=[
            AnnotationPatch(subject_id=s.id, subject_name=s.name, is_keystone=s.id in keystone_ids)
            for s in profile.subjects
        ],
    )


profile_detector = Detector(TrapType.PROFILE_VIOLATION, detect)
