"""Builders for subjects and profiles used across the test suite."""

from abitur_risk.models import (
    BavariaProfile,
    ExamType,
    GeneralProfile,
    GeneralRulesConfig,
    NRWProfile,
    SemesterGrades,
    Subject,
    SubjectCategory,
    SubjectType,
)

_counter = {'n': 0}


def make_subject(name='Geschichte', grades=(10, 10, 10, 10), **overrides):
    """Build a Subject; `grades` lists the four semesters, None for unknown."""
    _counter['n'] += 1
    grades = list(grades) + [None] * (4 - len(grades))
    data = {
        'id': overrides.pop('id', f"s{_counter['n']}"),
        'name': name,
        'semester_grades': SemesterGrades(q1_1=grades[0], q1_2=grades[1], q2_1=grades[2], q2_2=grades[3]),
    }
    if overrides.get('is_exam_subject') and 'exam_type' not in overrides:
        data['exam_type'] = ExamType.WRITTEN
    data.update(overrides)
    return Subject(**data)


def safe_nrw_subjects(grade=11):
    """A structurally complete NRW course set, every semester at `grade`."""
    g = (grade,) * 4
    return [
        make_subject('Mathematik', g, id='math', type=SubjectType.LK, is_mandatory=True,
                     subject_category=SubjectCategory.SCIENCE, is_exam_subject=True),
        make_subject('Deutsch', g, id='de', is_mandatory=True,
                     subject_category=SubjectCategory.LANGUAGE, is_exam_subject=True),
        make_subject('Englisch', g, id='en', type=SubjectType.LK,
                     subject_category=SubjectCategory.LANGUAGE, is_exam_subject=True),
        make_subject('Physik', g, id='ph', subject_category=SubjectCategory.SCIENCE,
                     is_exam_subject=True, exam_type=ExamType.ORAL),
        make_subject('Kunst', g, id='ku', subject_category=SubjectCategory.ART),
        make_subject('Geschichte', g, id='ge'),
    ]


def nrw_profile(subjects=None, graduation_year=2027):
    return NRWProfile(
        graduation_year=graduation_year,
        subjects=subjects if subjects is not None else safe_nrw_subjects(),
    )


def bavaria_profile(subjects, graduation_year=2027):
    return BavariaProfile(graduation_year=graduation_year, subjects=subjects)


def general_config(**overrides):
    data = {
        'lk_weight': 2,
        'gk_weight': 1,
        'deficit_threshold': 5,
        'max_deficits': 7,
        'min_total_points': 200,
    }
    data.update(overrides)
    return GeneralRulesConfig(**data)


def general_profile(subjects, graduation_year=2027, **config):
    return GeneralProfile(
        graduation_year=graduation_year,
        subjects=subjects,
        rules_config=general_config(**config),
    )
