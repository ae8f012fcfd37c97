"""Data models for the student input profile."""

from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator


class FederalState(str, Enum):
    """Jurisdiction tag that decides which rules apply."""
    NRW = 'NRW'
    BAVARIA = 'Bavaria'
    GENERAL = 'General'


class SubjectType(str, Enum):
    """Weighting class of a course."""
    LK = 'LK'
    GK = 'GK'
    SEMINAR_W = 'SEMINAR_W'
    SEMINAR_P = 'SEMINAR_P'


class ExamType(str, Enum):
    WRITTEN = 'Written'
    ORAL = 'Oral'
    COLLOQUIUM = 'Colloquium'
    NONE = 'None'


class FatalScope(str, Enum):
    """Which courses a zero score is fatal in (General mode only)."""
    ALL_COURSES = 'ALL_COURSES'
    MANDATORY_ONLY = 'MANDATORY_ONLY'
    NONE = 'NONE'


class SubjectCategory(str, Enum):
    """Content area, used for profile/focus requirements."""
    LANGUAGE = 'LANGUAGE'
    SCIENCE = 'SCIENCE'
    SOCIAL = 'SOCIAL'
    ART = 'ART'
    SPORT = 'SPORT'


class ProfileType(str, Enum):
    LINGUISTIC = 'LINGUISTIC'
    SCIENTIFIC = 'SCIENTIFIC'
    ARTISTIC = 'ARTISTIC'
    SOCIAL = 'SOCIAL'


Score = Annotated[int, Field(ge=0, le=15)]

SEMESTER_LABELS = ('Q1.1', 'Q1.2', 'Q2.1', 'Q2.2')


class SemesterGrades(BaseModel):
    """Qualifying-semester scores. None means not yet known."""
    model_config = ConfigDict(frozen=True)

    q1_1: Optional[Score] = None
    q1_2: Optional[Score] = None
    q2_1: Optional[Score] = None
    q2_2: Optional[Score] = None

    def as_list(self) -> List[Optional[int]]:
        """Scores in chronological order, unknown slots included."""
        return [self.q1_1, self.q1_2, self.q2_1, self.q2_2]

    def labelled(self) -> List[tuple]:
        """(label, score) pairs in chronological order."""
        return list(zip(SEMESTER_LABELS, self.as_list()))


class Subject(BaseModel):
    """One course a student takes."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = Field(min_length=1)
    type: SubjectType = SubjectType.GK
    is_mandatory: bool = False
    # Attendance is legally required even if the grade does not count.
    is_belegpflichtig: bool = False
    subject_category: SubjectCategory = SubjectCategory.SOCIAL
    is_active: bool = True
    is_exam_subject: bool = False
    exam_type: ExamType = ExamType.NONE
    semester_grades: SemesterGrades = Field(default_factory=SemesterGrades)
    final_exam_grade: Optional[Score] = None
    confidence: int = Field(default=5, ge=1, le=10)
    stress_factors: List[str] = Field(default_factory=list)

    @model_validator(mode='after')
    def check_exam_type(self) -> 'Subject':
        if not self.is_exam_subject and self.exam_type != ExamType.NONE:
            raise ValueError('exam_type must be "None" when is_exam_subject is false')
        if self.is_exam_subject and self.exam_type == ExamType.NONE:
            raise ValueError('exam subjects need an exam_type of Written, Oral or Colloquium')
        return self

    def existing_grades(self) -> List[int]:
        """Known semester scores, in order."""
        return [g for g in self.semester_grades.as_list() if g is not None]


class GeneralRulesConfig(BaseModel):
    """User-defined rules, only present for the General jurisdiction."""
    model_config = ConfigDict(frozen=True)

    lk_weight: float = Field(gt=0)
    gk_weight: float = Field(gt=0)
    deficit_threshold: int = Field(ge=0)
    max_deficits: int = Field(ge=0)
    min_total_points: int = Field(ge=0)
    zero_is_fatal: bool = True
    fatal_scope: FatalScope = FatalScope.ALL_COURSES
    anchor_threshold: float = Field(default=3.0, ge=0)
    custom_mandatory_subjects: List[str] = Field(default_factory=list)
    profile_type: ProfileType = ProfileType.SCIENTIFIC
    min_languages: int = Field(default=1, ge=0)
    min_sciences: int = Field(default=1, ge=0)
    volatility_threshold: float = Field(default=4.0, ge=0)


class _BaseProfile(BaseModel):
    model_config = ConfigDict(frozen=True, extra='forbid')

    graduation_year: int = Field(ge=2024, le=2030)
    subjects: List[Subject] = Field(min_length=1)


class NRWProfile(_BaseProfile):
    federal_state: Literal['NRW'] = 'NRW'


class BavariaProfile(_BaseProfile):
    federal_state: Literal['Bavaria'] = 'Bavaria'


class GeneralProfile(_BaseProfile):
    federal_state: Literal['General'] = 'General'
    rules_config: GeneralRulesConfig


UserInputProfile = Annotated[
    Union[NRWProfile, BavariaProfile, GeneralProfile],
    Field(discriminator='federal_state'),
]

_profile_adapter = TypeAdapter(UserInputProfile)


def parse_profile(data: Dict) -> Union[NRWProfile, BavariaProfile, GeneralProfile]:
    """
    Validate a raw mapping into the matching profile variant.

    Raises:
        pydantic.ValidationError: if the mapping does not fit any variant
    """
    return _profile_adapter.validate_python(data)
