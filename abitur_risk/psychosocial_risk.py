"""Psychosocial risk scoring from confidence and self-reported stress factors."""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

HIDDEN_VOLATILITY = 'HIDDEN_VOLATILITY'
CRITICAL_STABILITY = 'CRITICAL_STABILITY'
NO_RISK = 'NONE'

METHODOLOGICAL = 'METHODOLOGICAL'
PSYCHOLOGICAL = 'PSYCHOLOGICAL'
STRUCTURAL = 'STRUCTURAL'

MAX_MULTIPLIER = 2.0

# (type, keywords, advice) in priority order
STRESS_CLASSES = (
    (
        METHODOLOGICAL,
        ('time management', 'procrastination', 'difficulty understanding', 'study habits', 'organization'),
        'Actionable: Focus on study plans, time management tools, or tutoring support.',
    ),
    (
        PSYCHOLOGICAL,
        ('anxiety', 'perfectionism', 'lack of motivation', 'stress', 'exam anxiety', 'fear', 'depression'),
        'Support Required: Consider counseling, stress-reduction techniques, or mental health support.',
    ),
    (
        STRUCTURAL,
        ('health issues', 'external pressure', 'family issues', 'financial problems', 'work'),
        'Strategic: These are external hard constraints. Consult a coordinator or counselor '
        'for accommodation options.',
    ),
)

MESSAGES = {
    'fragility': (
        'You are performing well, but your low confidence suggests high stress. '
        'This is a burnout risk before the final exams.'
    ),
    'instability': (
        'Your grade is borderline, and reported anxiety makes this a dangerous '
        '"Wackelkandidat" for the final exams.'
    ),
    'moderate_stress': 'Multiple stress factors detected. Consider addressing these to improve stability.',
    'moderate_confidence': 'Low confidence may impact performance. Focus on building self-assurance.',
    'low': 'No significant psychosocial risk detected. Keep up the good work!',
}


class StressFactorClassification(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    factors: List[str]
    advice: str


class PsychosocialRiskResult(BaseModel):
    """Outcome of the psychosocial evaluation for one subject."""
    model_config = ConfigDict(frozen=True)

    risk_type: str
    severity: str
    message: str
    risk_multiplier: float
    stress_classification: List[StressFactorClassification] = Field(default_factory=list)
    is_fragile: bool = False
    is_unstable: bool = False
    has_structural_barriers: bool = False


class PsychosocialSummary(BaseModel):
    total_subjects: int
    fragile_subjects: int
    unstable_subjects: int
    critical_subjects: int
    average_risk_multiplier: float
    dominant_stress_type: Optional[str] = None


def classify_stress_factors(stress_factors: List[str]) -> List[StressFactorClassification]:
    """Sort stress tags into the three remediation classes (a tag may land in several)."""
    classifications = []
    for stress_type, keywords, advice in STRESS_CLASSES:
        matched = [f for f in stress_factors if any(k in f.lower() for k in keywords)]
        if matched:
            classifications.append(StressFactorClassification(type=stress_type, factors=matched, advice=advice))
    return classifications


def _has_anxiety(stress_factors: List[str]) -> bool:
    return any('anxiety' in f.lower() or 'stress' in f.lower() for f in stress_factors)


def _has_health(stress_factors: List[str]) -> bool:
    return any('health' in f.lower() for f in stress_factors)


def is_fragile_scenario(grade: float, confidence: int) -> bool:
    """Good grade but low confidence."""
    return grade > 10 and confidence < 4


def is_unstable_scenario(grade: float, stress_factors: List[str]) -> bool:
    """Borderline grade with anxiety or health issues."""
    return grade <= 6 and (_has_anxiety(stress_factors) or _has_health(stress_factors))


def calculate_risk_multiplier(grade: float, confidence: int, stress_factors: List[str]) -> float:
    """
    Urgency multiplier for a subject's warnings.

    1.0 means no change; values toward 2.0 escalate the warning.
    """
    multiplier = 1.0
    multiplier += max(0, 10 - confidence) / 20

    if len(stress_factors) >= 3:
        multiplier += 0.3
    elif len(stress_factors) >= 1:
        multiplier += 0.15

    if is_fragile_scenario(grade, confidence):
        multiplier += 0.4
    if is_unstable_scenario(grade, stress_factors):
        multiplier += 0.6
    if grade <= 5 and stress_factors:
        multiplier += 0.3

    return min(multiplier, MAX_MULTIPLIER)


def evaluate_psychosocial_risk(grade: float, confidence: int, stress_factors: List[str]) -> PsychosocialRiskResult:
    """
    Classify a subject into one of the four psychosocial scenarios.

    Args:
        grade: average semester score
        confidence: self-reported confidence, 1-10
        stress_factors: self-reported stress tags

    Returns:
        PsychosocialRiskResult; the low-risk scenario resets the multiplier to 1.0
    """
    classification = classify_stress_factors(stress_factors)
    multiplier = calculate_risk_multiplier(grade, confidence, stress_factors)
    structural = any(c.type == STRUCTURAL for c in classification)

    if is_fragile_scenario(grade, confidence):
        return PsychosocialRiskResult(
            risk_type=HIDDEN_VOLATILITY,
            severity='HIGH',
            message=MESSAGES['fragility'],
            risk_multiplier=multiplier,
            stress_classification=classification,
            is_fragile=True,
            has_structural_barriers=structural,
        )

    if is_unstable_scenario(grade, stress_factors):
        return PsychosocialRiskResult(
            risk_type=CRITICAL_STABILITY,
            severity='CRITICAL',
            message=MESSAGES['instability'],
            risk_multiplier=multiplier,
            stress_classification=classification,
            is_unstable=True,
            has_structural_barriers=structural,
        )

    if confidence < 5 or len(stress_factors) >= 2:
        if len(stress_factors) >= 3 or confidence < 3:
            severity = 'HIGH'
        else:
            severity = 'MODERATE'
        message = MESSAGES['moderate_stress'] if len(stress_factors) >= 2 else MESSAGES['moderate_confidence']
        return PsychosocialRiskResult(
            risk_type=NO_RISK,
            severity=severity,
            message=message,
            risk_multiplier=multiplier,
            stress_classification=classification,
            is_fragile=grade >= 8 and confidence < 5,
            is_unstable=grade <= 7 and len(stress_factors) > 0,
            has_structural_barriers=structural,
        )

    return PsychosocialRiskResult(
        risk_type=NO_RISK,
        severity='LOW',
        message=MESSAGES['low'],
        risk_multiplier=1.0,
        stress_classification=classification,
    )


def dominant_stress_type(classification: List[StressFactorClassification]) -> Optional[str]:
    """Class with the most matched tags; ties go to the earlier class."""
    if not classification:
        return None
    counts: Dict[str, int] = {}
    for c in classification:
        counts[c.type] = counts.get(c.type, 0) + len(c.factors)
    best = METHODOLOGICAL
    for stress_type, count in counts.items():
        if count > counts.get(best, 0):
            best = stress_type
    return best


def summarize_psychosocial_risks(results: Dict[str, PsychosocialRiskResult]) -> PsychosocialSummary:
    values = list(results.values())

    type_counts = {METHODOLOGICAL: 0, PSYCHOLOGICAL: 0, STRUCTURAL: 0}
    for r in values:
        for c in r.stress_classification:
            type_counts[c.type] += 1

    dominant = None
    best = 0
    for stress_type, count in type_counts.items():
        if count > best:
            best = count
            dominant = stress_type

    average = sum(r.risk_multiplier for r in values) / len(values) if values else 1.0

    return PsychosocialSummary(
        total_subjects=len(values),
        fragile_subjects=sum(1 for r in values if r.is_fragile),
        unstable_subjects=sum(1 for r in values if r.is_unstable),
        critical_subjects=sum(1 for r in values if r.severity == 'CRITICAL'),
        average_risk_multiplier=average,
        dominant_stress_type=dominant,
    )
