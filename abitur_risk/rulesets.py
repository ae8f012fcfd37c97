"""Per-state rule constants and ruleset resolution."""

from pydantic import BaseModel, ConfigDict

from abitur_risk.models import FederalState, GeneralRulesConfig


class StateRuleset(BaseModel):
    """Resolved numeric constants for one evaluation run."""
    model_config = ConfigDict(frozen=True)

    lk_weight: float
    gk_weight: float
    # A semester score strictly below this is a deficit.
    deficit_threshold: int
    max_deficits: int
    max_lk_deficits: int
    min_total_points: int
    # 0 means there is no separate exam block.
    min_exam_points: int
    required_lk_count: int
    required_exam_count: int


# APO-GOSt NRW §§ 28-29: Block I >= 200 points, at most 7 deficits, at most 3 in LK.
NRW_RULESET = StateRuleset(
    lk_weight=2,
    gk_weight=1,
    deficit_threshold=5,
    max_deficits=7,
    max_lk_deficits=3,
    min_total_points=200,
    min_exam_points=100,
    required_lk_count=2,
    required_exam_count=4,
)

# GSO Bayern §§ 44-50: 40 semester results, at most 8 deficits, 5 exams.
BAVARIA_RULESET = StateRuleset(
    lk_weight=2,
    gk_weight=1,
    deficit_threshold=5,
    max_deficits=8,
    max_lk_deficits=3,
    min_total_points=200,
    min_exam_points=100,
    required_lk_count=2,
    required_exam_count=5,
)


def build_general_ruleset(config: GeneralRulesConfig) -> StateRuleset:
    """
    Build a ruleset from user-supplied General rules.

    General mode has no LK sub-limit (it equals the overall limit),
    no exam block and no required course counts.
    """
    return StateRuleset(
        lk_weight=config.lk_weight,
        gk_weight=config.gk_weight,
        deficit_threshold=config.deficit_threshold,
        max_deficits=config.max_deficits,
        max_lk_deficits=config.max_deficits,
        min_total_points=config.min_total_points,
        min_exam_points=0,
        required_lk_count=0,
        required_exam_count=0,
    )


def resolve_ruleset(profile) -> StateRuleset:
    """Map the profile's jurisdiction to its ruleset."""
    if profile.federal_state == FederalState.NRW:
        return NRW_RULESET
    if profile.federal_state == FederalState.BAVARIA:
        return BAVARIA_RULESET
    return build_general_ruleset(profile.rules_config)
