"""Trap detector registry types."""

from typing import Callable, NamedTuple

from abitur_risk.report_models import DetectorResult, TrapType
from abitur_risk.rulesets import StateRuleset

DetectFn = Callable[..., DetectorResult]


class Detector(NamedTuple):
    """
    One registered analysis module.

    `detect(profile, ruleset)` must be a pure function of its inputs so
    detectors can run in any order.
    """
    trap_type: TrapType
    detect: DetectFn

    def __call__(self, profile, ruleset: StateRuleset) -> DetectorResult:
        return self.detect(profile, ruleset)
