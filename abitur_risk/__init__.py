"""Abitur risk analyzer: finds the regulatory traps in a student's grade profile."""

from abitur_risk.engine import DETECTORS, run_risk_engine
from abitur_risk.models import parse_profile

__version__ = "1.0.0"

__all__ = ['DETECTORS', 'parse_profile', 'run_risk_engine']
