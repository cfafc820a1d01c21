"""Cohort (group) analysis."""

from addrintel.cohort.analysis import CohortAnalyzer, calculate_confidence, profiles_frame
from addrintel.cohort.models import (
    DateRanges,
    GroupAnalysisFilter,
    GroupAnalysisResult,
    Narrative,
    ScoreRange,
)
from addrintel.cohort.templates import FilterTemplate, filter_templates, find_template

__all__ = [
    "CohortAnalyzer",
    "DateRanges",
    "FilterTemplate",
    "GroupAnalysisFilter",
    "GroupAnalysisResult",
    "Narrative",
    "ScoreRange",
    "calculate_confidence",
    "filter_templates",
    "find_template",
    "profiles_frame",
]
