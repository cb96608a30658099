"""Post-interview analysis: canonical shape, parsing cascade and persistence."""
from .finalizer import finalize_analysis
from .models import Analysis, AnalysisOutcome, AnalysisScores, CANONICAL_SCORES, PARSE_FAILURE_NOTE

__all__ = [
    "Analysis",
    "AnalysisOutcome",
    "AnalysisScores",
    "CANONICAL_SCORES",
    "PARSE_FAILURE_NOTE",
    "finalize_analysis",
]
