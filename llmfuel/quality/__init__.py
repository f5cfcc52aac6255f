"""
Content quality scoring
"""

from .scorer import QualityAssessment, QualityScorer, QualityWeights, classify_score, score_length

__all__ = [
    'QualityAssessment',
    'QualityScorer',
    'QualityWeights',
    'classify_score',
    'score_length'
]
