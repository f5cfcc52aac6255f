"""
Quality Scorer - weighted composite score for extracted documentation text

All sub-scores are normalised to [0, 1]. Scoring is a pure function of the
input text and the scorer's settings.
"""

import re
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional

IDEAL_SENTENCE_LENGTH = 17.5

QUALITY_LEVELS = (
    (0.8, 'excellent'),
    (0.6, 'good'),
    (0.4, 'fair'),
)

TECHNICAL_PATTERNS = [
    re.compile(r'\b(?:function|class|method|variable|array|object|string|boolean|integer)\b', re.I),
    re.compile(r'\b(?:javascript|typescript|python|java|lua|rust|html|css|sql|json|xml|api|sdk|cli)\b', re.I),
    re.compile(r'\b(?:database|server|client|frontend|backend|framework|library|process|message|wallet)\b', re.I),
    re.compile(r'\b(?:documentation|docs|guide|tutorial|example|usage|syntax|parameter)\b', re.I),
    re.compile(r'\b(?:install|setup|configure|deploy|build|test|debug)\b', re.I),
    re.compile(r'[{}\[\]();]'),
    re.compile(r'\b[a-zA-Z_][a-zA-Z0-9_]*\('),
    re.compile(r'\$[a-zA-Z_][a-zA-Z0-9_]*'),
    re.compile(r'https?://\S+'),
    re.compile(r'\b[\w-]+\.(?:js|ts|jsx|tsx|py|lua|rs|go|json|ya?ml|toml|md|sh|html|css)\b'),
]

AD_INDICATORS = [
    'advertisement', 'sponsored', 'promoted', 'click here', 'sign up now', 'subscribe',
    'newsletter', 'limited time', 'special offer', 'discount', 'free trial',
]
NAVIGATION_INDICATORS = [
    'sitemap', 'navigation', 'menu', 'breadcrumb', 'sidebar', 'footer',
    'skip to content', 'table of contents', 'previous page', 'next page',
]
BOILERPLATE_INDICATORS = [
    'all rights reserved', 'copyright', 'powered by', 'made with', 'designed by',
    'cookie policy', 'privacy policy', 'terms of service',
]

_HEADING = re.compile(r'^#{1,6}\s+\S', re.M)
_TOP_HEADING = re.compile(r'^#{1,2}\s+\S', re.M)
_SUB_HEADING = re.compile(r'^#{3,6}\s+\S', re.M)
_FENCED_CODE = re.compile(r'```.*?```', re.S)
_INDENTED_CODE = re.compile(r'^ {4}\S.*$', re.M)
_LIST_ITEM = re.compile(r'^\s*(?:[-*+]|\d+\.)\s+\S', re.M)
_TRUNCATION = re.compile(r'\.{3,}\s*$|\u2026\s*$')
_READ_MORE = re.compile(r'\b(?:read\s+more|continue\s+reading|see\s+more)\b', re.I)
_EXCESSIVE_PUNCTUATION = re.compile(r'!{2,}|\?{2,}')


@dataclass
class QualityWeights:
    """Weights of the sub-scores in the overall score"""
    readability: float = 0.25
    completeness: float = 0.30
    technical_relevance: float = 0.25
    structure: float = 0.10
    noise: float = 0.10


@dataclass
class QualityAssessment:
    """Outcome of scoring one text"""
    overall_score: float
    quality_level: str
    reason: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def classify_score(score: float) -> str:
    for threshold, level in QUALITY_LEVELS:
        if score >= threshold:
            return level
    return 'poor'


def _words(content: str):
    return content.split()


def _sentences(content: str, min_chars: int = 0):
    return [s.strip() for s in re.split(r'[.!?]+', content) if len(s.strip()) > min_chars]


def score_length(word_count: int, min_words: int = 20, max_words: int = 50000) -> float:
    """Piecewise length score peaking between 100 and 2000 words"""
    if word_count < min_words:
        return 0.0
    if word_count > max_words:
        return 0.5
    if 100 <= word_count <= 2000:
        return 1.0
    if 50 <= word_count < 100 or 2000 < word_count <= 5000:
        return 0.8
    if 20 <= word_count < 50 or 5000 < word_count <= 10000:
        return 0.6
    return 0.3


def detect_repetition(content: str) -> float:
    """Share of repeated sentences, scaled to [0, 1]"""
    sentences = [s.lower() for s in _sentences(content, min_chars=10)]
    if len(sentences) < 3:
        return 0.0
    ratio = 1 - len(set(sentences)) / len(sentences)
    return min(1.0, ratio * 2)


def score_readability(content: str) -> float:
    words = _words(content)
    sentences = _sentences(content)
    if not words or not sentences:
        return 0.0

    avg_sentence_length = len(words) / len(sentences)
    sentence_score = max(0.0, 1 - abs(avg_sentence_length - IDEAL_SENTENCE_LENGTH) / IDEAL_SENTENCE_LENGTH)
    vocabulary_score = min(1.0, len({w.lower() for w in words}) / len(words) * 2)
    repetition = detect_repetition(content)

    return (score_length(len(words)) * 0.3
            + sentence_score * 0.25
            + vocabulary_score * 0.25
            + (1 - repetition) * 0.2)


def score_completeness(content: str) -> float:
    score = 0.0
    for present in (
        bool(_HEADING.search(content)),
        bool(_FENCED_CODE.search(content) or _INDENTED_CODE.search(content)),
        bool(_LIST_ITEM.search(content)),
        len(content.split('\n\n')) > 2,
        len(content) >= 200,
    ):
        if present:
            score += 0.2

    stripped = content.strip()
    if _TRUNCATION.search(stripped):
        score -= 0.15
    if not re.search(r'[.!?:`)\]]$', stripped):
        score -= 0.15
    if _READ_MORE.search(content):
        score -= 0.15
    return max(0.0, min(1.0, score))


def score_technical_relevance(content: str) -> float:
    variety = 0
    total_matches = 0
    for pattern in TECHNICAL_PATTERNS:
        matches = len(pattern.findall(content))
        if matches:
            variety += 1
            total_matches += matches

    word_count = max(1, len(_words(content)))
    variety_score = variety / len(TECHNICAL_PATTERNS)
    density_score = min(1.0, total_matches / (word_count / 100))
    return variety_score * 0.6 + density_score * 0.4


def score_structure(content: str) -> float:
    fence_count = content.count('```')
    checks = {
        'has_title': (bool(_TOP_HEADING.search(content)), 0.25),
        'has_subheadings': (bool(_SUB_HEADING.search(content)), 0.20),
        'has_hierarchy': (len(_HEADING.findall(content)) >= 2, 0.20),
        'proper_spacing': ('\n\n\n\n' not in content, 0.15),
        'code_blocks_closed': (fence_count % 2 == 0, 0.10),
        'has_paragraphs': ('\n\n' in content, 0.10),
    }
    return sum(weight for present, weight in checks.values() if present)


def score_noise(content: str) -> float:
    text = content.lower()
    score = 1.0

    ads = sum(1 for indicator in AD_INDICATORS if indicator in text)
    score -= min(0.4, ads * 0.1)
    navigation = sum(1 for indicator in NAVIGATION_INDICATORS if indicator in text)
    score -= min(0.3, navigation * 0.05)
    boilerplate = sum(1 for indicator in BOILERPLATE_INDICATORS if indicator in text)
    score -= min(0.2, boilerplate * 0.05)
    score -= min(0.1, len(_EXCESSIVE_PUNCTUATION.findall(text)) * 0.02)

    return max(0.0, min(1.0, score))


class QualityScorer:
    """Scores extracted text for usefulness as language model input"""

    def __init__(self, min_length: int = 100, require_technical: bool = False,
                 weights: Optional[QualityWeights] = None):
        self.min_length = min_length
        self.require_technical = require_technical
        self.weights = weights or QualityWeights()

    def assess(self, content: Any) -> QualityAssessment:
        if not content or not isinstance(content, str):
            return QualityAssessment(0.0, 'poor', 'Invalid or empty content')

        if len(content) < self.min_length:
            return QualityAssessment(
                0.0, 'poor',
                f"Content too short ({len(content)} < {self.min_length} characters)",
                {'character_count': len(content)},
            )

        scores = {
            'readability': score_readability(content),
            'completeness': score_completeness(content),
            'technical_relevance': score_technical_relevance(content),
            'structure': score_structure(content),
            'noise': score_noise(content),
        }

        if self.require_technical and scores['technical_relevance'] < 0.3:
            return QualityAssessment(0.0, 'poor', 'Insufficient technical content', scores)

        weights = asdict(self.weights)
        total_weight = sum(weights.values()) or 1.0
        overall = sum(scores[name] * weight for name, weight in weights.items()) / total_weight
        overall = max(0.0, min(1.0, overall))

        level = classify_score(overall)
        if level in ('excellent', 'good'):
            reason = 'Quality assessment complete'
        elif level == 'fair':
            reason = 'Content quality is marginal, consider review'
        else:
            reason = 'Content quality is below acceptable threshold'

        words = _words(content)
        details = dict(scores)
        details.update({
            'word_count': len(words),
            'character_count': len(content),
            'unique_words': len({w.lower() for w in words}),
        })
        return QualityAssessment(overall, level, reason, details)

    def score(self, content: Any) -> float:
        return self.assess(content).overall_score
