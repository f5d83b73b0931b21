"""
Barrier Analyzer Module

Scores a document for accessibility barriers: long sentences, missing
structure and dense text blocks. Produces a report with a 0-100 score,
a risk tier and a single reading-mode recommendation.
"""

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from docreader.readalong.sentence_splitter import Sentence
from docreader.utils.config import config


class IssueType(str, Enum):
    COMPLEXITY = "Sentence Complexity"
    STRUCTURE = "Document Structure"
    DENSITY = "Text Density"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @property
    def label(self) -> str:
        return f"{self.value} Risk"


PENALTIES = {
    Severity.HIGH: 15,
    Severity.MEDIUM: 8,
    Severity.LOW: 3,
}

RECOMMENDATIONS = [
    (IssueType.COMPLEXITY, "Vision Mode with audio and sentence highlighting for complex text."),
    (IssueType.STRUCTURE, "Use sentence-by-sentence navigation for better structure."),
    (IssueType.DENSITY, "Audio mode with chunked reading for dense content."),
]
WELL_STRUCTURED = "Document is well-structured for all accessibility modes."


@dataclass(frozen=True)
class AccessibilityIssue:
    """A single detected barrier."""

    type: IssueType
    severity: Severity
    description: str
    impact: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "description": self.description,
            "impact": self.impact,
        }


def score_issues(issues: Sequence[AccessibilityIssue]) -> int:
    """Return 100 minus the severity penalties, clamped at 0."""
    penalty = sum(PENALTIES[issue.severity] for issue in issues)
    return max(0, 100 - penalty)


def risk_for_score(score: int) -> RiskLevel:
    if score >= 85:
        return RiskLevel.LOW
    if score >= 70:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


def recommend(issues: Sequence[AccessibilityIssue]) -> str:
    """Pick exactly one recommendation by issue priority."""
    present = {issue.type for issue in issues}
    for issue_type, text in RECOMMENDATIONS:
        if issue_type in present:
            return text
    return WELL_STRUCTURED


@dataclass(frozen=True)
class AccessibilityReport:
    """Barrier analysis result. Score, risk and recommendation derive from issues."""

    issues: Tuple[AccessibilityIssue, ...] = ()
    score: int = field(init=False)
    risk_level: RiskLevel = field(init=False)
    recommendation: str = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "issues", tuple(self.issues))
        object.__setattr__(self, "score", score_issues(self.issues))
        object.__setattr__(self, "risk_level", risk_for_score(self.score))
        object.__setattr__(self, "recommendation", recommend(self.issues))

    def has_issue(self, issue_type: IssueType) -> bool:
        return any(issue.type == issue_type for issue in self.issues)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON export."""
        return {
            "score": self.score,
            "riskLevel": self.risk_level.value,
            "recommendation": self.recommendation,
            "issues": [issue.to_dict() for issue in self.issues],
        }


class BarrierAnalyzer:
    """
    Compute accessibility barrier signals for a document.

    The analyzer holds only its thresholds, so one instance can be shared
    and called while playback is running.
    """

    def __init__(
        self,
        max_avg_words: Optional[float] = None,
        structure_min_sentences: Optional[int] = None,
        max_paragraph_chars: Optional[float] = None,
        heading_patterns: Optional[List[str]] = None,
    ):
        """
        Initialize the analyzer.

        Args:
            max_avg_words: Average words per sentence above which text is complex
            structure_min_sentences: Sentence count above which headings are expected
            max_paragraph_chars: Average characters per paragraph above which text is dense
            heading_patterns: Regexes (multiline) that mark headings, chapters or sections
        """
        if max_avg_words is None:
            max_avg_words = config.get("analysis", "max_avg_words", default=20)
        if structure_min_sentences is None:
            structure_min_sentences = config.get("analysis", "structure_min_sentences", default=10)
        if max_paragraph_chars is None:
            max_paragraph_chars = config.get("analysis", "max_paragraph_chars", default=500)
        if heading_patterns is None:
            heading_patterns = config.heading_patterns

        self.max_avg_words = max_avg_words
        self.structure_min_sentences = structure_min_sentences
        self.max_paragraph_chars = max_paragraph_chars
        self.heading_patterns = [
            re.compile(pattern, re.MULTILINE)
            for pattern in heading_patterns
        ]

    def analyze(self, raw_text: str, sentences: Sequence[Sentence]) -> AccessibilityReport:
        """
        Analyze a document.

        Args:
            raw_text: Text as extracted, before structural conversion
            sentences: Sentences produced from raw_text

        Returns:
            AccessibilityReport
        """
        issues = []

        for check in (self._check_complexity, self._check_structure, self._check_density):
            issue = check(raw_text, sentences)
            if issue is not None:
                issues.append(issue)

        return AccessibilityReport(issues=tuple(issues))

    def _check_complexity(self, raw_text, sentences) -> Optional[AccessibilityIssue]:
        if not sentences:
            return None

        avg_words = sum(word_count(s.text) for s in sentences) / len(sentences)
        if avg_words <= self.max_avg_words:
            return None

        return AccessibilityIssue(
            type=IssueType.COMPLEXITY,
            severity=Severity.HIGH,
            description=(
                f"Average sentence length: {round_half_up(avg_words)} words "
                f"(recommended: <{self.max_avg_words})"
            ),
            impact="Difficult for screen readers and cognitive processing",
        )

    def _check_structure(self, raw_text, sentences) -> Optional[AccessibilityIssue]:
        has_headings = any(p.search(raw_text) for p in self.heading_patterns)
        if has_headings or len(sentences) <= self.structure_min_sentences:
            return None

        return AccessibilityIssue(
            type=IssueType.STRUCTURE,
            severity=Severity.MEDIUM,
            description="No clear headings or structure detected",
            impact="Difficult navigation for assistive technologies",
        )

    def _check_density(self, raw_text, sentences) -> Optional[AccessibilityIssue]:
        paragraphs = [p for p in re.split(r"\n\s*\n", raw_text) if p.strip()]
        if not paragraphs:
            return None

        if len(raw_text) / len(paragraphs) <= self.max_paragraph_chars:
            return None

        return AccessibilityIssue(
            type=IssueType.DENSITY,
            severity=Severity.MEDIUM,
            description="Large text blocks detected",
            impact="Overwhelming for users with reading difficulties",
        )


def word_count(text: str) -> int:
    return len(text.split())


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def analyze_document(raw_text: str, sentences: Sequence[Sentence]) -> AccessibilityReport:
    """Convenience function to analyze a document with default thresholds."""
    return BarrierAnalyzer().analyze(raw_text, sentences)
