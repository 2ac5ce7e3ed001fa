# =============================================================================
# Mock LLM Collaborators - Keyword Heuristics, No Network
# =============================================================================
#
# Drop-in replacements for LLMQuestionAnalyzer / LLMAnswerGenerator used in
# local development and tests (LLM_BACKEND=mock).
#
# Categorisation walks an ordered list of subject rules; the first rule whose
# keywords appear in the question wins. Confidence is derived from how many
# of the subject's confidence keyword groups match:
#
#   confidence = min(0.95, 0.6 + matches / 5 * 0.35)
#
# The mock path is paired with the lower `mock_min_confidence` threshold.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from studentqa.models.domain import DifficultyLevel, QuestionMetadata
from studentqa.services.scheduler import SleepFn

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _SubjectRule:
    subject: str
    keywords: tuple[str, ...]
    topic: str
    difficulty: DifficultyLevel
    grade: str


# Mathematics has sub-topics, resolved separately in _math_topic()
_MATH_KEYWORDS = (
    "math", "calculate", "equation", "+", "-", "*", "/",
    "algebra", "geometry", "calculus",
)

_SUBJECT_RULES: tuple[_SubjectRule, ...] = (
    _SubjectRule(
        "Physics", ("physics", "force", "energy", "motion"),
        "Mechanics", DifficultyLevel.INTERMEDIATE, "11th-12th grade",
    ),
    _SubjectRule(
        "Chemistry", ("chemistry", "molecule", "reaction"),
        "Chemical Reactions", DifficultyLevel.INTERMEDIATE, "10th-11th grade",
    ),
    _SubjectRule(
        "Biology", ("biology", "cell", "organism"),
        "Cell Biology", DifficultyLevel.INTERMEDIATE, "9th-10th grade",
    ),
    _SubjectRule(
        "History", ("history", "war", "ancient", "civilization"),
        "World History", DifficultyLevel.BEGINNER, "9th-12th grade",
    ),
    _SubjectRule(
        "Literature", ("literature", "book", "poem", "author"),
        "General Literature", DifficultyLevel.INTERMEDIATE, "9th-12th grade",
    ),
    _SubjectRule(
        "Computer Science", ("programming", "code", "algorithm", "computer"),
        "Programming", DifficultyLevel.INTERMEDIATE, "College",
    ),
    _SubjectRule(
        "General Knowledge", ("what", "how", "why", "when", "where"),
        "General Inquiry", DifficultyLevel.BEGINNER, "High School",
    ),
)

# Keyword groups scored for confidence; each matching group counts once
_CONFIDENCE_GROUPS: dict[str, tuple[tuple[str, ...], ...]] = {
    "Mathematics": (
        ("math", "calculate"),
        ("+", "-", "*", "/"),
        ("equation", "solve"),
        ("algebra", "geometry", "calculus"),
        ("number", "digit"),
    ),
    "Physics": (
        ("physics", "force"),
        ("energy", "motion"),
        ("velocity", "acceleration"),
        ("mass", "weight"),
        ("gravity", "magnetic"),
    ),
    "Chemistry": (
        ("chemistry", "molecule"),
        ("reaction", "chemical"),
        ("atom", "element"),
        ("acid", "base"),
        ("solution", "mixture"),
    ),
}
_CONFIDENCE_GROUP_COUNT = 5
_GENERAL_KNOWLEDGE_MATCHES = 4

_GENERIC_ANSWER = (
    "This is a comprehensive answer based on your question. The response "
    "covers the key concepts, provides examples, and explains the reasoning "
    "step by step."
)

_CANNED_ANSWERS: dict[tuple[str, str], str] = {
    ("Mathematics", "Geometry"): (
        "In geometry, you can solve problems using:\n\n"
        "1) Pythagorean theorem for right triangles\n"
        "2) Area and perimeter formulas\n"
        "3) Angle relationships and theorems\n"
        "4) Coordinate geometry methods"
    ),
    ("Physics", "Mechanics"): (
        "In mechanics, you can analyze:\n\n"
        "1) Forces and motion using Newton's laws\n"
        "2) Energy conservation (kinetic and potential)\n"
        "3) Momentum and collisions\n"
        "4) Circular motion and gravity"
    ),
    ("Biology", "Cell Biology"): (
        "Cell biology covers:\n\n"
        "1) Cell structure and organelles\n"
        "2) Cell division and reproduction\n"
        "3) Cellular processes like respiration\n"
        "4) Cell communication and signaling"
    ),
    ("Chemistry", "Chemical Reactions"): (
        "Chemical reactions involve:\n\n"
        "1) Reactants and products\n"
        "2) Balancing equations\n"
        "3) Reaction types (synthesis, decomposition, etc.)\n"
        "4) Energy changes and catalysts"
    ),
}

_QUADRATIC_ANSWER = (
    "To solve quadratic equations, you can use:\n\n"
    "1) Factoring method\n"
    "2) Quadratic formula: x = (-b ± √(b² - 4ac)) / 2a\n"
    "3) Completing the square\n\n"
    "For your specific equation, I recommend using the quadratic formula as "
    "it works for all quadratic equations."
)


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


def _math_topic(text: str) -> tuple[str, DifficultyLevel, str]:
    if _contains_any(text, ("algebra", "equation")):
        return "Algebra", DifficultyLevel.INTERMEDIATE, "9th-12th grade"
    if _contains_any(text, ("calculus", "derivative")):
        return "Calculus", DifficultyLevel.ADVANCED, "College"
    if "geometry" in text:
        return "Geometry", DifficultyLevel.INTERMEDIATE, "9th-12th grade"
    return "Basic Math", DifficultyLevel.BEGINNER, "6th-8th grade"


def keyword_confidence(text: str, subject: str) -> float:
    if subject == "General Knowledge":
        matches = _GENERAL_KNOWLEDGE_MATCHES
    else:
        matches = sum(
            1 for group in _CONFIDENCE_GROUPS.get(subject, ())
            if _contains_any(text, group)
        )
    return min(0.95, 0.6 + (matches / _CONFIDENCE_GROUP_COUNT) * 0.35)


def categorize(question_text: str) -> QuestionMetadata:
    """Keyword-based categorisation of a question."""
    text = question_text.lower()

    if _contains_any(text, _MATH_KEYWORDS):
        subject = "Mathematics"
        topic, difficulty, grade = _math_topic(text)
    else:
        subject, topic = "General", "General"
        difficulty, grade = DifficultyLevel.BEGINNER, "High School"
        for rule in _SUBJECT_RULES:
            if _contains_any(text, rule.keywords):
                subject, topic = rule.subject, rule.topic
                difficulty, grade = rule.difficulty, rule.grade
                break

    return QuestionMetadata(
        subject=subject,
        topic=topic,
        difficulty_level=difficulty,
        grade_level=grade,
        confidence=keyword_confidence(text, subject),
    )


class MockQuestionAnalyzer:
    provider_name = "mock"

    def __init__(self, latency: float = 0.0, sleep: SleepFn = asyncio.sleep) -> None:
        self._latency = latency
        self._sleep = sleep

    async def analyze(self, question_text: str) -> QuestionMetadata:
        if self._latency:
            await self._sleep(self._latency)
        metadata = categorize(question_text)
        logger.info(
            "Mock analysis: subject=%s topic=%s confidence=%.2f",
            metadata.subject, metadata.topic, metadata.confidence,
        )
        return metadata


class MockAnswerGenerator:
    def __init__(self, latency: float = 0.0, sleep: SleepFn = asyncio.sleep) -> None:
        self._latency = latency
        self._sleep = sleep

    async def generate(self, question_text: str, subject: str, topic: str) -> str:
        if self._latency:
            await self._sleep(self._latency)
        if (subject, topic) == ("Mathematics", "Algebra"):
            if "quadratic" in question_text.lower():
                return _QUADRATIC_ANSWER
        return _CANNED_ANSWERS.get((subject, topic), _GENERIC_ANSWER)
