"""Keyword-driven analysis of a writer's chat message.

The analysis feeds the local response composer when no hosted model answers.
Matching is plain case-insensitive substring search against hand-authored
topic tables; there is no stemming or fuzzy matching.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

from .prompts import normalize_category

INTENT_HOW_TO = "howTo"
INTENT_DEFINITION = "definition"
INTENT_EXPLANATION = "explanation"
INTENT_ASSISTANCE = "assistance"
INTENT_EXAMPLES = "examples"
INTENT_GENERAL = "general"

SPECIFICITY_LOW = "low"
SPECIFICITY_MEDIUM = "medium"
SPECIFICITY_HIGH = "high"

TOPIC_KEYWORDS: Dict[str, Dict[str, Tuple[str, ...]]] = {
    "story-development": {
        "plot": ("plot", "story", "narrative", "structure", "beginning", "middle", "end", "climax"),
        "pacing": ("pacing", "tempo", "rhythm", "flow", "speed", "slow", "fast"),
        "conflict": ("conflict", "tension", "problem", "obstacle", "struggle", "opposition"),
        "theme": ("theme", "meaning", "message", "moral", "deeper", "symbolism"),
        "genre": ("fantasy", "sci-fi", "romance", "mystery", "horror", "thriller", "literary"),
    },
    "character-creation": {
        "personality": ("personality", "traits", "quirks", "behavior", "psychology"),
        "backstory": ("backstory", "history", "past", "background", "origin"),
        "motivation": ("motivation", "goals", "wants", "needs", "desires", "drive"),
        "relationships": ("relationships", "family", "friends", "romance", "enemies"),
        "dialogue": ("dialogue", "speech", "voice", "conversation", "talking", "speaking"),
    },
    "plot-brainstorming": {
        "ideas": ("ideas", "concepts", "brainstorm", "thinking", "stuck", "blank"),
        "twists": ("twist", "surprise", "unexpected", "shock", "reveal"),
        "scenes": ("scene", "chapter", "moment", "event", "sequence"),
        "endings": ("ending", "conclusion", "finale", "resolution", "finish"),
    },
    "writing-style": {
        "prose": ("prose", "writing", "style", "voice", "tone", "flow"),
        "description": ("description", "imagery", "sensory", "details", "vivid"),
        "dialogue": ("dialogue", "conversation", "speech", "talking"),
        "grammar": ("grammar", "punctuation", "sentence", "paragraph"),
    },
}

# First matching rule wins.
_INTENT_RULES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("how",), INTENT_HOW_TO),
    (("what", "which"), INTENT_DEFINITION),
    (("why",), INTENT_EXPLANATION),
    (("help", "stuck"), INTENT_ASSISTANCE),
    (("example", "show"), INTENT_EXAMPLES),
)


@dataclass(frozen=True)
class IntentAnalysis:
    topics: Tuple[str, ...] = ()
    keywords: Tuple[str, ...] = ()
    intent: str = INTENT_GENERAL
    specificity: str = SPECIFICITY_LOW


def analyze(message: str, category: str) -> IntentAnalysis:
    """Extract topics, keywords, intent and specificity from ``message``.

    Parameters
    ----------
    message:
        Raw user text. Matching is done on its lower-cased form.
    category:
        Chat category selecting the topic table. Unknown categories have no
        topics, but intent and specificity are still derived.
    """

    text = (message or "").lower()
    table = TOPIC_KEYWORDS.get(normalize_category(category), {})

    topics: List[str] = []
    keywords: List[str] = []
    for topic, topic_keywords in table.items():
        hits = tuple(keyword for keyword in topic_keywords if keyword in text)
        if hits:
            topics.append(topic)
            keywords.extend(hits)

    return IntentAnalysis(
        topics=tuple(topics),
        keywords=tuple(keywords),
        intent=classify_intent(text),
        specificity=_specificity(len(keywords), len(text)),
    )


def classify_intent(text: str) -> str:
    lowered = (text or "").lower()
    for needles, intent in _INTENT_RULES:
        if any(needle in lowered for needle in needles):
            return intent
    return INTENT_GENERAL


def _specificity(keyword_count: int, message_length: int) -> str:
    if keyword_count > 3 or message_length > 50:
        return SPECIFICITY_HIGH
    if keyword_count > 1 or message_length > 20:
        return SPECIFICITY_MEDIUM
    return SPECIFICITY_LOW
