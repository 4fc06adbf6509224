import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from app.services import composer
from app.services.composer import compose, compose_local_response, follow_up_questions
from app.services.intent import IntentAnalysis, analyze


def _closing_questions(text: str) -> list:
    closing = text.split("**Let's dig deeper:**", 1)[1]
    block = closing.strip().split("\n\n", 1)[0]
    return [line for line in block.splitlines() if line.startswith("- ")]


def test_compose_is_deterministic():
    message = "How do I make the climax of my story land?"
    analysis = analyze(message, "story-development")

    assert compose(analysis, message, "story-development") == compose(
        analysis, message, "story-development"
    )


def test_unknown_category_falls_back_to_story_development_advice():
    text = compose_local_response("poetry", "My draft is finished")

    assert text
    assert "Let's build your story foundation" in text
    assert text.startswith("I'd love to help you with poetry!")


def test_general_category_uses_generic_follow_ups():
    text = compose_local_response("general", "Thoughts on my draft")

    assert _closing_questions(text) == [f"- {q}" for q in composer.GENERIC_FOLLOW_UPS]


def test_high_specificity_opening_names_topics():
    message = "How do I keep the tension high while the story slows down in act two?"
    text = compose_local_response("story-development", message)

    assert text.startswith("Great question about plot and pacing and conflict!")
    assert "Here's how to develop a compelling plot" in text
    assert composer.PLOT_TIPS in text


def test_high_specificity_without_topics_uses_generic_subject():
    analysis = IntentAnalysis(specificity="high")

    text = compose(analysis, "x" * 60, "general")

    assert text.startswith("Great question about your creative writing!")


def test_character_category_how_to_and_tips():
    text = compose_local_response("character-creation", "How do I write a villain?")

    assert "Here's how to create compelling characters" in text
    assert composer.CHARACTER_TIPS in text
    assert "What's your character's biggest fear?" in text


def test_examples_intent_for_plot_topics():
    text = compose_local_response("story-development", "Give an example of plot structure")

    assert "Here are some plot structure examples" in text


def test_stuck_message_gets_assistance_block_even_with_other_intent():
    text = compose_local_response("plot-brainstorming", "What now? I'm stuck")

    assert composer.ASSISTANCE_BLOCK in text


def test_all_topic_addenda_can_fire_together():
    analysis = IntentAnalysis(topics=("plot", "dialogue"), keywords=("plot", "dialogue"))

    text = compose(analysis, "plot and dialogue", "character-creation")

    assert composer.PLOT_TIPS in text
    assert composer.CHARACTER_TIPS in text
    assert composer.DIALOGUE_TIPS in text
    assert len(_closing_questions(text)) == 2


def test_sections_are_separated_by_blank_lines():
    text = compose_local_response("writing-style", "Thoughts on my draft")
    sections = text.split("\n\n")

    assert sections[0] == "I'd love to help you with writing style!"
    assert sections[1] == "Let's refine your writing craft:"


@pytest.mark.parametrize(
    "category",
    ["story-development", "character-creation", "plot-brainstorming", "writing-style", "general"],
)
@pytest.mark.parametrize(
    "message",
    [
        "How do I write dialogue for my plot?",
        "Show me an example of a character with a secret past",
        "I'm stuck and need help",
        "ok",
    ],
)
def test_output_is_non_empty_with_at_most_two_questions(category, message):
    text = compose_local_response(category, message)

    assert text.strip()
    assert 1 <= len(_closing_questions(text)) <= 2


def test_follow_up_questions_are_capped():
    questions = follow_up_questions(("character", "plot", "dialogue"), "story-development")

    assert questions == ["What's your character's biggest fear?", "How do they handle conflict?"]
