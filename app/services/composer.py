"""Deterministic local responder used when no hosted model answers."""

from __future__ import annotations

from typing import List, Optional, Sequence

from .intent import (
    INTENT_ASSISTANCE,
    INTENT_EXAMPLES,
    INTENT_HOW_TO,
    SPECIFICITY_HIGH,
    IntentAnalysis,
    analyze,
)
from .prompts import DEFAULT_CATEGORY, category_label, normalize_category

CHARACTER_CATEGORY = "character-creation"
MAX_FOLLOW_UP_QUESTIONS = 2

PLOT_TIPS = (
    "**Plot Development Tips:**\n"
    "- Consider the three-act structure: Setup → Confrontation → Resolution\n"
    "- Each scene should either advance plot or develop character\n"
    "- Build tension through escalating obstacles\n"
    "- Give your protagonist both external and internal conflicts"
)

CHARACTER_TIPS = (
    "**Character Development Techniques:**\n"
    "- Give characters clear motivations and goals\n"
    "- Create believable flaws alongside strengths\n"
    "- Show character growth through actions, not just dialogue\n"
    "- Develop unique voices for each character"
)

DIALOGUE_TIPS = (
    "**Dialogue Tips:**\n"
    "- Each character should have a distinct speaking style\n"
    "- Use subtext - characters rarely say exactly what they mean\n"
    "- Break up dialogue with action beats\n"
    "- Read dialogue aloud to test if it sounds natural"
)

GENERAL_ADVICE = {
    "story-development": (
        "Let's build your story foundation:\n\n"
        "**Core Elements:**\n"
        "- **Protagonist:** Who is your main character?\n"
        "- **Goal:** What do they want more than anything?\n"
        "- **Conflict:** What stands in their way?\n"
        "- **Stakes:** What happens if they fail?\n\n"
        "Start with these elements, and your plot will naturally emerge from your "
        "character's struggle to achieve their goal."
    ),
    "character-creation": (
        "Character creation is about building believable people:\n\n"
        "**The Character Diamond:**\n"
        "- **Want:** What they consciously desire\n"
        "- **Need:** What they unconsciously require for growth\n"
        "- **Flaw:** The weakness that holds them back\n"
        "- **Strength:** The quality that will eventually save them\n\n"
        "Characters become compelling when their wants and needs conflict, forcing "
        "difficult choices."
    ),
    "plot-brainstorming": (
        "Let's generate some plot ideas:\n\n"
        "**Plot Spark Techniques:**\n"
        "- **What If:** Start with \"What if...\" and explore possibilities\n"
        "- **Conflict Escalation:** Small problem → bigger problem → impossible situation\n"
        "- **Character Collision:** Put two opposing characters in the same space\n"
        "- **Secret Reveal:** What hidden truth would change everything?\n\n"
        "The best plots come from character motivation meeting external obstacles."
    ),
    "writing-style": (
        "Let's refine your writing craft:\n\n"
        "**Style Fundamentals:**\n"
        "- **Show vs. Tell:** Demonstrate emotions through actions and dialogue\n"
        "- **Sensory Details:** Engage all five senses in your descriptions\n"
        "- **Varied Sentences:** Mix short, punchy sentences with longer, flowing ones\n"
        "- **Active Voice:** Use strong, specific verbs\n\n"
        "Your unique voice develops through consistent practice and conscious choice."
    ),
}

ASSISTANCE_BLOCK = (
    "I understand you're feeling stuck! This is completely normal for writers. Here are "
    "some strategies to break through:\n\n"
    "**Quick Exercises:**\n"
    "- Write for just 10 minutes without stopping\n"
    "- Change your writing environment\n"
    "- Interview your characters about their secrets\n"
    "- Write the scene you're avoiding\n\n"
    "**If you're stuck on plot:**\n"
    "- Ask \"What's the worst thing that could happen right now?\"\n"
    "- Consider what your character fears most, then make them face it\n"
    "- Try writing the ending first, then work backward\n\n"
    "**If you're stuck on characters:**\n"
    "- Write a scene of them doing something mundane (grocery shopping, etc.)\n"
    "- Create a dialogue between two characters who disagree\n"
    "- Write their internal monologue during a stressful moment\n\n"
    "What specifically are you stuck on? I can provide more targeted help!"
)

GENERIC_FOLLOW_UPS = (
    "What specific aspect would you like to explore further?",
    "What's the biggest challenge you're facing with this project?",
)

CLOSING_NOTE = (
    "Feel free to share more details about your project - the more specific you are, "
    "the better I can help!"
)


def compose(analysis: IntentAnalysis, message: str, category: str) -> str:
    """Assemble a reply from the canned advice library.

    The output is the opening line, the intent-specific body, any
    topic-triggered tip blocks and the follow-up questions, separated by
    blank lines. The same inputs always produce the same text.
    """

    category = normalize_category(category)
    sections = [
        _opening_line(analysis, category),
        _body(analysis, message, category),
    ]
    sections.extend(_topic_tips(analysis.topics, category))
    sections.append(_closing(analysis.topics, category))
    return "\n\n".join(sections)


def compose_local_response(category: str, message: str) -> str:
    """Analyse ``message`` and compose the local answer in one step."""

    return compose(analyze(message, category), message, category)


def _opening_line(analysis: IntentAnalysis, category: str) -> str:
    if analysis.specificity == SPECIFICITY_HIGH:
        subject = " and ".join(analysis.topics) or "your creative writing"
        return f"Great question about {subject}!"
    return f"I'd love to help you with {category_label(category) or 'your writing'}!"


def _body(analysis: IntentAnalysis, message: str, category: str) -> str:
    if analysis.intent == INTENT_HOW_TO:
        return _how_to_block(analysis.topics, category)
    if analysis.intent == INTENT_EXAMPLES:
        return _examples_block(analysis.topics, category)
    if analysis.intent == INTENT_ASSISTANCE or "stuck" in (message or "").lower():
        return ASSISTANCE_BLOCK
    return GENERAL_ADVICE.get(category, GENERAL_ADVICE[DEFAULT_CATEGORY])


def _is_character_focus(topics: Sequence[str], category: str) -> bool:
    return "character" in topics or category == CHARACTER_CATEGORY


def _how_to_block(topics: Sequence[str], category: str) -> str:
    if "plot" in topics:
        return (
            "Here's how to develop a compelling plot:\n\n"
            "1. **Start with your character's goal** - What does your protagonist desperately want?\n"
            "2. **Create obstacles** - What prevents them from getting it?\n"
            "3. **Escalate the stakes** - What happens if they fail?\n"
            "4. **Plan key turning points** - When does everything change?\n"
            "5. **Build to a climax** - How will the main conflict be resolved?"
        )
    if _is_character_focus(topics, category):
        return (
            "Here's how to create compelling characters:\n\n"
            "1. **Define their core motivation** - What drives them?\n"
            "2. **Give them a fatal flaw** - What weakness will cause problems?\n"
            "3. **Create a detailed backstory** - What shaped them?\n"
            "4. **Establish their voice** - How do they speak and think?\n"
            "5. **Plan their character arc** - How will they change?"
        )
    return (
        f"Here's a step-by-step approach to {category_label(category) or 'your writing'}:\n\n"
        "1. **Start with the basics** - Understand the fundamentals\n"
        "2. **Practice specific techniques** - Focus on one skill at a time\n"
        "3. **Study examples** - Read works in your genre\n"
        "4. **Write regularly** - Consistency builds skill\n"
        "5. **Seek feedback** - Get input from other writers"
    )


def _examples_block(topics: Sequence[str], category: str) -> str:
    if _is_character_focus(topics, category):
        return (
            "Here are some character examples:\n\n"
            "**Complex Protagonist:** A detective who breaks rules to solve cases, but "
            "struggles with alcoholism and failed relationships. Their strength "
            "(determination) is also their weakness (obsession).\n\n"
            "**Compelling Antagonist:** A corporate CEO who genuinely believes they're "
            "saving the world through technology, but their methods harm communities. "
            "They're not evil - they're convinced they're right.\n\n"
            "**Supporting Character:** A wise mentor who appears helpful but secretly "
            "manipulates events for their own agenda, revealed only at the story's climax."
        )
    if "plot" in topics:
        return (
            "Here are some plot structure examples:\n\n"
            "**Three-Act Structure:**\n"
            "- Act I: Harry Potter learns he's a wizard (Setup)\n"
            "- Act II: He faces challenges at Hogwarts and discovers Voldemort's plan (Confrontation)\n"
            "- Act III: Final confrontation and resolution (Resolution)\n\n"
            "**Hero's Journey:**\n"
            "- Ordinary World → Call to Adventure → Crossing the Threshold → Tests and "
            "Trials → Return Transformed"
        )
    return (
        f"Here are some practical examples for {category_label(category) or 'your writing'}:\n\n"
        "**Good:** Shows character emotion through action\n"
        "**Better:** \"Sarah's hands trembled as she reached for the letter\"\n\n"
        "**Good:** Describes the setting\n"
        "**Better:** \"The abandoned house groaned in the wind, its broken shutters "
        "flapping like wounded birds\""
    )


def _topic_tips(topics: Sequence[str], category: str) -> List[str]:
    tips: List[str] = []
    if "plot" in topics:
        tips.append(PLOT_TIPS)
    if _is_character_focus(topics, category):
        tips.append(CHARACTER_TIPS)
    if "dialogue" in topics:
        tips.append(DIALOGUE_TIPS)
    return tips


def follow_up_questions(topics: Sequence[str], category: str) -> List[str]:
    """Return at most two follow-up questions for the closing block."""

    questions: List[str] = []
    if _is_character_focus(topics, category):
        questions.append("What's your character's biggest fear?")
        questions.append("How do they handle conflict?")
    if "plot" in topics or category == DEFAULT_CATEGORY:
        questions.append("What genre are you writing in?")
        questions.append("What's at stake if your protagonist fails?")
    if "dialogue" in topics:
        questions.append("Do your characters have distinct speaking styles?")
    if not questions:
        questions.extend(GENERIC_FOLLOW_UPS)
    return questions[:MAX_FOLLOW_UP_QUESTIONS]


def _closing(topics: Sequence[str], category: Optional[str]) -> str:
    lines = ["**Let's dig deeper:**"]
    lines.extend(f"- {question}" for question in follow_up_questions(topics, category or ""))
    return "\n".join(lines) + "\n\n" + CLOSING_NOTE
