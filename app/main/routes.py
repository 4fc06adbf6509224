from flask import redirect, render_template, url_for
from flask_login import current_user, login_required

from ..services.conversations import get_conversation_repository
from . import bp

CHAT_CATEGORIES = [
    {
        "id": "story-development",
        "title": "Story Development",
        "description": "Shape plots, structure and pacing from first idea to final act.",
        "examples": ["How do I build tension in my story?", "My middle act drags."],
    },
    {
        "id": "character-creation",
        "title": "Character Creation",
        "description": "Build characters with believable motivations, flaws and voices.",
        "examples": ["Give my villain a better motivation", "How do I write a backstory?"],
    },
    {
        "id": "plot-brainstorming",
        "title": "Plot Brainstorming",
        "description": "Generate twists, scenes and endings when the page is blank.",
        "examples": ["I need a surprising twist", "Ideas for a finale"],
    },
    {
        "id": "writing-style",
        "title": "Writing Style",
        "description": "Refine prose, dialogue, imagery and voice.",
        "examples": ["Show me vivid description", "Fix my dialogue tags"],
    },
]


@bp.route("/")
def index():
    if current_user.is_authenticated:
        return redirect(url_for("main.workspace"))
    return render_template("main/landing.html", categories=CHAT_CATEGORIES)


@bp.route("/workspace")
@login_required
def workspace():
    conversations = get_conversation_repository().list_conversations(current_user.id)
    return render_template(
        "main/workspace.html",
        categories=CHAT_CATEGORIES,
        conversations=conversations,
    )
