from __future__ import annotations

from gemini_review.review.prompt import PATCH_PLACEHOLDER
from gemini_review.review.prompt import compose_prompt
from gemini_review.review.prompts import HELP_ME_REVIEW_PROMPT
from gemini_review.review.prompts import IMPROVE_COMMIT_MESSAGE

CONTEXT = "\n--- File: a.py ---\nprint('hi')\n"


def test_placeholder_is_replaced_and_nothing_appended() -> None:
    prompt = compose_prompt(instruction="Review:\n{{patch}}\nThanks.", change_number=5, context=CONTEXT)
    assert prompt == f"Review:\n{CONTEXT}\nThanks."
    assert "Code Content:" not in prompt


def test_only_first_placeholder_is_replaced() -> None:
    prompt = compose_prompt(instruction="{{patch}} and {{patch}}", change_number=5, context="X")
    assert prompt == "X and {{patch}}"


def test_without_placeholder_appends_structured_suffix() -> None:
    prompt = compose_prompt(instruction="Please review this code change.", change_number=1234, context=CONTEXT)
    assert prompt == (
        "Please review this code change.\n\n"
        "Context: This is a code review for change 1234.\n"
        f"Code Content:\n{CONTEXT}"
    )
    assert prompt.endswith(f"Code Content:\n{CONTEXT}")


def test_replacement_text_is_inserted_literally() -> None:
    prompt = compose_prompt(instruction="A {{patch}} B", change_number=1, context="$& \\1")
    assert prompt == "A $& \\1 B"


def test_canned_action_prompts_use_placeholder() -> None:
    assert PATCH_PLACEHOLDER in HELP_ME_REVIEW_PROMPT
    assert PATCH_PLACEHOLDER in IMPROVE_COMMIT_MESSAGE


def test_compose_is_deterministic() -> None:
    first = compose_prompt(instruction="Explain.", change_number=9, context=CONTEXT)
    second = compose_prompt(instruction="Explain.", change_number=9, context=CONTEXT)
    assert first == second
