"""Unit tests for prompt composition."""

from agentdeck.application.prompt_builder import build_prompt, filter_valid_tasks, sanitize
from agentdeck.domain.models import Agent


def _agent(**overrides: object) -> Agent:
    fields: dict[str, object] = {
        "name": "Ada",
        "role": "Research Analyst",
        "goal": "Find trends",
        "backstory": "Data nerd",
        "tasks": ["Collect data", "Summarize"],
    }
    fields.update(overrides)
    return Agent(**fields)  # type: ignore[arg-type]


def test_build_prompt_layout() -> None:
    prompt = build_prompt(_agent())

    assert prompt == (
        "You are Ada, a Research Analyst.\n\n"
        "Background: Data nerd\n\n"
        "Your Goal: Find trends\n\n"
        "You have been assigned the following tasks to complete:\n"
        "1. Collect data\n"
        "2. Summarize\n\n"
        "Please execute these tasks thoroughly and provide detailed results for each one. "
        "Structure your response clearly, showing your work for each task."
    )


def test_build_prompt_skips_blank_tasks() -> None:
    prompt = build_prompt(_agent(tasks=["", "  First  ", "   ", "Second"]))

    assert "1. First\n2. Second\n\n" in prompt
    assert "3." not in prompt


def test_build_prompt_strips_control_characters() -> None:
    prompt = build_prompt(_agent(name="A\x00da", tasks=["Line\x07 one\tok"]))

    assert "You are Ada," in prompt
    assert "1. Line one\tok" in prompt


def test_sanitize_keeps_newlines_and_tabs() -> None:
    assert sanitize("a\nb\tc\x1bd\x7fe\x85f") == "a\nb\tcdef"


def test_filter_valid_tasks() -> None:
    assert filter_valid_tasks([" a ", "", "  ", "b"]) == ["a", "b"]
    assert filter_valid_tasks([]) == []
