"""Compose the single prompt sent to the model for an agent."""

import re

from agentdeck.domain.models import Agent

# C0 controls except tab and newline, DEL, and C1 controls
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b-\x1f\x7f-\x9f]")


def sanitize(text: str) -> str:
    """Strip control characters from text embedded in a prompt.

    This only removes characters that could confuse the transport; it is
    not a defence against prompt injection.
    """
    return _CONTROL_CHARS.sub("", text)


def filter_valid_tasks(tasks: list[str]) -> list[str]:
    """Return the tasks that are non-empty after trimming, trimmed."""
    return [task.strip() for task in tasks if isinstance(task, str) and task.strip()]


def build_prompt(agent: Agent, tasks: list[str] | None = None) -> str:
    """Build the execution prompt for an agent.

    Args:
        agent: Agent whose persona and tasks are embedded
        tasks: Pre-filtered tasks (defaults to the agent's valid tasks)

    Returns:
        Prompt text with the tasks as a numbered list
    """
    valid_tasks = filter_valid_tasks(agent.tasks) if tasks is None else tasks
    task_lines = "\n".join(
        f"{index}. {sanitize(task)}" for index, task in enumerate(valid_tasks, start=1)
    )

    return (
        f"You are {sanitize(agent.name)}, a {sanitize(agent.role)}.\n\n"
        f"Background: {sanitize(agent.backstory)}\n\n"
        f"Your Goal: {sanitize(agent.goal)}\n\n"
        "You have been assigned the following tasks to complete:\n"
        f"{task_lines}\n\n"
        "Please execute these tasks thoroughly and provide detailed results for each one. "
        "Structure your response clearly, showing your work for each task."
    )
