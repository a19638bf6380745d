"""Backend route table, relative to the API base URL."""

from __future__ import annotations

from urllib.parse import quote

GOALS = "/goals"
PROMPTS = "/prompts"
PROMPT_CREATE = "/prompts/new"
PROMPT_DELETE = "/prompts/delete"
SOLUTION_CREATE = "/solutions/new"
UPDATE_KEY = "/update-key"
LOGS = "/logs"

# OpenRouter, relative to its own base URL
OPENROUTER_MODELS = "/models"


def _seg(uid: str) -> str:
    return quote(uid, safe="")


def goal(uid: str) -> str:
    return f"/goals/{_seg(uid)}"


def goal_update(uid: str) -> str:
    return f"/goals/{_seg(uid)}/update"


def prompt(uid: str) -> str:
    return f"/prompts/{_seg(uid)}"


def prompt_update(uid: str) -> str:
    return f"/prompts/{_seg(uid)}/update"


def solution_update(solution_id: str) -> str:
    return f"/solutions/{_seg(solution_id)}/update"


def solution_delete(solution_id: str) -> str:
    return f"/solutions/{_seg(solution_id)}/delete"


def goal_logs(goal_uid: str) -> str:
    return f"/logs/goal/{_seg(goal_uid)}"


def prompt_logs(prompt_uid: str) -> str:
    return f"/logs/prompt/{_seg(prompt_uid)}"
