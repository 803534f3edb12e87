# src/zenpriority/llm/assist.py

"""
The two board features backed by the language model:

- enhance: draft a short description from a task title
- smart sort: suggest a priority order for the current tasks

Both are blocking (the LLM client streams synchronously); the controller runs
them in a worker thread.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Sequence
from typing import Any

from ..core.errors import AIError
from ..core.ports import LLMClient
from ..tasks.task_models import Task

logger = logging.getLogger(__name__)

ENHANCE_SYSTEM_PROMPT = """
You write task descriptions for a personal task board.

Rules:
- Plain text only. No Markdown, no quotes, no lists, no emojis.
- At most 2 sentences.
- Professional and action-oriented.
""".strip()

SMART_SORT_SYSTEM_PROMPT = """
You are a task prioritization module for a personal task board.

Input: a JSON array of tasks, each {"id", "title", "description", "priority"}.

Task:
- Order the tasks from what should be done first to what can wait.
- Consider urgency and importance implied by title and description.
- The "priority" field is the user's own label; use it as a strong hint.

Output format:
Return STRICT JSON only: an array of the task id strings in the suggested order.
Every id must appear exactly once. No extra text. No Markdown.
""".strip()

_SENTENCE_END = re.compile(r"(?<=[.!?…])\s+")

MAX_DESCRIPTION_SENTENCES = 2


def _collect(llm: LLMClient, user_message: str, system_prompt: str) -> str:
    raw = ""
    for piece in llm.stream_chat([{"role": "user", "content": user_message}], system_prompt):
        raw += piece
    return raw


def _clip_sentences(text: str, limit: int = MAX_DESCRIPTION_SENTENCES) -> str:
    sentences = [s for s in _SENTENCE_END.split(text) if s.strip()]
    return " ".join(sentences[:limit]).strip()


def enhance_task_description(llm: LLMClient, title: str) -> str:
    """
    Return a suggested description for `title`.

    Empty string when the model produced no text. Raises AIError when the
    LLM call itself failed.
    """
    title = (title or "").strip()
    if not title:
        return ""

    prompt = (
        "Write a short, professional, action-oriented description (max 2 sentences) "
        f'for a task titled: "{title}"'
    )
    try:
        raw = _collect(llm, prompt, ENHANCE_SYSTEM_PROMPT)
    except Exception as e:
        logger.warning("Enhance LLM call failed: %s", e)
        raise AIError(str(e)) from e

    text = " ".join(raw.split())
    return _clip_sentences(text)


def _extract_json_array(raw: str) -> str:
    raw = raw.strip()
    if raw.startswith("[") and raw.endswith("]"):
        return raw
    first = raw.find("[")
    last = raw.rfind("]")
    if first != -1 and last != -1 and last > first:
        return raw[first : last + 1]
    return raw


def parse_id_order(raw: str, fallback: Sequence[str]) -> list[str]:
    """
    Parse the model's JSON id array.

    Anything malformed (not JSON, not a list, non-string entries) yields
    `fallback` unchanged.
    """
    try:
        data: Any = json.loads(_extract_json_array(raw or ""))
    except ValueError:
        logger.warning("Smart sort: unparseable model output %r; keeping current order", (raw or "")[:500])
        return list(fallback)

    if not isinstance(data, list) or not all(isinstance(x, str) for x in data):
        logger.warning("Smart sort: model output is not a list of ids; keeping current order")
        return list(fallback)

    return [x.strip() for x in data]


def build_sort_payload(tasks: Sequence[Task]) -> str:
    items = [
        {
            "id": t.id,
            "title": t.title,
            "description": t.description,
            "priority": t.priority.value,
        }
        for t in tasks
    ]
    return json.dumps(items, ensure_ascii=False)


def suggest_task_order(llm: LLMClient, tasks: Sequence[Task]) -> list[str]:
    """
    Ask the model for a priority order of `tasks`.

    Returns a list of ids. Parse problems fall back to the current id order;
    a failed LLM call raises AIError.
    """
    current = [t.id for t in tasks]
    try:
        raw = _collect(llm, build_sort_payload(tasks), SMART_SORT_SYSTEM_PROMPT)
    except Exception as e:
        logger.warning("Smart sort LLM call failed: %s", e)
        raise AIError(str(e)) from e

    ids = parse_id_order(raw, current)
    logger.debug("Smart sort suggestion: %s", ids)
    return ids
