# src/zenpriority/llm/offline.py

from __future__ import annotations

import json
import re
from collections.abc import Iterable

from ..core.ports import ChatMessage

_PRIORITY_RANK = {"high": 0, "medium": 1, "low": 2}
_TITLE_RE = re.compile(r'titled:\s*"(.*)"\s*$', re.DOTALL)


class OfflineLLMClient:
    """
    Offline deterministic LLM client used for demos when no external API is configured.

    Behavior:
    - Smart sort prompts -> ids ordered by the task's own priority (high first), stable
    - Enhance prompts -> a templated one-sentence description
    """

    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]:
        sp = (system_prompt or "").lower()
        user_text = ""
        for m in reversed(messages):
            if m["role"] == "user":
                user_text = m["content"]
                break

        if "prioritization module" in sp:
            yield self._sort(user_text)
            return

        m = _TITLE_RE.search(user_text)
        title = m.group(1).strip() if m else user_text.strip()
        yield f"Complete \"{title}\" and note any follow-ups."

    @staticmethod
    def _sort(payload: str) -> str:
        try:
            items = json.loads(payload)
        except ValueError:
            return "[]"
        if not isinstance(items, list):
            return "[]"
        ranked = sorted(
            (it for it in items if isinstance(it, dict) and "id" in it),
            key=lambda it: _PRIORITY_RANK.get(str(it.get("priority", "medium")), 1),
        )
        return json.dumps([str(it["id"]) for it in ranked])
