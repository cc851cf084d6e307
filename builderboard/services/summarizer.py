from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from openai import AsyncOpenAI, OpenAIError


SYSTEM_PROMPT = (
    "You are a helpful assistant that summarizes GitHub repositories. "
    "Create a concise 1-2 sentence summary of what the project does based on the README. "
    "Focus on the main purpose and technology used. Keep it under 150 characters."
)

SUMMARY_MAX_CHARS = 150

_BARE_LINK_RE = re.compile(r"^\[.*\]\(.*\)$")

logger = logging.getLogger(__name__)


def simple_summary(readme: str | None, repo_name: str) -> str | None:
    """
    Summary без LLM: первая осмысленная строка README.
    """
    if not readme:
        return None

    for line in readme.split("\n"):
        s = line.strip()
        # заголовки, картинки, бейджи, код, ссылки, списки
        if len(s) <= 20:
            continue
        if s.startswith(("#", "![", "[!", "```", "-", "*")):
            continue
        if _BARE_LINK_RE.match(s):
            continue

        s = s.replace("**", "").replace("*", "").replace("`", "")
        if len(s) > SUMMARY_MAX_CHARS:
            s = s[:SUMMARY_MAX_CHARS - 3] + "..."
        return s

    return f"A project called {repo_name}"


@dataclass
class Summarizer:
    client: Optional[AsyncOpenAI] = None
    model: str = "gpt-4o-mini"

    @property
    def enabled(self) -> bool:
        return self.client is not None

    async def summarize(self, readme: str | None, repo_name: str) -> str | None:
        if self.client is None or not readme:
            return simple_summary(readme, repo_name)

        try:
            resp = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": f'Summarize this GitHub repository "{repo_name}":\n\n{readme}'},
                ],
                max_tokens=100,
                temperature=0.3,
            )
            content = resp.choices[0].message.content if resp.choices else None
            if content and content.strip():
                return content.strip()
        except OpenAIError as e:
            logger.warning("OpenAI summary failed for %s: %s", repo_name, e)

        return simple_summary(readme, repo_name)
