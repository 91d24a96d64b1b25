"""Summarizer — turns a day of entries into a digest via Claude or an OpenAI-compatible model."""

from __future__ import annotations

import re
import sys
from typing import Iterable

from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from mindstream.config import settings
from mindstream.errors import GenerationError
from mindstream.models import Entry
from mindstream.utils.logging import get_logger

log = get_logger(__name__)

SYSTEM_PROMPT = """\
You are an empathetic but truthful reflection companion for a journaling app.
Summarize the user's short voice/text entries from the past day into:
1. A two-sentence headline summary capturing their mood and themes.
2. A balanced factual recap (4-6 sentences).
3. Three motivating takeaways (short bullets).
4. Two actionable suggestions for tomorrow.
Quote short phrases from entries when relevant. Do not make up facts; if \
something is unclear, say so."""

_anthropic: AsyncAnthropic | None = None
_openai: AsyncOpenAI | None = None


def _get_anthropic() -> AsyncAnthropic:
    global _anthropic
    if _anthropic is None:
        _anthropic = AsyncAnthropic(api_key=settings.anthropic_api_key)
    return _anthropic


def _get_openai() -> AsyncOpenAI:
    global _openai
    if _openai is None:
        _openai = AsyncOpenAI(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url or None,
        )
    return _openai


async def _chat_claude(prompt: str, system_prompt: str, model: str) -> str:
    if not settings.anthropic_api_key:
        raise GenerationError("ANTHROPIC_API_KEY is not configured")
    client = _get_anthropic()
    resp = await client.messages.create(
        model=model,
        max_tokens=settings.summary_max_tokens,
        temperature=0.3,
        system=system_prompt,
        messages=[{"role": "user", "content": prompt}],
    )
    return resp.content[0].text


async def _chat_openai(prompt: str, system_prompt: str, model: str) -> str:
    if not settings.openai_api_key:
        raise GenerationError("OPENAI_API_KEY is not configured")
    client = _get_openai()
    resp = await client.chat.completions.create(
        model=model,
        max_tokens=settings.summary_max_tokens,
        temperature=0.3,
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": prompt},
        ],
    )
    return resp.choices[0].message.content or ""


_FAILOVER = {
    "claude": "openai",
    "openai": "claude",
}

_DEFAULT_MODELS = {
    "claude": "claude-sonnet-4-20250514",
    "openai": "gpt-4o",
}


def _get_chat_fn(provider: str):
    """Look up the chat function by provider name at call time.

    Module-level lookup keeps the functions patchable with unittest.mock.
    """
    _this = sys.modules[__name__]
    if provider == "claude":
        return getattr(_this, "_chat_claude")
    elif provider == "openai":
        return getattr(_this, "_chat_openai")
    raise ValueError(f"Unknown LLM provider: {provider}")


def format_entries(entries: Iterable[Entry]) -> str:
    """One line per entry, oldest first, whitespace collapsed."""
    ordered = sorted(entries, key=lambda e: e.created_at)
    lines = []
    for entry in ordered:
        content = re.sub(r"\s+", " ", entry.content).strip()
        lines.append(f"{entry.created_at.isoformat()} — {entry.source}: {content}")
    return "\n".join(lines)


async def generate_summary(
    entries: list[Entry],
    provider: str | None = None,
    model: str | None = None,
) -> str:
    """Summarize ``entries``. Any failure surfaces as GenerationError."""
    if not entries:
        raise GenerationError("no entries to summarize")
    provider = provider or settings.default_llm_provider
    model = model or settings.default_llm_model
    prompt = f"User's entries from the past day:\n{format_entries(entries)}"

    chat_fn = _get_chat_fn(provider)
    try:
        text = await chat_fn(prompt, SYSTEM_PROMPT, model)
    except Exception as primary_exc:
        fallback_provider = _FAILOVER.get(provider)
        if not fallback_provider:
            raise GenerationError(str(primary_exc)) from primary_exc
        log.warning(
            "llm_failover",
            primary=provider,
            fallback=fallback_provider,
            error=str(primary_exc),
        )
        fallback_fn = _get_chat_fn(fallback_provider)
        try:
            text = await fallback_fn(
                prompt, SYSTEM_PROMPT, _DEFAULT_MODELS[fallback_provider]
            )
        except Exception as exc:
            log.warning("llm_fallback_failed", provider=fallback_provider, error=str(exc))
            raise GenerationError(str(exc)) from exc

    text = (text or "").strip()
    if not text:
        raise GenerationError("summarizer returned an empty reply")
    log.info("summary_generated", entries=len(entries), summary_len=len(text))
    return text
