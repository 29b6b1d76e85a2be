# Multi-provider LLM client
# OpenAI (gpt-4o) primary with Claude fallback
# Integrates LangSmith tracing (manual control of tokens + cost)

import asyncio
import logging
import os
import time
from pathlib import Path
from typing import Optional, Protocol

from anthropic import AsyncAnthropic
from dotenv import load_dotenv
from langsmith import traceable
from langsmith.run_helpers import get_current_run_tree
from openai import AsyncOpenAI

from catalog_enhancer.errors import CapabilityError

logger = logging.getLogger(__name__)

# Load .env file
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(env_path)

# ===== API Keys =====
OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY", "")
ANTHROPIC_API_KEY = os.environ.get("ANTHROPIC_API_KEY", "")

# Provider preference: "openai" | "claude" | "auto" (auto = openai primary, claude fallback)
LLM_PROVIDER = os.environ.get("LLM_PROVIDER", "auto")

# Upper bound for a single capability call, in seconds
LLM_TIMEOUT_SECONDS = float(os.environ.get("LLM_TIMEOUT_SECONDS", "60"))

OPENAI_MODEL = "gpt-4o"
CLAUDE_MODEL = "claude-sonnet-4-20250514"

# ===== Cost configuration (USD per 1M tokens) =====
COST_PER_1M = {
    "gpt-4o": {"input": 2.5, "output": 10.0, "cache_read": 1.25},
    "gpt-4o-mini": {"input": 0.15, "output": 0.6, "cache_read": 0.075},
    "claude-sonnet-4-20250514": {"input": 3.0, "output": 15.0, "cache_read": 0.3},
}


def calculate_cost(model: str, input_tokens: int, output_tokens: int, cache_read: int = 0) -> float:
    """Calculate API call cost."""
    costs = COST_PER_1M.get(model, {"input": 1.0, "output": 1.0, "cache_read": 0.1})
    cost = (
        (input_tokens / 1_000_000) * costs["input"]
        + (output_tokens / 1_000_000) * costs["output"]
        + (cache_read / 1_000_000) * costs.get("cache_read", 0.1)
    )
    return cost


def get_openai_client(api_key: Optional[str] = None) -> AsyncOpenAI:
    """Get async OpenAI client (auto-retries on 429/5xx with exponential backoff)."""
    key = api_key or OPENAI_API_KEY
    if not key:
        raise ValueError("OPENAI_API_KEY not set")
    return AsyncOpenAI(api_key=key, max_retries=3)


def get_claude_client(api_key: Optional[str] = None) -> AsyncAnthropic:
    """Get async Claude client (auto-retries on 429/529 with exponential backoff)."""
    key = api_key or ANTHROPIC_API_KEY
    if not key:
        raise ValueError("ANTHROPIC_API_KEY not set")
    return AsyncAnthropic(api_key=key, max_retries=3)


def _rename_run(trace_name: str | None) -> None:
    if not trace_name:
        return
    try:
        run = get_current_run_tree()
        if run:
            run.name = trace_name
    except Exception:
        pass


def _record_cost(cost: float) -> None:
    try:
        run = get_current_run_tree()
        if run:
            run.extra["total_cost"] = cost
    except Exception:
        pass


@traceable(run_type="llm", name="OpenAI API")
async def call_openai(
    system_prompt: str,
    user_message: str,
    api_key: Optional[str] = None,
    model: str = OPENAI_MODEL,
    max_tokens: int = 4096,
    temperature: Optional[float] = None,
    trace_name: str | None = None,
) -> dict:
    """Call the OpenAI chat completions API.

    Returns:
        dict with text, usage_metadata, model, cost_usd
    """
    _rename_run(trace_name)
    client = get_openai_client(api_key)

    messages = []
    if system_prompt.strip():
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": user_message})

    kwargs = {"model": model, "max_tokens": max_tokens, "messages": messages}
    if temperature is not None:
        kwargs["temperature"] = temperature
    response = await client.chat.completions.create(**kwargs)

    finish_reason = response.choices[0].finish_reason
    text_content = response.choices[0].message.content or ""
    if finish_reason == "length":
        logger.warning("OpenAI response truncated (max_tokens=%d)", max_tokens)
        if not text_content.strip():
            raise RuntimeError(f"OpenAI response truncated with empty text (max_tokens={max_tokens})")

    usage = response.usage
    input_tokens = usage.prompt_tokens
    output_tokens = usage.completion_tokens
    details = getattr(usage, "prompt_tokens_details", None)
    cache_read = getattr(details, "cached_tokens", 0) or 0

    cost = calculate_cost(model, input_tokens, output_tokens, cache_read)
    logger.info(
        "OpenAI call: in=%d, out=%d, cache_read=%d, cost=$%.4f",
        input_tokens, output_tokens, cache_read, cost,
        extra={"provider": "openai", "model": model},
    )
    _record_cost(cost)

    return {
        "text": text_content,
        "usage_metadata": {
            "input_tokens": input_tokens,
            "output_tokens": output_tokens,
            "total_tokens": input_tokens + output_tokens,
            "cache_read_tokens": cache_read,
            "total_cost": cost,
        },
        "model": model,
        "cost_usd": cost,
    }


@traceable(run_type="llm", name="Claude API")
async def call_claude(
    system_prompt: str,
    user_message: str,
    api_key: Optional[str] = None,
    model: str = CLAUDE_MODEL,
    max_tokens: int = 4096,
    temperature: Optional[float] = None,
    use_cache: bool = False,
    trace_name: str | None = None,
) -> dict:
    """Call Claude API (supports Prompt Caching).

    Returns:
        dict with text, usage_metadata, model, cost_usd
    """
    _rename_run(trace_name)
    client = get_claude_client(api_key)

    if use_cache and system_prompt.strip():
        system = [
            {
                "type": "text",
                "text": system_prompt,
                "cache_control": {"type": "ephemeral"},
            }
        ]
    else:
        system = system_prompt

    kwargs = {
        "model": model,
        "max_tokens": max_tokens,
        "system": system,
        "messages": [{"role": "user", "content": user_message}],
    }
    if temperature is not None:
        kwargs["temperature"] = temperature
    response = await client.messages.create(**kwargs)

    text_content = ""
    for block in response.content:
        if hasattr(block, "text"):
            text_content += block.text

    usage = response.usage
    input_tokens = usage.input_tokens
    output_tokens = usage.output_tokens
    cache_read = getattr(usage, "cache_read_input_tokens", 0) or 0
    cache_created = getattr(usage, "cache_creation_input_tokens", 0) or 0

    cost = calculate_cost(model, input_tokens, output_tokens, cache_read)
    logger.info(
        "Claude call: in=%d, out=%d, cache_read=%d, cost=$%.4f",
        input_tokens, output_tokens, cache_read, cost,
        extra={"provider": "claude", "model": model},
    )
    if cache_created > 0:
        logger.debug("Claude cache created: %d tokens", cache_created)
    _record_cost(cost)

    return {
        "text": text_content,
        "usage_metadata": {
            "input_tokens": input_tokens,
            "output_tokens": output_tokens,
            "total_tokens": input_tokens + output_tokens,
            "cache_read_tokens": cache_read,
            "cache_created_tokens": cache_created,
            "total_cost": cost,
        },
        "model": model,
        "cost_usd": cost,
    }


@traceable(run_type="chain", name="LLM with Fallback")
async def call_llm_with_fallback(
    system_prompt: str,
    user_message: str,
    primary: str | None = None,
    fallback: str | None = None,
    max_tokens: int = 4096,
    temperature: Optional[float] = None,
    trace_name: str | None = None,
) -> dict:
    """Call LLM with automatic fallback on failure.

    Provider resolution:
    - LLM_PROVIDER="openai" -> openai only (no fallback)
    - LLM_PROVIDER="claude" -> claude only (no fallback)
    - LLM_PROVIDER="auto"   -> primary=openai, fallback=claude (default)

    Returns dict with same format + extra `provider` field.
    """
    _rename_run(trace_name)

    if primary is None:
        if LLM_PROVIDER == "openai":
            primary, fallback = "openai", None
        elif LLM_PROVIDER == "claude":
            primary, fallback = "claude", None
        else:  # "auto"
            primary, fallback = "openai", "claude"

    providers = [primary]
    if fallback:
        providers.append(fallback)

    for provider in providers:
        try:
            if provider == "openai":
                result = await call_openai(
                    system_prompt=system_prompt,
                    user_message=user_message,
                    max_tokens=max_tokens,
                    temperature=temperature,
                    trace_name=f"{trace_name} [OpenAI]" if trace_name else "OpenAI",
                )
            else:  # claude
                result = await call_claude(
                    system_prompt=system_prompt,
                    user_message=user_message,
                    max_tokens=max_tokens,
                    temperature=temperature,
                    trace_name=f"{trace_name} [Claude]" if trace_name else "Claude",
                )
            result["provider"] = provider
            return result
        except Exception as e:
            logger.warning("%s failed: %s", provider, e, extra={"provider": provider})
            if fallback and provider == primary:
                logger.info("Falling back to %s", fallback)
                continue
            raise

    raise RuntimeError("No LLM provider configured")


def extract_json_from_response(response: str) -> str:
    """Extract JSON from response text."""
    response = response.strip()

    if response.startswith("{") and response.endswith("}"):
        return response
    if response.startswith("[") and response.endswith("]"):
        return response

    if "```json" in response:
        start = response.find("```json") + 7
        end = response.find("```", start)
        if end > start:
            return response[start:end].strip()

    if "```" in response:
        start = response.find("```") + 3
        end = response.find("```", start)
        if end > start:
            return response[start:end].strip()

    first_brace = response.find("{")
    last_brace = response.rfind("}")
    if first_brace != -1 and last_brace > first_brace:
        return response[first_brace : last_brace + 1]

    return response


# ===== Capability port =====


class ContentModel(Protocol):
    """What validation and enhancement need from a language model."""

    async def complete(
        self,
        system_prompt: str,
        user_message: str,
        temperature: Optional[float] = None,
    ) -> str: ...


class LLMCapability:
    """ContentModel backed by call_llm_with_fallback, bounded by a timeout.

    Every failure (provider error, timeout, empty text) surfaces as
    CapabilityError so callers handle one exception type.
    """

    def __init__(
        self,
        timeout: float = LLM_TIMEOUT_SECONDS,
        primary: str | None = None,
        fallback: str | None = None,
        max_tokens: int = 4096,
    ) -> None:
        self.timeout = timeout
        self.primary = primary
        self.fallback = fallback
        self.max_tokens = max_tokens

    async def complete(
        self,
        system_prompt: str,
        user_message: str,
        temperature: Optional[float] = None,
    ) -> str:
        start = time.monotonic()
        try:
            result = await asyncio.wait_for(
                call_llm_with_fallback(
                    system_prompt=system_prompt,
                    user_message=user_message,
                    primary=self.primary,
                    fallback=self.fallback,
                    max_tokens=self.max_tokens,
                    temperature=temperature,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise CapabilityError(f"LLM call timed out after {self.timeout:.0f}s") from e
        except Exception as e:
            raise CapabilityError(str(e)) from e

        text = (result.get("text") or "").strip()
        logger.debug(
            "LLM call finished",
            extra={
                "provider": result.get("provider"),
                "duration_ms": round((time.monotonic() - start) * 1000, 1),
            },
        )
        if not text:
            raise CapabilityError("LLM returned an empty response")
        return text
