"""
Centralized LLM task-to-model routing.

This module is the single source of truth for which model handles which
task, and exposes helpers that send chat-style requests to the configured
provider (OpenAI-compatible chat completions, or Anthropic messages) and
parse JSON replies.
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional
import json
import logging
import os
import re
import time

import httpx

from ..errors import GenerationServiceError, message_for_status

logger = logging.getLogger(__name__)


# Available models per provider; the graph model handles structured tasks
MODEL_PROVIDERS: Dict[str, Dict[str, Any]] = {
    "openai": {
        "displayName": "OpenAI",
        "models": ["gpt-4o", "gpt-4-turbo", "gpt-4o-mini", "o1", "o1-mini", "o3-mini"],
        "graphModel": "gpt-4o",
    },
    "anthropic": {
        "displayName": "Anthropic",
        "models": [
            "claude-3-5-haiku-latest",
            "claude-3-5-sonnet-20241022",
            "claude-3-7-sonnet-20250219",
            "claude-3-opus-latest",
        ],
        "graphModel": "claude-3-5-haiku-latest",
    },
}

# Tasks that produce structured objects
STRUCTURED_TASKS = {"generateGraph", "createQuiz", "validateAnswer"}

REQUEST_TIMEOUT = float(os.getenv("LLM_TIMEOUT_SEC", "60"))


def get_model_for_task(task_name: str, provider: str = "openai", selected_model: Optional[str] = None) -> str:
    # Allow per-task override via env: LLM_MODEL_<TASK_NAME>
    env_key = f"LLM_MODEL_{task_name}"
    normalized = re.sub(r"[^A-Za-z0-9]+", "_", task_name).upper()
    env_key_norm = f"LLM_MODEL_{normalized}"
    cfg = MODEL_PROVIDERS.get(provider)
    if cfg is None:
        raise GenerationServiceError("Invalid provider.", status_code=400)
    return (
        os.getenv(env_key)
        or os.getenv(env_key_norm)
        or selected_model
        or cfg["graphModel"]
    )


def _raise_for_status(resp: httpx.Response) -> None:
    if resp.status_code >= 400:
        raise GenerationServiceError(message_for_status(resp.status_code), status_code=resp.status_code)


async def route_via_openai(model: str, messages: List[Dict[str, Any]], api_key: str, options: Optional[Dict[str, Any]] = None) -> str:
    base_url = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/")
    payload: Dict[str, Any] = {"model": model, "messages": messages, "response_format": {"type": "json_object"}}
    if options:
        payload.update(options)
    headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}
    async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as client:
        resp = await client.post(f"{base_url}/chat/completions", json=payload, headers=headers)
        _raise_for_status(resp)
        data = resp.json()
    content = data.get("choices", [{}])[0].get("message", {}).get("content", "")
    return content if isinstance(content, str) else str(content)


async def route_via_anthropic(model: str, messages: List[Dict[str, Any]], api_key: str, options: Optional[Dict[str, Any]] = None) -> str:
    base_url = os.getenv("ANTHROPIC_BASE_URL", "https://api.anthropic.com/v1").rstrip("/")
    system = "\n\n".join(str(m.get("content", "")) for m in messages if m.get("role") == "system")
    chat = [m for m in messages if m.get("role") != "system"]
    payload: Dict[str, Any] = {"model": model, "messages": chat, "max_tokens": 4096}
    if system:
        payload["system"] = system
    if options:
        payload.update(options)
    headers = {
        "x-api-key": api_key,
        "anthropic-version": "2023-06-01",
        "Content-Type": "application/json",
    }
    async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as client:
        resp = await client.post(f"{base_url}/messages", json=payload, headers=headers)
        _raise_for_status(resp)
        data = resp.json()
    parts = [blk.get("text", "") for blk in data.get("content", []) if blk.get("type") == "text"]
    return "".join(parts)


async def route_llm_call(
    task_name: str,
    messages: List[Dict[str, Any]],
    provider: str,
    api_key: Optional[str],
    selected_model: Optional[str] = None,
    options: Optional[Dict[str, Any]] = None,
) -> str:
    """Send a chat request to the selected provider and return the reply text."""
    if not api_key:
        raise GenerationServiceError("API key is missing.", status_code=400)
    model = get_model_for_task(task_name, provider, selected_model)
    start = time.perf_counter()
    try:
        if provider == "anthropic":
            text = await route_via_anthropic(model, messages, api_key, options)
        else:
            text = await route_via_openai(model, messages, api_key, options)
    except httpx.HTTPError as e:
        logger.error("LLM call %s via %s failed: %s", task_name, provider, e)
        raise GenerationServiceError("Server error.", status_code=502) from e
    logger.info("LLM call %s via %s/%s took %.2fs", task_name, provider, model, time.perf_counter() - start)
    return text


def parse_json_reply(text: str, task_name: str) -> Any:
    """Parse a JSON reply, tolerating markdown code fences."""
    stripped = text.strip()
    fenced = re.match(r"^```(?:json)?\s*(.*?)\s*```$", stripped, flags=re.DOTALL)
    for candidate in (stripped, fenced.group(1) if fenced else None, stripped.strip("`")):
        if not candidate:
            continue
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    raise ValueError(f"LLM did not return valid JSON for task {task_name}.")


async def llm_json(
    task_name: str,
    prompt: str,
    provider: str,
    api_key: Optional[str],
    selected_model: Optional[str] = None,
    temperature: float | None = None,
) -> Any:
    sys = {
        "role": "system",
        "content": "Return ONLY valid JSON. No commentary, no code fences.",
    }
    msgs = [sys, {"role": "user", "content": prompt}]
    opts = {"temperature": temperature} if temperature is not None else {}
    text = await route_llm_call(task_name, msgs, provider, api_key, selected_model, opts)
    return parse_json_reply(text, task_name)
