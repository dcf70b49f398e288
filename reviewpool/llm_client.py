"""
LLM Client — interface for talking to the configured AI provider.

Every supported provider (OpenAI, Google Gemini, Anthropic Claude) serves an
OpenAI-compatible chat completions endpoint, so one client library covers all
three; only the base URL, key and model name change.

Key concepts:
    - System prompt: Sets the model's role and behavior (constant per task).
    - User prompt: The actual question or data (changes per call).
    - Temperature: 0 = deterministic, 1 = creative. Low for analysis.
    - Structured output: JSON format for machine-readable responses.
"""

import json
from typing import Optional
from openai import OpenAI
from reviewpool.config import AI_PROVIDER, AI_API_KEY, AI_BASE_URLS, AI_MODELS


def get_client(provider: Optional[str] = None, api_key: Optional[str] = None) -> OpenAI:
    """Create an OpenAI client pointed at the chosen provider's server."""
    provider = provider or AI_PROVIDER
    if provider not in AI_BASE_URLS:
        raise ValueError(f"Unsupported AI provider: {provider}")
    return OpenAI(api_key=api_key or AI_API_KEY, base_url=AI_BASE_URLS[provider])


def call_llm(
    system_prompt: str,
    user_prompt: str,
    temperature: float = 0.1,
    provider: Optional[str] = None,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    expect_json: bool = True,
) -> dict | str:
    """
    Send a prompt to the LLM and get a response.

    Returns:
        Parsed JSON dict if expect_json=True, raw string otherwise.
    """
    provider = provider or AI_PROVIDER
    client = get_client(provider, api_key)

    extra = {"response_format": {"type": "json_object"}} if expect_json else {}
    response = client.chat.completions.create(
        model=model or AI_MODELS[provider],
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        temperature=temperature,
        **extra,
    )

    raw_text = response.choices[0].message.content

    if expect_json:
        try:
            return json.loads(raw_text)
        except json.JSONDecodeError:
            print(f"Warning: LLM did not return valid JSON. Raw response:\n{raw_text[:500]}")
            return {"error": "Invalid JSON response", "raw": raw_text}

    return raw_text
