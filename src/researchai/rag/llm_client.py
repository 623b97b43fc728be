"""LiteLLM client wrapper with retry, backoff, and API key validation.

Every chat and embedding call in the ingestion and answer pipelines routes
through this module. LiteLLM's built-in retry is used (``num_retries``,
exponential backoff). Failures surface as GenerationError / EmbeddingError.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

import litellm

from researchai.errors import EmbeddingError, GenerationError

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True
litellm.set_verbose = False  # type: ignore[assignment]


# ------------------------------------------------------------------
# Provider → env var mapping for API key validation
# ------------------------------------------------------------------

_PROVIDER_ENV: dict[str, str | None] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "groq": "GROQ_API_KEY",
    "together_ai": "TOGETHERAI_API_KEY",
    "ollama": None,  # Local, no key required
    "ollama_chat": None,
}


def validate_api_key(model: str) -> None:
    """Check that the required API key env var is set for *model*.

    Args:
        model: LiteLLM model string in 'provider/model' format.

    Raises:
        EnvironmentError: If the required key is missing from environment.
    """
    provider = model.split("/")[0].lower() if "/" in model else "openai"
    env_var = _PROVIDER_ENV.get(provider)

    if env_var is None:
        return

    if not os.getenv(env_var):
        raise EnvironmentError(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable."
        )


@dataclass(frozen=True)
class Completion:
    text: str
    model: str
    total_tokens: int | None = None


def chat(
    model: str,
    system_prompt: str,
    user_prompt: str,
    *,
    temperature: float = 0.0,
    max_tokens: int = 1024,
    json_output: bool = False,
    timeout: float = 60.0,
    num_retries: int = 3,
) -> Completion:
    """Call litellm.completion() with a system + user message pair.

    Args:
        model: LiteLLM model string (provider/model format).
        system_prompt: Instruction sent as the system message.
        user_prompt: Content sent as the user message.
        temperature: Sampling temperature.
        max_tokens: Maximum output tokens.
        json_output: Request a JSON object response (``response_format``).
        timeout: Per-request timeout in seconds.
        num_retries: Retries on transient errors (exponential backoff).

    Raises:
        GenerationError: On persistent API failure after retries, or a response
            without a message.
    """
    kwargs: dict = {
        "model": model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        "max_tokens": max_tokens,
        "temperature": temperature,
        "timeout": timeout,
        "num_retries": num_retries,
    }
    if json_output:
        kwargs["response_format"] = {"type": "json_object"}

    try:
        response = litellm.completion(**kwargs)
    except Exception as exc:
        raise GenerationError(f"{model}: {exc}") from exc

    try:
        text = response.choices[0].message.content or ""
    except (IndexError, AttributeError, TypeError) as exc:
        raise GenerationError(f"{model}: malformed response: {exc!r}") from exc
    usage = getattr(response, "usage", None)
    total_tokens = getattr(usage, "total_tokens", None) if usage is not None else None
    return Completion(
        text=text,
        model=getattr(response, "model", None) or model,
        total_tokens=total_tokens,
    )


def embed(model: str, text: str, *, timeout: float = 60.0, num_retries: int = 3) -> list[float]:
    """Call litellm.embedding() for a single text. Returns the vector.

    Raises:
        EmbeddingError: On persistent API failure after retries.
    """
    return embed_batch(model, [text], timeout=timeout, num_retries=num_retries)[0]


def embed_batch(
    model: str,
    texts: list[str],
    *,
    timeout: float = 60.0,
    num_retries: int = 3,
) -> list[list[float]]:
    """Embed *texts* in one request. Output order matches input order.

    Raises:
        EmbeddingError: On API failure, or a response of the wrong length or shape.
    """
    try:
        response = litellm.embedding(
            model=model,
            input=texts,
            timeout=timeout,
            num_retries=num_retries,
        )
    except Exception as exc:
        raise EmbeddingError(f"{model}: {exc}") from exc

    try:
        data = list(response.data)
        data.sort(key=lambda item: item.get("index", 0) if isinstance(item, dict) else 0)
        vectors = [list(item["embedding"]) for item in data]
    except (KeyError, TypeError, AttributeError) as exc:
        raise EmbeddingError(f"{model}: malformed response: {exc!r}") from exc
    if len(vectors) != len(texts):
        raise EmbeddingError(
            f"{model}: expected {len(texts)} embeddings, got {len(vectors)}"
        )
    return vectors


def count_tokens(model: str, text: str) -> int:
    """Count tokens in *text* for *model* using LiteLLM's provider-aware counter.

    Falls back to character-based approximation (4 chars ≈ 1 token) if the model
    is not supported by litellm.token_counter().
    """
    try:
        return litellm.token_counter(model=model, text=text)
    except Exception:
        return max(1, len(text) // 4)
