"""LiteLLM embedding client with retry and API key validation.

Every embedding call in the pipeline routes through ``EmbeddingClient.embed``.
One call embeds a whole batch of texts; LiteLLM's built-in retry handles
transient errors (``num_retries``).
"""

from __future__ import annotations

import logging
import os
from typing import Any

import litellm

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Provider → env var mapping for API key validation
# ------------------------------------------------------------------

_PROVIDER_ENV: dict[str, str | None] = {
    "openai": "OPENAI_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "voyage": "VOYAGE_API_KEY",
    "together_ai": "TOGETHERAI_API_KEY",
    "ollama": None,  # Local, no key required
}


class EmbeddingError(RuntimeError):
    """The embedding model returned a response that can't be paired with its inputs."""


def provider_of(model: str) -> str:
    """Return the provider prefix of a 'provider/model' string ('openai' if absent)."""
    return model.split("/")[0].lower() if "/" in model else "openai"


def validate_api_key(model: str) -> None:
    """Check that the required API key env var is set for *model*.

    Args:
        model: LiteLLM model string in 'provider/model' format.

    Raises:
        EnvironmentError: If the required key is missing from environment.
    """
    provider = provider_of(model)
    env_var = _PROVIDER_ENV.get(provider)

    if env_var is None:
        return

    if not os.getenv(env_var):
        raise EnvironmentError(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable."
        )


class EmbeddingClient:
    """Embed batches of texts with a LiteLLM embedding model.

    Args:
        model: LiteLLM embedding model string (provider/model format).
        num_retries: Retries on transient errors (exponential backoff).
    """

    def __init__(self, model: str = "openai/text-embedding-3-small", num_retries: int = 3) -> None:
        self.model = model
        self.num_retries = num_retries
        self._key_checked = False

    def embed(self, texts: list[str]) -> list[list[float]]:
        """Return one vector per text, in input order.

        Raises:
            EnvironmentError: If the provider API key is missing.
            EmbeddingError: If the response doesn't hold one vector per input.
        """
        if not texts:
            return []
        if not self._key_checked:
            validate_api_key(self.model)
            self._key_checked = True

        response = litellm.embedding(
            model=self.model,
            input=texts,
            num_retries=self.num_retries,
        )
        vectors = _ordered_vectors(response.data)
        if len(vectors) != len(texts):
            raise EmbeddingError(
                f"Embedding model '{self.model}' returned {len(vectors)} vectors "
                f"for {len(texts)} inputs"
            )
        logger.debug("Embedded %d texts with %s", len(texts), self.model)
        return vectors


def _ordered_vectors(data: list[Any]) -> list[list[float]]:
    """Sort response items by their ``index`` field (position when absent)."""
    indexed = []
    for position, item in enumerate(data):
        index = item.get("index", position) if hasattr(item, "get") else position
        indexed.append((index, item["embedding"]))
    indexed.sort(key=lambda pair: pair[0])
    return [[float(v) for v in vector] for _, vector in indexed]
