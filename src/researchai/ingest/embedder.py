"""Embedder: text → fixed-width vector via LiteLLM.

The width D is fixed at construction and must match the vec table. Inputs are
checked against the model's token budget before any request is made.
"""

from __future__ import annotations

from researchai.errors import EmbeddingError
from researchai.rag import llm_client

_DEFAULT_MODEL = "openai/text-embedding-3-small"


class Embedder:
    """Produce embeddings of a fixed dimension.

    Args:
        model:            LiteLLM embedding model string.
        dimensions:       Expected vector width D.
        max_input_tokens: Texts above this budget are rejected up front.
        timeout:          Per-request timeout in seconds.
        num_retries:      Retries on transient errors (exponential backoff).
    """

    def __init__(
        self,
        model: str = _DEFAULT_MODEL,
        dimensions: int = 1536,
        max_input_tokens: int = 8_191,
        timeout: float = 60.0,
        num_retries: int = 3,
    ) -> None:
        if dimensions < 1:
            raise ValueError("dimensions must be >= 1")
        self.model = model
        self.dimensions = dimensions
        self._max_input_tokens = max_input_tokens
        self._timeout = timeout
        self._num_retries = num_retries

    def embed(self, text: str) -> list[float]:
        """Embed a single *text*.

        Raises:
            EmbeddingError: Empty or over-budget input, client failure,
                or a vector whose width is not ``dimensions``.
        """
        self._check_input(text)
        vector = llm_client.embed(
            self.model, text, timeout=self._timeout, num_retries=self._num_retries
        )
        self._check_width(vector)
        return vector

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed *texts* in one request. Output order matches input order."""
        if not texts:
            return []
        for text in texts:
            self._check_input(text)
        vectors = llm_client.embed_batch(
            self.model, texts, timeout=self._timeout, num_retries=self._num_retries
        )
        for vector in vectors:
            self._check_width(vector)
        return vectors

    def _check_input(self, text: str) -> None:
        if not text or not text.strip():
            raise EmbeddingError("cannot embed empty text")
        tokens = llm_client.count_tokens(self.model, text)
        if tokens > self._max_input_tokens:
            raise EmbeddingError(
                f"text has {tokens} tokens, over the {self._max_input_tokens}-token "
                f"limit of {self.model}"
            )

    def _check_width(self, vector: list[float]) -> None:
        if len(vector) != self.dimensions:
            raise EmbeddingError(
                f"{self.model} returned a {len(vector)}-dim vector, expected {self.dimensions}"
            )
