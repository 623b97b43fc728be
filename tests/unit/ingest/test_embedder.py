"""Tests for the Embedder."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from researchai.errors import EmbeddingError
from researchai.ingest.embedder import Embedder


def _embedding_response(*vectors):
    mock = MagicMock()
    mock.data = [{"embedding": v, "index": i, "object": "embedding"} for i, v in enumerate(vectors)]
    return mock


@pytest.fixture
def short_tokens():
    with patch("researchai.rag.llm_client.litellm.token_counter", return_value=5) as m:
        yield m


def test_embed_returns_vector(short_tokens):
    with patch(
        "researchai.rag.llm_client.litellm.embedding",
        return_value=_embedding_response([0.1, 0.2, 0.3]),
    ) as mock_call:
        vector = Embedder(dimensions=3).embed("hello")
    assert vector == [0.1, 0.2, 0.3]
    kwargs = mock_call.call_args.kwargs
    assert kwargs["model"] == "openai/text-embedding-3-small"
    assert kwargs["input"] == ["hello"]
    assert kwargs["num_retries"] == 3


def test_embed_rejects_wrong_width(short_tokens):
    with patch(
        "researchai.rag.llm_client.litellm.embedding",
        return_value=_embedding_response([0.1, 0.2]),
    ):
        with pytest.raises(EmbeddingError, match="expected 3"):
            Embedder(dimensions=3).embed("hello")


def test_embed_rejects_empty_text_without_calling(short_tokens):
    with patch("researchai.rag.llm_client.litellm.embedding") as mock_call:
        with pytest.raises(EmbeddingError, match="empty"):
            Embedder(dimensions=3).embed("   ")
    mock_call.assert_not_called()


def test_embed_rejects_over_budget_without_calling():
    with (
        patch("researchai.rag.llm_client.litellm.token_counter", return_value=9000),
        patch("researchai.rag.llm_client.litellm.embedding") as mock_call,
    ):
        with pytest.raises(EmbeddingError, match="8191"):
            Embedder(dimensions=3).embed("long text")
    mock_call.assert_not_called()


def test_embed_wraps_client_failure(short_tokens):
    with patch(
        "researchai.rag.llm_client.litellm.embedding", side_effect=Exception("timeout")
    ):
        with pytest.raises(EmbeddingError, match="timeout"):
            Embedder(dimensions=3).embed("hello")


def test_embed_batch_preserves_order(short_tokens):
    response = MagicMock()
    response.data = [
        {"embedding": [0.0, 1.0], "index": 1},
        {"embedding": [1.0, 0.0], "index": 0},
    ]
    with patch("researchai.rag.llm_client.litellm.embedding", return_value=response):
        vectors = Embedder(dimensions=2).embed_batch(["first", "second"])
    assert vectors == [[1.0, 0.0], [0.0, 1.0]]


def test_embed_batch_empty_makes_no_call(short_tokens):
    with patch("researchai.rag.llm_client.litellm.embedding") as mock_call:
        assert Embedder(dimensions=2).embed_batch([]) == []
    mock_call.assert_not_called()


def test_embed_batch_rejects_any_empty_text(short_tokens):
    with patch("researchai.rag.llm_client.litellm.embedding") as mock_call:
        with pytest.raises(EmbeddingError):
            Embedder(dimensions=2).embed_batch(["ok", ""])
    mock_call.assert_not_called()


def test_dimensions_must_be_positive():
    with pytest.raises(ValueError):
        Embedder(dimensions=0)
