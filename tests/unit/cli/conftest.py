"""CLI fixtures: an isolated project directory and a fake LiteLLM backend."""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import pytest

ADA_VECTOR = [1.0, 0.0, 0.0, 0.0]
OTHER_VECTOR = [0.0, 1.0, 0.0, 0.0]


@pytest.fixture
def project(tmp_path, monkeypatch):
    """Project dir with researchai.yaml (4-dim embeddings) and an empty info/."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("researchai.config._GLOBAL_CONFIG_PATH", tmp_path / "no-global.yaml")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    for var in (
        "RESEARCHAI_EMBEDDING_MODEL",
        "RESEARCHAI_ANSWER_MODEL",
        "RESEARCHAI_EXTRACTION_MODEL",
        "RESEARCHAI_INFO_DIR",
        "RESEARCHAI_DB_PATH",
    ):
        monkeypatch.delenv(var, raising=False)
    (tmp_path / "researchai.yaml").write_text("embedding:\n  dimensions: 4\n", encoding="utf-8")
    (tmp_path / "info").mkdir()
    return tmp_path


@pytest.fixture
def documents(project):
    info = project / "info"
    (info / "ada.txt").write_text("Ada Lovelace wrote notes on the engine.", encoding="utf-8")
    (info / "grace.txt").write_text("Grace Hopper built compilers.", encoding="utf-8")
    return info


def _fake_embedding(model, input, **kwargs):
    response = MagicMock()
    response.data = [
        {"embedding": ADA_VECTOR if "ada" in text.lower() else OTHER_VECTOR, "index": i}
        for i, text in enumerate(input)
    ]
    return response


def _fake_completion(model, messages, **kwargs):
    response = MagicMock()
    response.model = model
    response.usage.total_tokens = 99
    user = messages[1]["content"]
    if "response_format" in kwargs:
        if "Ada" in user:
            payload = {"name": "Ada Lovelace", "location": "London"}
        else:
            payload = {"name": "Grace Hopper", "location": "New York"}
        response.choices[0].message.content = json.dumps(payload)
    else:
        response.choices[0].message.content = "Ada wrote the notes [Source 1]."
    return response


@pytest.fixture
def fake_llm():
    with (
        patch("researchai.rag.llm_client.litellm.embedding", side_effect=_fake_embedding) as emb,
        patch("researchai.rag.llm_client.litellm.completion", side_effect=_fake_completion) as comp,
        patch("researchai.rag.llm_client.litellm.token_counter", return_value=10),
    ):
        yield emb, comp
