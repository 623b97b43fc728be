"""Answer synthesizer: retrieved chunks → grounded, cited answer.

Two modes:
  - basic:    best match returned verbatim, no model call
  - enhanced: top matches assembled into a numbered context block and
              sent to the answer model, which must cite [Source N]
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from researchai.db.models import SearchResult
from researchai.errors import GenerationError, ValidationError
from researchai.events import EventLog, get_event_log
from researchai.rag import llm_client
from researchai.rag.retriever import DEFAULT_MATCH_COUNT, DEFAULT_MATCH_THRESHOLD, Retriever

BASIC_MATCH_COUNT = 3
BASIC_MATCH_THRESHOLD = 0.1
PREVIEW_CHARS = 200

NO_CONTEXT_ANSWER = (
    "I couldn't find any relevant information in the knowledge base to answer your "
    "question. Please try rephrasing your question or ensure the relevant data has "
    "been ingested."
)

_SYSTEM_PROMPT = """\
You are a knowledgeable research assistant with access to a specialized knowledge base.
Your role is to provide comprehensive, accurate answers based only on the retrieved information.

Guidelines:
- Synthesize information from multiple sources when available
- Always cite your sources using the format [Source X]
- If information is incomplete or unclear, acknowledge the limitations
- Provide clear, well-structured responses
- Use bullet points or numbered lists for complex information
- If the retrieved information doesn't fully answer the question, say so
- Be concise but thorough"""

_USER_PROMPT = """\
Based on the following retrieved information from the knowledge base, please answer the user's question.

## Retrieved Context:
{context}

## User's Question:
{question}

## Instructions:
1. Analyze all retrieved information carefully
2. Synthesize a comprehensive answer
3. Cite sources using [Source X] format
4. Acknowledge if information is incomplete
5. Be accurate and helpful"""

_DEFAULT_MODEL = "openai/gpt-4o"


@dataclass
class BasicAnswer:
    answer: str | None
    context: dict[str, Any] | None = None
    error: str | None = None


@dataclass(frozen=True)
class Source:
    source_number: int
    filename: str
    similarity: float
    similarity_percent: str
    content_preview: str
    metadata: dict[str, Any]


@dataclass
class AnswerContext:
    retrieved_count: int
    model: str | None = None
    tokens_used: int | None = None


@dataclass
class EnhancedAnswer:
    answer: str | None
    sources: list[Source] = field(default_factory=list)
    context: AnswerContext | None = None
    error: str | None = None


def build_context_block(results: list[SearchResult]) -> str:
    """Render *results* in rank order as the numbered context block."""
    parts: list[str] = []
    for number, hit in enumerate(results, start=1):
        meta = hit.metadata or {}
        source = meta.get("source_filename") or "Unknown source"
        block = f"\n[Source {number}: {source} ({hit.similarity * 100:.1f}% relevance)]\n"
        block += f"Content: {hit.content}\n"

        meta_parts: list[str] = []
        if meta.get("name"):
            meta_parts.append(f"Name: {meta['name']}")
        if meta.get("location"):
            meta_parts.append(f"Location: {meta['location']}")
        if meta.get("role"):
            meta_parts.append(f"Role: {meta['role']}")
        if isinstance(meta.get("skills"), list):
            meta_parts.append(f"Skills: {', '.join(str(s) for s in meta['skills'])}")
        if meta.get("chunk_number") and meta.get("total_chunks"):
            meta_parts.append(f"Chunk: {meta['chunk_number']}/{meta['total_chunks']}")
        if meta_parts:
            block += f"Metadata: {' | '.join(meta_parts)}\n"

        block += "---\n"
        parts.append(block)
    return "".join(parts)


def _preview(content: str) -> str:
    if len(content) > PREVIEW_CHARS:
        return content[:PREVIEW_CHARS] + "..."
    return content


def _to_source(number: int, hit: SearchResult) -> Source:
    return Source(
        source_number=number,
        filename=hit.filename,
        similarity=hit.similarity,
        similarity_percent=hit.similarity_percent,
        content_preview=_preview(hit.content),
        metadata=hit.metadata or {},
    )


class AnswerSynthesizer:
    """Answer questions from the knowledge base.

    Args:
        retriever:   Retriever bound to the vector store.
        model:       LiteLLM model string for answer generation.
        temperature: Sampling temperature.
        max_tokens:  Maximum tokens in the generated answer.
        timeout:     Per-request timeout in seconds.
        num_retries: Retries on transient errors.
        events:      Event log; defaults to the process-wide instance.
    """

    def __init__(
        self,
        retriever: Retriever,
        model: str = _DEFAULT_MODEL,
        temperature: float = 0.3,
        max_tokens: int = 1_500,
        timeout: float = 60.0,
        num_retries: int = 3,
        events: EventLog | None = None,
    ) -> None:
        self._retriever = retriever
        self.model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = timeout
        self._num_retries = num_retries
        self._events = events or get_event_log()

    def get_answer(self, question: str) -> BasicAnswer:
        """Return the best-matching chunk verbatim as the answer."""
        _check_question(question)
        result = self._retriever.retrieve(question, BASIC_MATCH_COUNT, BASIC_MATCH_THRESHOLD)
        if result.error or not result.results:
            return BasicAnswer(
                answer=None, error=result.error or "No relevant information found"
            )

        best = result.results[0]
        self._events.success(
            "ANSWER", f"Found answer with {best.similarity_percent} similarity"
        )
        return BasicAnswer(
            answer=best.content,
            context={
                "similarity": best.similarity,
                "source": best.metadata.get("source_filename") or "unknown",
                "metadata": best.metadata,
            },
        )

    def get_enhanced_answer(
        self,
        question: str,
        match_count: int = DEFAULT_MATCH_COUNT,
        match_threshold: float = DEFAULT_MATCH_THRESHOLD,
    ) -> EnhancedAnswer:
        """Synthesize a cited answer from up to *match_count* retrieved chunks.

        No matching context is not an error: the canned NO_CONTEXT_ANSWER is
        returned with no sources. Model failures return ``answer=None`` with
        ``error`` set.

        Raises:
            ValidationError: Empty question or match_count < 1.
        """
        _check_question(question)
        self._events.header("ENHANCED ANSWER")
        self._events.data("ENHANCED", f'Question: "{question}"')
        self._events.process("ENHANCED", "Retrieving relevant information")

        result = self._retriever.retrieve(question, match_count, match_threshold)
        if result.error or not result.results:
            self._events.warning("ENHANCED", "No relevant information found in knowledge base")
            return EnhancedAnswer(
                answer=NO_CONTEXT_ANSWER,
                sources=[],
                context=AnswerContext(retrieved_count=0),
            )

        hits = result.results
        self._events.success("ENHANCED", f"Retrieved {len(hits)} relevant chunk(s)")
        user_prompt = _USER_PROMPT.format(context=build_context_block(hits), question=question)

        self._events.process("ENHANCED", f"Generating answer with {self.model}")
        try:
            completion = llm_client.chat(
                self.model,
                _SYSTEM_PROMPT,
                user_prompt,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                timeout=self._timeout,
                num_retries=self._num_retries,
            )
        except GenerationError as exc:
            self._events.error("ENHANCED", f"Error generating enhanced answer: {exc}")
            return EnhancedAnswer(answer=None, error=str(exc))

        if not completion.text.strip():
            self._events.error("ENHANCED", f"No response generated from {self.model}")
            return EnhancedAnswer(
                answer=None, error=f"Failed to generate answer from {self.model}"
            )

        sources = [_to_source(n, hit) for n, hit in enumerate(hits, start=1)]
        self._events.success("ENHANCED", "Enhanced answer generated successfully")
        self._events.data("ENHANCED", f"Sources used: {len(sources)}")
        self._events.data("ENHANCED", f"Answer length: {len(completion.text)} characters")

        return EnhancedAnswer(
            answer=completion.text,
            sources=sources,
            context=AnswerContext(
                retrieved_count=len(hits),
                model=self.model,
                tokens_used=completion.total_tokens,
            ),
        )


def _check_question(question: str) -> None:
    if not question or not question.strip():
        raise ValidationError("Question is required and must be a non-empty string")
