"""Exception hierarchy for the ResearchAI core.

Validation errors are raised before any collaborator is called. Embedding,
generation and persistence errors wrap the underlying client exception so
callers can handle one family per collaborator.
"""

from __future__ import annotations


class ResearchAIError(Exception):
    """Base class for every error raised by researchai."""


class ValidationError(ResearchAIError, ValueError):
    """Bad input (empty query/question, invalid chunk parameters)."""


class EmbeddingError(ResearchAIError):
    """The embedding model failed, timed out, or returned a malformed vector."""


class GenerationError(ResearchAIError):
    """The chat/completion model failed or returned nothing usable."""


class PersistenceError(ResearchAIError):
    """Insert, delete or search against the vector store failed."""


class ExtractionError(ResearchAIError):
    """Metadata extraction failed. Recovered locally by the extractor."""
