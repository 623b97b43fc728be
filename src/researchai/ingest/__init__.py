"""ResearchAI ingestion pipeline."""

from researchai.ingest.chunker import Chunk, WordChunker, chunk_text
from researchai.ingest.embedder import Embedder
from researchai.ingest.loader import Document, DocumentInfo, describe_documents, list_documents
from researchai.ingest.metadata import CONTENT_FIELDS, MetadataExtractor
from researchai.ingest.pipeline import FailedDocument, IngestionPipeline, IngestionReport

__all__ = [
    "CONTENT_FIELDS",
    "Chunk",
    "Document",
    "DocumentInfo",
    "Embedder",
    "FailedDocument",
    "IngestionPipeline",
    "IngestionReport",
    "MetadataExtractor",
    "WordChunker",
    "chunk_text",
    "describe_documents",
    "list_documents",
]
