"""Ingestion orchestrator: read → extract → chunk → embed → persist.

Per-document work (one extraction call, one embedding batch) runs in a
bounded thread pool. All SQLite access stays on the calling thread: records
are buffered in a per-run accumulator and inserted once every document has
been processed.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from researchai.db.models import EmbeddedRecord
from researchai.db.repository import Repository
from researchai.errors import PersistenceError, ResearchAIError, ValidationError
from researchai.events import EventLog, get_event_log
from researchai.ingest.chunker import WordChunker
from researchai.ingest.embedder import Embedder
from researchai.ingest.loader import Document, DocumentInfo, describe_documents, list_documents
from researchai.ingest.metadata import MetadataExtractor

# One ingestion run per process.
_RUN_LOCK = threading.Lock()


@dataclass
class FailedDocument:
    filename: str
    error: str


@dataclass
class IngestionReport:
    success: bool
    files_processed: int = 0
    chunks_created: int = 0
    records_inserted: int = 0
    insert_failures: int = 0
    failed_documents: list[FailedDocument] = field(default_factory=list)
    duration_seconds: float = 0.0
    message: str = ""
    error: str | None = None


class IngestionPipeline:
    """Build the vector store from every file in *info_dir*.

    Args:
        repo:        Repository bound to the vector store.
        info_dir:    Directory holding the documents to ingest.
        extractor:   Per-document metadata extractor.
        embedder:    Chunk embedder.
        chunker:     Word-window chunker.
        concurrency: Maximum documents processed at once (1 = sequential).
        events:      Event log; defaults to the process-wide instance.
    """

    def __init__(
        self,
        repo: Repository,
        info_dir: Path,
        extractor: MetadataExtractor,
        embedder: Embedder,
        chunker: WordChunker | None = None,
        concurrency: int = 1,
        events: EventLog | None = None,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self._repo = repo
        self._info_dir = Path(info_dir)
        self._extractor = extractor
        self._embedder = embedder
        self._chunker = chunker or WordChunker()
        self._concurrency = concurrency
        self._events = events or get_event_log()

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def run(self, clear_first: bool = True) -> IngestionReport:
        """Run the full pipeline. Never raises; failures are in the report."""
        if not _RUN_LOCK.acquire(blocking=False):
            self._events.warning("PIPELINE", "Ingestion already in progress")
            return IngestionReport(
                success=False,
                message="Ingestion failed",
                error="ingestion already in progress",
            )
        try:
            return self._run(clear_first)
        finally:
            _RUN_LOCK.release()

    def clear(self) -> tuple[bool, str | None]:
        """Delete every stored record. Returns (success, error)."""
        self._events.info("DATABASE", "Clearing existing records")
        try:
            deleted = self._repo.delete_all()
        except PersistenceError as exc:
            self._events.error("DATABASE", f"Error clearing database: {exc}")
            return False, str(exc)
        self._events.success("DATABASE", f"Database cleared ({deleted} records removed)")
        return True, None

    def list_files(self) -> list[DocumentInfo]:
        """Describe the files that a run would ingest.

        Raises:
            OSError: If the info directory cannot be read.
        """
        return describe_documents(self._info_dir)

    # ------------------------------------------------------------------
    # Pipeline stages
    # ------------------------------------------------------------------

    def _run(self, clear_first: bool) -> IngestionReport:
        started = time.monotonic()
        self._events.header("INGESTION PIPELINE")
        self._events.step(1, 5, "Clear existing data" if clear_first else "Keep existing data")
        self._events.step(2, 5, "Read files from info directory")
        self._events.step(3, 5, "Extract metadata")
        self._events.step(4, 5, "Chunk and embed")
        self._events.step(5, 5, "Insert into vector store")

        if clear_first:
            ok, error = self.clear()
            if not ok:
                return self._failed(error, started)

        try:
            documents = list_documents(self._info_dir)
        except OSError as exc:
            self._events.error("FILE", f"Error reading info directory: {exc}")
            return self._failed(str(exc), started)

        for doc in documents:
            self._events.info("FILE", f"Read file: {doc.filename} ({len(doc.content)} characters)")
        self._events.info("INGEST", f"Processing {len(documents)} file(s)")

        accumulator: list[EmbeddedRecord] = []
        failed: list[FailedDocument] = []

        with ThreadPoolExecutor(max_workers=self._concurrency) as pool:
            futures = {pool.submit(self._process_document, doc): doc for doc in documents}
            for future in as_completed(futures):
                doc = futures[future]
                try:
                    accumulator.extend(future.result())
                except ResearchAIError as exc:
                    self._events.error("FILE", f"Error processing {doc.filename}: {exc}")
                    failed.append(FailedDocument(filename=doc.filename, error=str(exc)))

        accumulator.sort(key=lambda r: (r.filename, r.metadata["chunk_index"]))
        failed.sort(key=lambda f: f.filename)
        self._events.success("INGEST", f"Total embedded chunks: {len(accumulator)}")

        inserted, insert_failures = self._persist(accumulator)

        files_processed = len({r.filename for r in accumulator})
        duration = time.monotonic() - started
        self._events.header("SUMMARY")
        self._events.data("SUMMARY", f"Files processed: {files_processed}")
        self._events.data("SUMMARY", f"Total chunks created: {len(accumulator)}")
        self._events.data("SUMMARY", f"Duration: {duration:.1f}s")
        self._events.success("PIPELINE", "Ingestion pipeline completed")

        return IngestionReport(
            success=True,
            files_processed=files_processed,
            chunks_created=len(accumulator),
            records_inserted=inserted,
            insert_failures=insert_failures,
            failed_documents=failed,
            duration_seconds=duration,
            message="Ingestion completed successfully",
        )

    def _process_document(self, doc: Document) -> list[EmbeddedRecord]:
        """Extract, chunk and embed one document. Runs in a worker thread."""
        self._events.header(f"Processing: {doc.filename}")
        doc_metadata = self._extractor.extract(doc.content, doc.filename)

        chunks = self._chunker.chunk(doc.content)
        if not chunks:
            raise ValidationError("no content")
        self._events.info("CHUNK", f"Split {doc.filename} into {len(chunks)} chunk(s)")

        self._events.process("EMBEDDING", f"Embedding {len(chunks)} chunk(s) of {doc.filename}")
        vectors = self._embedder.embed_batch([c.content for c in chunks])

        created_at = datetime.now(timezone.utc).isoformat()
        records = [
            EmbeddedRecord(
                filename=doc.filename,
                content=chunk.content,
                embedding=vector,
                metadata={
                    **doc_metadata,
                    "chunk_index": chunk.index,
                    "chunk_number": chunk.number,
                    "total_chunks": chunk.total_chunks,
                    "chunk_size_chars": len(chunk.content),
                    "chunk_size_words": chunk.word_count,
                },
                created_at=created_at,
            )
            for chunk, vector in zip(chunks, vectors)
        ]
        self._events.success("FILE", f"Completed: {doc.filename} → {len(records)} chunk(s)")
        return records

    def _persist(self, records: list[EmbeddedRecord]) -> tuple[int, int]:
        if not records:
            self._events.warning("DATABASE", "No embedded records to insert")
            return 0, 0

        self._events.info("DATABASE", f"Inserting {len(records)} record(s)")
        inserted = failures = 0
        for record in records:
            try:
                self._repo.insert_record(record)
            except PersistenceError as exc:
                failures += 1
                self._events.error("DATABASE", f"Error inserting {record.filename}: {exc}")
                continue
            inserted += 1
        self._events.success(
            "DATABASE", f"Insertion complete: {inserted} succeeded, {failures} failed"
        )
        return inserted, failures

    def _failed(self, error: str | None, started: float) -> IngestionReport:
        self._events.error("PIPELINE", f"Ingestion pipeline failed: {error}")
        return IngestionReport(
            success=False,
            duration_seconds=time.monotonic() - started,
            message="Ingestion failed",
            error=error,
        )
