"""Document loading from the info directory."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Document:
    filename: str
    content: str


@dataclass(frozen=True)
class DocumentInfo:
    filename: str
    character_count: int
    word_count: int


def list_documents(directory: Path) -> list[Document]:
    """Read every regular file in *directory* (non-recursive), sorted by name.

    Subdirectories and other non-file entries are skipped. Files are decoded
    as UTF-8 with undecodable bytes replaced.

    Raises:
        OSError: If *directory* is missing or cannot be listed.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Info directory not found: {directory}")

    documents: list[Document] = []
    for entry in sorted(directory.iterdir()):
        if not entry.is_file():
            continue
        content = entry.read_text(encoding="utf-8", errors="replace")
        documents.append(Document(filename=entry.name, content=content))
    return documents


def describe_documents(directory: Path) -> list[DocumentInfo]:
    return [
        DocumentInfo(
            filename=doc.filename,
            character_count=len(doc.content),
            word_count=len(doc.content.split()),
        )
        for doc in list_documents(directory)
    ]
