"""Metadata extractor: one LLM call per document (non-fatal).

The model is asked for a JSON object restricted to CONTENT_FIELDS. Provenance
fields are added by the extractor and always win on key collisions. When the
call or the parse fails, the document still gets its provenance fields plus
an ``extraction_error`` marker.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from researchai.errors import ExtractionError, GenerationError
from researchai.events import EventLog, get_event_log
from researchai.rag import llm_client

CONTENT_FIELDS: tuple[str, ...] = (
    "name",
    "full_name",
    "aliases",
    "location",
    "email",
    "role",
    "profession",
    "skills",
    "technologies",
    "organizations",
    "websites",
    "social_profiles",
    "topics",
    "specializations",
    "achievements",
    "projects",
    "summary",
)

PROVENANCE_FIELDS: tuple[str, ...] = (
    "source_filename",
    "file_type",
    "extracted_at",
    "extraction_model",
)

_SYSTEM_PROMPT = """\
You are a metadata extraction assistant. Analyze the provided text and extract \
structured metadata.

Return a JSON object with the following fields (only include fields where you \
find clear information):

- name: Primary name or username mentioned
- full_name: Full legal name if different from name
- aliases: Array of other names, handles, or usernames
- location: Geographic location (state, city, country)
- email: Email address(es)
- role: Job title or professional role
- profession: Broader profession category
- skills: Array of technical skills, programming languages, frameworks
- technologies: Array of technologies, tools, platforms used
- organizations: Array of companies or organizations
- websites: Array of personal or professional websites
- social_profiles: Object with social media profiles (github, linkedin, twitter, etc.)
- topics: Array of main topics or areas of interest
- specializations: Array of areas of expertise or specialization
- achievements: Notable accomplishments or certifications
- projects: Array of notable project names
- summary: Brief 1-2 sentence summary of the person/content

Be accurate and only extract information that is explicitly stated in the text. \
If nothing can be extracted, return {}."""

_USER_PROMPT = "Extract metadata from this content:\n\n{content}"

_DEFAULT_MODEL = "openai/gpt-4o-mini"


def file_type_of(filename: str) -> str:
    suffix = Path(filename).suffix
    return suffix[1:] if suffix else "txt"


class MetadataExtractor:
    """Extract structured metadata for a document.

    Args:
        model:       LiteLLM model string for extraction.
        temperature: Sampling temperature (kept low for consistent output).
        max_tokens:  Maximum tokens in the JSON response.
        max_chars:   Document text beyond this many characters is not sent.
        timeout:     Per-request timeout in seconds.
        num_retries: Retries on transient errors.
        events:      Event log; defaults to the process-wide instance.
    """

    def __init__(
        self,
        model: str = _DEFAULT_MODEL,
        temperature: float = 0.1,
        max_tokens: int = 1_000,
        max_chars: int = 24_000,
        timeout: float = 60.0,
        num_retries: int = 3,
        events: EventLog | None = None,
    ) -> None:
        self.model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._max_chars = max_chars
        self._timeout = timeout
        self._num_retries = num_retries
        self._events = events or get_event_log()

    def extract(self, content: str, filename: str) -> dict[str, Any]:
        """Return metadata for *content*. Never raises."""
        self._events.process("METADATA", f"Extracting metadata for {filename}")
        provenance = self._provenance(filename)

        try:
            extracted = self._call_model(content)
        except ExtractionError as exc:
            self._events.error(
                "METADATA",
                f"Error extracting metadata from {filename}: {exc}",
                {"filename": filename},
            )
            return {**provenance, "extraction_error": str(exc)}

        metadata = {**extracted, **provenance}
        self._events.success(
            "METADATA",
            f"Metadata extracted for {filename}",
            _key_fields(metadata),
        )
        return metadata

    def _call_model(self, content: str) -> dict[str, Any]:
        try:
            completion = llm_client.chat(
                self.model,
                _SYSTEM_PROMPT,
                _USER_PROMPT.format(content=content[: self._max_chars]),
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                json_output=True,
                timeout=self._timeout,
                num_retries=self._num_retries,
            )
        except GenerationError as exc:
            raise ExtractionError(str(exc)) from exc

        try:
            parsed = json.loads(completion.text)
        except json.JSONDecodeError as exc:
            raise ExtractionError(f"model returned invalid JSON: {exc}") from exc
        if not isinstance(parsed, dict):
            raise ExtractionError(
                f"model returned {type(parsed).__name__}, expected a JSON object"
            )
        return parsed

    def _provenance(self, filename: str) -> dict[str, Any]:
        return {
            "source_filename": filename,
            "file_type": file_type_of(filename),
            "extracted_at": datetime.now(timezone.utc).isoformat(),
            "extraction_model": self.model,
        }


def _key_fields(metadata: dict[str, Any]) -> dict[str, Any]:
    found: dict[str, Any] = {}
    for key in ("name", "location", "role"):
        if metadata.get(key):
            found[key] = metadata[key]
    skills = metadata.get("skills")
    if isinstance(skills, list) and skills:
        found["skills"] = skills[:5]
    return found
