"""ResearchAI vector store layer."""

from researchai.db.connection import Database
from researchai.db.migrations import MIGRATIONS, run_migrations
from researchai.db.models import EmbeddedRecord, SearchResult
from researchai.db.repository import Repository
from researchai.db.schema import initialize
from researchai.db.vectors import ensure_vec_table, model_to_slug, vec_table_name, vec_table_width

__all__ = [
    "Database",
    "EmbeddedRecord",
    "MIGRATIONS",
    "Repository",
    "SearchResult",
    "ensure_vec_table",
    "initialize",
    "model_to_slug",
    "run_migrations",
    "vec_table_name",
    "vec_table_width",
]
