"""
Yomimono - RSS Ingestion Service
================================

Batch ingestion of RSS 2.0 and Atom feeds into the reading list.

Main Components:
- Database: SQLite with connection pooling and schema management
- Configuration: environment variables with Pydantic validation
- Processing: feed fetching, parsing, deduplication and persistence
- Batch: chunked concurrent orchestration with run logging
- API: FastAPI manual trigger and inspection endpoints
"""

__version__ = "1.0.0"
__description__ = "RSS batch ingestion for the Yomimono reading list"

from .config.settings import get_settings
from .database.connection import get_db_manager
from .database.schema import DatabaseSchema
from .utils.logging import configure_application_logging, get_logger_for_component
from .utils.exceptions import YomimonoError

__all__ = [
    "get_settings",
    "get_db_manager",
    "DatabaseSchema",
    "configure_application_logging",
    "get_logger_for_component",
    "YomimonoError",
]
