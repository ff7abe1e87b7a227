"""
Developer inspection endpoints.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ...batch.log_recorder import BatchLogRecorder
from ...database.connection import DatabaseConnection
from ...database.models import utc_now
from ...storage.bookmark_repository import BookmarkRepository
from ...storage.feed_repository import FeedRepository
from ...utils.exceptions import YomimonoError
from ...utils.logging import get_logger_for_component
from ..dependencies import get_db

router = APIRouter()
logger = get_logger_for_component("api")


@router.get("/test")
async def dev_test():
    """Liveness check."""
    return {"message": "Dev endpoint is working", "timestamp": utc_now().isoformat()}


@router.get("/db-test")
async def db_test(db: DatabaseConnection = Depends(get_db)):
    """Check database access by counting active feeds."""
    try:
        count = FeedRepository(db).count_active_feeds()
        return {"message": "Database connection OK", "activeFeeds": count}
    except YomimonoError as e:
        logger.error(f"Database test failed: {e}")
        return JSONResponse(status_code=500, content={"error": "Database test failed", "details": e.message})


@router.get("/batch-logs")
async def recent_batch_logs(db: DatabaseConnection = Depends(get_db)):
    """Last 10 batch log rows, newest first."""
    try:
        entries = BatchLogRecorder(db).list_recent(limit=10)
        return {"logs": [entry.to_api_dict() for entry in entries]}
    except YomimonoError as e:
        logger.error(f"Failed to fetch batch logs: {e}")
        return JSONResponse(status_code=500, content={"error": "Failed to fetch batch logs", "details": e.message})


@router.get("/recent-bookmarks")
async def recent_bookmarks(db: DatabaseConnection = Depends(get_db)):
    """Last 10 bookmarks, newest first."""
    try:
        bookmarks = BookmarkRepository(db).get_recent(limit=10)
        return {
            "bookmarks": [
                {
                    "id": b.id,
                    "url": b.url,
                    "title": b.title,
                    "isRead": b.is_read,
                    "createdAt": b.created_at.isoformat() if b.created_at else None,
                }
                for b in bookmarks
            ]
        }
    except YomimonoError as e:
        logger.error(f"Failed to fetch bookmarks: {e}")
        return JSONResponse(status_code=500, content={"error": "Failed to fetch bookmarks", "details": e.message})
