"""
RSS batch endpoints.

``POST /api/rss/batch/execute`` answers immediately with a job handle and
runs the batch as a background task. The outcome is only visible in the
batch log table.
"""

import json
import uuid
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from ...batch.orchestrator import BatchOrchestrator, describe_target
from ...config.settings import YomimonoSettings
from ...database.connection import DatabaseConnection
from ...database.models import utc_now
from ...utils.exceptions import ValidationError, plain_message
from ...utils.logging import get_batch_logger
from ..dependencies import get_app_settings, get_db

router = APIRouter()
logger = get_batch_logger()


class BatchExecuteRequest(BaseModel):
    """Optional body of the manual trigger."""

    feedIds: Optional[List[int]] = Field(default=None, description="Feeds to process; all active feeds when omitted")


def parse_batch_request(raw: bytes) -> BatchExecuteRequest:
    """Parse the trigger body; an empty body targets all feeds.

    Raises:
        ValidationError: If the body is not a JSON object or feedIds is not
            a list of integers
    """
    try:
        data = json.loads(raw) if raw.strip() else {}
    except json.JSONDecodeError as e:
        raise ValidationError(f"Request body is not valid JSON: {e.msg}", field_name="body") from e

    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object", field_name="body")

    try:
        return BatchExecuteRequest.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError("feedIds must be a list of integers", field_name="feedIds") from e


async def run_manual_batch(
    orchestrator: BatchOrchestrator, job_id: str, feed_ids: Optional[List[int]]
) -> None:
    logger.info(f"Manual batch started: job={job_id}")
    summary = await orchestrator.run(
        feed_ids=feed_ids or None,
        description=describe_target(feed_ids, manual=True),
    )
    logger.info(
        f"Manual batch finished: job={job_id}, status={summary.status.value}, "
        f"total={summary.total_feeds}, success={summary.successful_feeds}, "
        f"errors={summary.failed_feeds}"
    )


@router.post("/execute")
async def execute_batch(
    request: Request,
    background_tasks: BackgroundTasks,
    db: DatabaseConnection = Depends(get_db),
    settings: YomimonoSettings = Depends(get_app_settings),
):
    """Start a batch run in the background and return its job handle."""
    try:
        payload = parse_batch_request(await request.body())
        feed_ids = payload.feedIds

        job_id = str(uuid.uuid4())
        orchestrator = BatchOrchestrator(db, settings=settings)
        background_tasks.add_task(run_manual_batch, orchestrator, job_id, feed_ids)

        return {
            "jobId": job_id,
            "status": "started",
            "targetFeeds": len(feed_ids) if feed_ids else "all",
            "startedAt": utc_now().isoformat(),
        }

    except Exception as e:
        logger.error(f"Manual batch execution error: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to start batch execution", "details": plain_message(e)},
        )


@router.get("/logs")
async def batch_logs():
    """Placeholder; recent rows are served by /api/dev/batch-logs."""
    return {"message": "Batch logs endpoint (not implemented yet)"}
