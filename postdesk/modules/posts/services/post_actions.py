from typing import Iterable, List, Optional
import logging

from sqlalchemy.orm import Session

from postdesk.core.errors import ErrorKind, PostStoreError
from postdesk.modules.posts.schemas.post import PostActionResult
from postdesk.modules.posts.services.post import delete_post, delete_posts, set_status
from postdesk.modules.posts.services.post_writer import parse_positive_int

logger = logging.getLogger(__name__)

BULK_STATUS_ACTIONS = {"publish": "published", "draft": "draft"}
BULK_ACTIONS = tuple(BULK_STATUS_ACTIONS) + ("delete",)


def _error(message: str, kind: Optional[ErrorKind] = None, **kwargs) -> PostActionResult:
    return PostActionResult(success=False, message=message, flash_type="error", error_kind=kind, **kwargs)


def sanitize_post_ids(raw_ids: Iterable) -> List[int]:
    """Positive integer IDs, in order, without duplicates"""
    ids: List[int] = []
    for raw in raw_ids or []:
        post_id = parse_positive_int(raw)
        if post_id is not None and post_id not in ids:
            ids.append(post_id)
    return ids


def run_bulk_action(db: Session, action: Optional[str], raw_ids: Iterable) -> PostActionResult:
    """
    Apply publish/draft/delete to the selected posts in one statement.

    The affected-row count is the success count; a failed statement counts
    every requested post as failed.
    """
    action = (action or "").strip()
    raw_ids = list(raw_ids or [])

    if not action:
        return _error("No bulk action selected.", ErrorKind.VALIDATION)
    if action not in BULK_ACTIONS:
        return _error(f"Invalid bulk action specified: {action}", ErrorKind.VALIDATION)
    if not raw_ids:
        return _error("No posts selected for the bulk action.", ErrorKind.VALIDATION)

    post_ids = sanitize_post_ids(raw_ids)
    if not post_ids:
        return _error("No valid posts selected.", ErrorKind.VALIDATION)

    success_count = 0
    error_count = 0
    error_kind = None
    try:
        if action == "delete":
            success_count = delete_posts(db, post_ids)
        else:
            success_count = set_status(db, post_ids, BULK_STATUS_ACTIONS[action])
    except PostStoreError as e:
        logger.error(f"Bulk action ({action}) failed for {len(post_ids)} post(s): {e.kind.value}")
        error_count = len(post_ids)
        error_kind = e.kind

    counts = {"success_count": success_count, "error_count": error_count}

    if error_count and success_count:
        return PostActionResult(
            success=False,
            message=f"{success_count} post(s) processed. {error_count} post(s) failed. Check error logs.",
            flash_type="warning",
            error_kind=error_kind,
            **counts,
        )
    if error_count:
        return _error(
            f"All selected posts failed to process for action '{action}'. Check error logs.",
            error_kind,
            **counts,
        )
    if not success_count:
        if action == "delete":
            message = "Could not delete selected posts. They may have already been deleted."
        else:
            message = "Could not update status for selected posts. They may have been deleted."
        return _error(message, ErrorKind.NOT_FOUND, **counts)

    if action == "delete":
        message = f"{success_count} post(s) successfully deleted."
    else:
        message = f"{success_count} post(s) status updated to '{BULK_STATUS_ACTIONS[action]}'."
    logger.info(message)
    return PostActionResult(success=True, message=message, data={"post_ids": post_ids}, **counts)


def delete_single_post(db: Session, raw_post_id) -> PostActionResult:
    """Delete one post; a missing row is reported, not raised"""
    post_id = parse_positive_int(raw_post_id)
    if post_id is None:
        return _error("Invalid request: Missing post ID.", ErrorKind.VALIDATION)

    try:
        title = delete_post(db, post_id)
    except PostStoreError as e:
        return _error(f"Error deleting post (ID: {post_id}). Database error.", e.kind, error_count=1)

    if title is None:
        return _error(f"Post not found or already deleted (ID: {post_id}).", ErrorKind.NOT_FOUND)

    message = f'Post "{title}" (ID: {post_id}) deleted successfully.'
    logger.info(message)
    return PostActionResult(
        success=True, message=message, success_count=1, data={"deleted_id": post_id}
    )
