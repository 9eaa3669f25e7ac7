from typing import List, Optional, Sequence
import logging

from sqlalchemy.orm import Session
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from postdesk.core.errors import PostStoreError
from postdesk.core.storage import image_storage
from postdesk.modules.posts.models.post import Post
from postdesk.modules.posts.schemas.post import PostValues

logger = logging.getLogger(__name__)

def _store_error(db: Session, action: str, exc: SQLAlchemyError) -> PostStoreError:
    """Roll back, log the driver detail and return the mapped error"""
    db.rollback()
    error = PostStoreError.from_sqlalchemy(exc)
    logger.error(f"DB error ({action}) [{error.kind.value}]: {error.detail}")
    return error

def get_post(db: Session, post_id: int) -> Optional[Post]:
    """Get post by ID"""
    logger.info(f"Getting post with ID: {post_id}")
    try:
        return db.query(Post).filter(Post.id == post_id).first()
    except SQLAlchemyError as e:
        raise _store_error(db, "get post", e)

def slug_in_use(db: Session, slug: str, exclude_id: Optional[int] = None) -> bool:
    """Check whether another post already owns this slug"""
    try:
        query = db.query(Post.id).filter(Post.slug == slug)
        if exclude_id:
            query = query.filter(Post.id != exclude_id)
        return query.first() is not None
    except SQLAlchemyError as e:
        raise _store_error(db, "slug check", e)

def create_post(db: Session, values: PostValues) -> Post:
    """Insert a new post; view count and timestamps come from the database"""
    logger.info(f"Creating post '{values.slug}' for author ID: {values.author_id}")
    post = Post(**values.model_dump(), view_count=0)
    try:
        db.add(post)
        db.commit()
        db.refresh(post)
    except SQLAlchemyError as e:
        raise _store_error(db, "add post", e)
    return post

def update_post(db: Session, post_id: int, values: PostValues) -> int:
    """Full-row update of an existing post; returns the number of rows changed"""
    logger.info(f"Updating post with ID: {post_id}")
    update_data = values.model_dump()
    update_data["updated_at"] = func.now()
    try:
        affected = (
            db.query(Post)
            .filter(Post.id == post_id)
            .update(update_data, synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as e:
        raise _store_error(db, "edit post", e)
    return affected

def set_status(db: Session, post_ids: Sequence[int], status: str) -> int:
    """Set one status on many posts with a single statement"""
    logger.info(f"Setting status '{status}' on posts: {list(post_ids)}")
    try:
        affected = (
            db.query(Post)
            .filter(Post.id.in_(list(post_ids)))
            .update({"status": status, "updated_at": func.now()}, synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as e:
        raise _store_error(db, f"bulk {status}", e)
    return affected

def delete_posts(db: Session, post_ids: Sequence[int]) -> int:
    """
    Delete posts by ID and clean up their stored featured images.
    Image removal happens after the commit and is best-effort.
    """
    ids = list(post_ids)
    logger.info(f"Deleting posts with IDs: {ids}")
    try:
        images: List[Optional[str]] = [
            row.featured_image
            for row in db.query(Post.featured_image).filter(Post.id.in_(ids)).all()
        ]
        affected = db.query(Post).filter(Post.id.in_(ids)).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as e:
        raise _store_error(db, "delete posts", e)

    if affected:
        image_storage.delete_many(name for name in images if name)
    return affected

def delete_post(db: Session, post_id: int) -> Optional[str]:
    """
    Delete a single post and its featured image.
    Returns the deleted post's title, or None when no row was removed.
    """
    try:
        row = db.query(Post.title, Post.featured_image).filter(Post.id == post_id).first()
    except SQLAlchemyError as e:
        raise _store_error(db, "delete post lookup", e)

    affected = delete_posts(db, [post_id])
    if not affected:
        return None
    return row.title if row else f"Post #{post_id}"
