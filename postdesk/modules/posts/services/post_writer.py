"""
Create/update pipeline for posts.

Both add and edit submissions run through ``save_post``: every check is
run and all failures are collected before anything is written, content
is sanitized, and the row is inserted or fully updated. Stored images
that get replaced or removed are only deleted once the write succeeded.
"""

from typing import Any, Dict, List, Optional
import logging

from fastapi import UploadFile
from pydantic import AnyUrl, TypeAdapter, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from postdesk.core.config import settings
from postdesk.core.errors import ErrorKind, PostStoreError
from postdesk.core.flash import FlashMessage
from postdesk.core.sanitizer import sanitize_content
from postdesk.core.storage import image_storage
from postdesk.core.text import generate_excerpt, slugify, strip_tags
from postdesk.modules.admin_users.services.admin_user import author_exists
from postdesk.modules.posts.models.post import POST_STATUSES
from postdesk.modules.posts.schemas.post import (
    PostForm, PostValues, PostWriteMode, PostWriteResult
)
from postdesk.modules.posts.services.post import (
    create_post, get_post, slug_in_use, update_post
)

logger = logging.getLogger(__name__)

MIN_CONTENT_LENGTH = 2
# Largest value an Integer id column holds
MAX_ID_VALUE = 2**31 - 1
# Widths of the posts.title/meta_* and posts.opengraph_image_url columns
COLUMN_MAX_LENGTH = 255
URL_MAX_LENGTH = 2048

_url_adapter = TypeAdapter(AnyUrl)


def parse_positive_int(value: Any) -> Optional[int]:
    """Positive integer from a form value, or None when out of the id range"""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(str(value).strip())
    except ValueError:
        return None
    return number if 0 < number <= MAX_ID_VALUE else None


def normalize_status(value: Optional[str]) -> str:
    """Unknown statuses fall back to draft"""
    return value if value in POST_STATUSES else "draft"


def is_valid_url(value: str) -> bool:
    try:
        url = _url_adapter.validate_python(value)
    except ValidationError:
        return False
    return bool(url.scheme and url.host)


def has_content(raw_content: str) -> bool:
    if not raw_content or not raw_content.strip():
        return False
    if len(strip_tags(raw_content)) >= MIN_CONTENT_LENGTH:
        return True
    return "<img" in raw_content.lower()


def has_upload(upload: Optional[UploadFile]) -> bool:
    return upload is not None and bool(upload.filename)


def _slug_taken_message(slug: str) -> str:
    return (
        f"This slug ('{slug}') is already in use by another post. "
        "Please provide a unique slug or modify the title."
    )


def _failure(
    mode: PostWriteMode,
    kind: ErrorKind,
    form_data: Dict[str, Any],
    errors: Optional[List[str]] = None,
    message: Optional[str] = None,
    post_id: Optional[int] = None,
) -> PostWriteResult:
    return PostWriteResult(
        ok=False,
        mode=mode,
        post_id=post_id,
        error_kind=kind,
        errors=errors or [],
        flash=FlashMessage(message=message, type="error") if message else None,
        form_data=form_data,
    )


def validate_author(db: Session, raw_author_id: str, errors: List[str]) -> Optional[int]:
    author_id = parse_positive_int(raw_author_id)
    if author_id is None:
        errors.append("A valid author must be selected.")
        return None
    try:
        if not author_exists(db, author_id):
            errors.append("Selected author is invalid.")
            return None
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"DB error validating author {author_id}: {e}")
        errors.append("Database error validating author.")
        return None
    return author_id


def resolve_slug(
    db: Session, form: PostForm, title: str, errors: List[str], exclude_id: Optional[int] = None
) -> str:
    slug_input = form.post_slug.strip()
    slug = slugify(slug_input if slug_input else title)

    if not slug:
        if title:
            errors.append("Slug could not be generated. Ensure the title is not made of only special characters.")
        return slug

    try:
        if slug_in_use(db, slug, exclude_id=exclude_id):
            errors.append(_slug_taken_message(slug))
    except PostStoreError:
        errors.append("Database error while checking the slug. Please try again.")
    return slug


async def save_post(
    db: Session,
    form: PostForm,
    mode: PostWriteMode,
    featured_image: Optional[UploadFile] = None,
    form_data: Optional[Dict[str, Any]] = None,
) -> PostWriteResult:
    """Validate, sanitize and persist an add or edit submission"""
    form_data = form_data if form_data is not None else form.model_dump()
    is_update = mode == PostWriteMode.UPDATE

    post_id: Optional[int] = None
    old_image: Optional[str] = None
    if is_update:
        post_id = parse_positive_int(form.post_id)
        if post_id is None:
            return _failure(mode, ErrorKind.VALIDATION, form_data, message="Invalid or missing post ID")
        try:
            existing = get_post(db, post_id)
        except PostStoreError:
            return _failure(
                mode, ErrorKind.UNAVAILABLE, form_data, post_id=post_id,
                message="Database error while loading the post. Please try again.",
            )
        if existing is None:
            return _failure(
                mode, ErrorKind.NOT_FOUND, form_data, post_id=post_id,
                message=f"Post not found or already deleted (ID: {post_id}).",
            )
        old_image = existing.featured_image

    title = form.post_title.strip()
    raw_content = form.post_content or ""
    meta_title = form.post_meta_title.strip()
    meta_description = form.post_meta_description.strip()
    meta_keywords = form.post_meta_keywords.strip()
    opengraph_image_url = form.post_opengraph_image_url.strip()
    excerpt = form.post_excerpt.strip()
    uploading = has_upload(featured_image)

    errors: List[str] = []

    author_id = validate_author(db, form.post_author_id, errors)

    if opengraph_image_url and not is_valid_url(opengraph_image_url):
        errors.append("Open Graph Image URL is not a valid URL.")
    elif len(opengraph_image_url) > URL_MAX_LENGTH:
        errors.append(f"Open Graph Image URL should not exceed {URL_MAX_LENGTH} characters.")

    if not title:
        errors.append("Post title is required.")
    elif len(title) > COLUMN_MAX_LENGTH:
        errors.append(f"Post title should not exceed {COLUMN_MAX_LENGTH} characters.")

    if not has_content(raw_content):
        if is_update:
            errors.append("Post content is required.")
        elif not uploading:
            errors.append("Post content is required if no featured image is provided.")

    max_length = min(settings.META_FIELD_MAX_LENGTH, COLUMN_MAX_LENGTH)
    if len(meta_title) > max_length:
        errors.append(f"Meta Title should not exceed {max_length} characters.")
    if len(meta_description) > max_length:
        errors.append(f"Meta Description should not exceed {max_length} characters.")
    if len(meta_keywords) > max_length:
        errors.append(f"Meta Keywords should not exceed {max_length} characters.")

    slug = resolve_slug(db, form, title, errors, exclude_id=post_id)

    # Featured image: removal first, then any new upload
    image_to_save = old_image
    stale_images: List[str] = []
    new_image: Optional[str] = None

    if is_update and form.remove_featured_image and old_image:
        stale_images.append(old_image)
        image_to_save = None

    if uploading:
        upload = await image_storage.save(featured_image, settings.ALLOWED_IMAGE_TYPES)
        if upload.errors:
            errors.extend(upload.errors)
        else:
            new_image = upload.filename
            if old_image and old_image != new_image and not form.remove_featured_image:
                stale_images.append(old_image)
            image_to_save = new_image

    if errors:
        logger.info(f"Post {mode.value} rejected with {len(errors)} validation error(s)")
        image_storage.delete(new_image)
        return _failure(mode, ErrorKind.VALIDATION, form_data, errors=errors, post_id=post_id)

    clean_content = sanitize_content(raw_content)
    if not excerpt and clean_content:
        excerpt = generate_excerpt(clean_content, settings.EXCERPT_LENGTH)

    status = normalize_status(form.post_status)
    values = PostValues(
        author_id=author_id,
        title=title,
        slug=slug,
        content=clean_content,
        category_id=parse_positive_int(form.post_category_id),
        status=status,
        featured_image=image_to_save,
        meta_title=meta_title or None,
        meta_description=meta_description or None,
        meta_keywords=meta_keywords or None,
        opengraph_image_url=opengraph_image_url or None,
        excerpt=excerpt or None,
    )

    try:
        if is_update:
            if not update_post(db, post_id, values):
                image_storage.delete(new_image)
                return _failure(
                    mode, ErrorKind.NOT_FOUND, form_data, post_id=post_id,
                    message=f"Post not found or already deleted (ID: {post_id}).",
                )
        else:
            post_id = create_post(db, values).id
    except PostStoreError as e:
        image_storage.delete(new_image)
        if e.kind == ErrorKind.CONFLICT:
            if "slug" in (e.detail or "").lower():
                message = _slug_taken_message(slug)
            else:
                message = "The selected author or category no longer exists."
            return _failure(mode, e.kind, form_data, errors=[message], message=message, post_id=post_id)
        action = "updating" if is_update else "adding"
        return _failure(
            mode, e.kind, form_data, post_id=post_id,
            message=f"Database error while {action} the post. Please try again or check the error logs.",
        )

    image_storage.delete_many(stale_images)

    if is_update:
        message = f"Post updated successfully with status: '{status}'"
    else:
        message = f"Post created successfully! (ID: {post_id})"
    logger.info(message)
    return PostWriteResult(
        ok=True,
        mode=mode,
        post_id=post_id,
        status=status,
        flash=FlashMessage(message=message, type="success"),
    )
