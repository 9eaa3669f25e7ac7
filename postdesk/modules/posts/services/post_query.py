"""Filtered, paginated post listing for the admin post table."""

from datetime import date, datetime, time
from math import ceil
from typing import Any, Optional
import logging

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from postdesk.modules.admin_users.models.admin_user import AdminUser
from postdesk.modules.categories.models.category import Category
from postdesk.modules.posts.models.post import POST_STATUSES, Post
from postdesk.modules.posts.schemas.post import (
    PostListFilters, PostListItem, PostListResult
)
from postdesk.modules.posts.services.post_writer import parse_positive_int

logger = logging.getLogger(__name__)


def parse_filter_date(value: Optional[str]) -> Optional[date]:
    """YYYY-MM-DD to a date; anything else is ignored"""
    if not value or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        logger.warning(f"Ignoring malformed date filter: {value!r}")
        return None


def build_filters(
    search: Optional[str] = None,
    status: Optional[str] = None,
    category_id: Any = None,
    author_id: Any = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
) -> PostListFilters:
    """Normalize raw query-string values; empty values mean no constraint"""
    status = (status or "").strip()
    if status and status not in POST_STATUSES:
        logger.warning(f"Ignoring unknown status filter: {status!r}")
        status = ""
    return PostListFilters(
        search_term=(search or "").strip() or None,
        status=status or None,
        category_id=parse_positive_int(category_id),
        author_id=parse_positive_int(author_id),
        date_from=parse_filter_date(date_from),
        date_to=parse_filter_date(date_to),
    )


def _apply_filters(query: Query, filters: PostListFilters) -> Query:
    if filters.search_term:
        query = query.filter(or_(
            Post.title.icontains(filters.search_term, autoescape=True),
            Post.content.icontains(filters.search_term, autoescape=True),
        ))
    if filters.status:
        query = query.filter(Post.status == filters.status)
    if filters.category_id:
        query = query.filter(Post.category_id == filters.category_id)
    if filters.author_id:
        query = query.filter(Post.author_id == filters.author_id)
    if filters.date_from:
        query = query.filter(Post.created_at >= datetime.combine(filters.date_from, time.min))
    if filters.date_to:
        query = query.filter(Post.created_at <= datetime.combine(filters.date_to, time.max))
    return query


def get_filtered_posts(
    db: Session, filters: PostListFilters, page: int = 1, per_page: int = 10
) -> PostListResult:
    """
    Fetch one page of posts matching ``filters`` with author and category names.

    Query failures are logged and degrade to an empty result.
    """
    page = max(1, page)
    per_page = max(1, per_page)
    empty = PostListResult(current_page=page, per_page=per_page)

    try:
        total_posts = _apply_filters(db.query(func.count(Post.id)), filters).scalar() or 0
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Post count query failed: {e}")
        return empty

    rows_query = (
        db.query(
            Post.id, Post.title, Post.slug, Post.status,
            Post.created_at, Post.updated_at, Post.view_count, Post.author_id,
            AdminUser.username.label("author_name"),
            AdminUser.full_name.label("author_full_name"),
            Category.id.label("category_id"),
            Category.name.label("category_name"),
        )
        .outerjoin(AdminUser, Post.author_id == AdminUser.id)
        .outerjoin(Category, Post.category_id == Category.id)
    )
    rows_query = (
        _apply_filters(rows_query, filters)
        .order_by(Post.created_at.desc(), Post.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )

    try:
        rows = rows_query.all()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Post page query failed: {e}")
        return empty

    total_pages = ceil(total_posts / per_page) if total_posts > 0 else 0
    return PostListResult(
        posts=[PostListItem.model_validate(dict(row._mapping)) for row in rows],
        total_posts=total_posts,
        total_pages=total_pages,
        current_page=page,
        per_page=per_page,
    )
