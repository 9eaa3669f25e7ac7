from typing import Any, Dict, Optional
import logging

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

# Get the logger
logger = logging.getLogger(__name__)

from postdesk.core.config import settings
from postdesk.core.errors import ErrorKind, PostStoreError
from postdesk.core.flash import (
    FlashMessage, pop_flash, pop_form_state, set_flash, stash_form_state
)
from postdesk.core.security import generate_csrf_token, validate_csrf_token
from postdesk.db.session import get_db
from postdesk.deps import get_current_admin, is_ajax, redirect_to
from postdesk.modules.admin_users.models.admin_user import AdminUser
from postdesk.modules.admin_users.schemas.admin_user import AuthorOption
from postdesk.modules.admin_users.services.admin_user import list_authors
from postdesk.modules.categories.schemas.category import CategoryOption
from postdesk.modules.categories.services.category import list_categories
from postdesk.modules.posts.schemas.post import (
    DeletePostResponse, PostDetail, PostForm, PostFormPage, PostListPage, PostWriteMode
)
from postdesk.modules.posts.services.post import get_post
from postdesk.modules.posts.services.post_actions import delete_single_post, run_bulk_action
from postdesk.modules.posts.services.post_query import build_filters, get_filtered_posts
from postdesk.modules.posts.services.post_writer import parse_positive_int, save_post

router = APIRouter()

CSRF_FAILED = "Invalid security token. Please try again."


async def _form_snapshot(request: Request) -> Dict[str, Any]:
    """Submitted text fields, kept for redisplay after a failed submission"""
    form = await request.form()
    return {
        key: value for key, value in form.items()
        if isinstance(value, str) and key != "csrf_token"
    }


def _options(db: Session) -> Dict[str, Any]:
    return {
        "authors": [AuthorOption.model_validate(a) for a in list_authors(db)],
        "categories": [CategoryOption.model_validate(c) for c in list_categories(db)],
    }


@router.get("/posts", response_model=PostListPage)
def read_posts(
    request: Request,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
    search: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    category_id: Optional[str] = Query(None),
    author_id: Optional[str] = Query(None),
    date_from: Optional[str] = Query(None, description="YYYY-MM-DD"),
    date_to: Optional[str] = Query(None, description="YYYY-MM-DD"),
    paged: Optional[str] = Query(None),
    per_page: Optional[str] = Query(None),
) -> Any:
    """
    List posts with filters and pagination, plus the dropdown options,
    pending flash message and CSRF token the list view needs.
    """
    filters = build_filters(search, status_filter, category_id, author_id, date_from, date_to)
    result = get_filtered_posts(
        db,
        filters,
        page=parse_positive_int(paged) or 1,
        per_page=parse_positive_int(per_page) or settings.POSTS_PER_PAGE,
    )
    return PostListPage(
        **result.model_dump(),
        filters=filters,
        **_options(db),
        flash=pop_flash(request),
        csrf_token=generate_csrf_token(request.session),
    )


@router.get("/posts/new", response_model=PostFormPage)
def new_post_form(
    request: Request,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
) -> Any:
    """State for the add-post form, including anything kept from a rejected submission"""
    form_state = pop_form_state(request)
    return PostFormPage(
        mode=PostWriteMode.CREATE,
        csrf_token=generate_csrf_token(request.session),
        flash=pop_flash(request),
        errors=form_state.errors,
        form_data=form_state.form_data or {"post_author_id": str(admin.id)},
        **_options(db),
    )


@router.get("/posts/{post_id}/edit", response_model=PostFormPage)
def edit_post_form(
    request: Request,
    post_id: str,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
) -> Any:
    """State for the edit-post form"""
    target_id = parse_positive_int(post_id)
    try:
        post = get_post(db, post_id=target_id) if target_id else None
    except PostStoreError:
        set_flash(request, FlashMessage(message="Database error while loading the post. Please try again.", type="error"))
        return redirect_to("posts")
    if not post:
        set_flash(request, FlashMessage(message=f"Post not found (ID: {post_id}).", type="error"))
        return redirect_to("posts")

    form_state = pop_form_state(request)
    return PostFormPage(
        mode=PostWriteMode.UPDATE,
        csrf_token=generate_csrf_token(request.session),
        flash=pop_flash(request),
        errors=form_state.errors,
        form_data=form_state.form_data,
        post=PostDetail.model_validate(post),
        **_options(db),
    )


@router.post("/actions/add-post")
async def add_post(
    request: Request,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
    csrf_token: str = Form(""),
    submit_post: str = Form(""),
    post_title: str = Form(""),
    post_slug: str = Form(""),
    post_content: str = Form(""),
    post_category_id: str = Form(""),
    post_status: str = Form(""),
    post_author_id: str = Form(""),
    post_meta_title: str = Form(""),
    post_meta_description: str = Form(""),
    post_meta_keywords: str = Form(""),
    post_opengraph_image_url: str = Form(""),
    post_excerpt: str = Form(""),
    featured_image: Optional[UploadFile] = File(None),
) -> Any:
    """
    Create a post. Redirects to the new post's edit form on success,
    back to the add form (errors and input preserved) otherwise.
    """
    form_data = await _form_snapshot(request)

    if not validate_csrf_token(request.session, csrf_token):
        set_flash(request, FlashMessage(message="Invalid or missing CSRF token. Please try again.", type="error"))
        stash_form_state(request, form_data)
        return redirect_to("posts/new")

    if not submit_post:
        set_flash(request, FlashMessage(message="Invalid request method or missing submission data.", type="error"))
        return redirect_to("posts/new")

    form = PostForm(
        post_title=post_title,
        post_slug=post_slug,
        post_content=post_content,
        post_category_id=post_category_id,
        post_status=post_status,
        post_author_id=post_author_id,
        post_meta_title=post_meta_title,
        post_meta_description=post_meta_description,
        post_meta_keywords=post_meta_keywords,
        post_opengraph_image_url=post_opengraph_image_url,
        post_excerpt=post_excerpt,
    )
    result = await save_post(db, form, PostWriteMode.CREATE, featured_image, form_data)

    set_flash(request, result.flash)
    if result.ok:
        return redirect_to(f"posts/{result.post_id}/edit")

    stash_form_state(request, result.form_data, result.errors)
    return redirect_to("posts/new")


@router.post("/actions/edit-post")
async def edit_post(
    request: Request,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
    csrf_token: str = Form(""),
    submit_post: str = Form(""),
    post_id: str = Form(""),
    post_title: str = Form(""),
    post_slug: str = Form(""),
    post_content: str = Form(""),
    post_category_id: str = Form(""),
    post_status: str = Form(""),
    post_author_id: str = Form(""),
    post_meta_title: str = Form(""),
    post_meta_description: str = Form(""),
    post_meta_keywords: str = Form(""),
    post_opengraph_image_url: str = Form(""),
    post_excerpt: str = Form(""),
    remove_featured_image: str = Form(""),
    featured_image: Optional[UploadFile] = File(None),
) -> Any:
    """
    Update a post. Redirects to the post list on success, back to the
    edit form (errors and input preserved) otherwise.
    """
    form_data = await _form_snapshot(request)
    target_id = parse_positive_int(post_id)

    if not validate_csrf_token(request.session, csrf_token):
        set_flash(request, FlashMessage(message=CSRF_FAILED, type="error"))
        if target_id:
            stash_form_state(request, form_data)
            return redirect_to(f"posts/{target_id}/edit")
        return redirect_to("posts")

    if submit_post != "update":
        logger.warning(f"Invalid submit_post value: {submit_post!r}")
        set_flash(request, FlashMessage(message="Invalid form submission", type="error"))
        return redirect_to("posts")

    if target_id is None:
        set_flash(request, FlashMessage(message="Invalid or missing post ID", type="error"))
        return redirect_to("posts")

    form = PostForm(
        post_id=str(target_id),
        post_title=post_title,
        post_slug=post_slug,
        post_content=post_content,
        post_category_id=post_category_id,
        post_status=post_status,
        post_author_id=post_author_id,
        post_meta_title=post_meta_title,
        post_meta_description=post_meta_description,
        post_meta_keywords=post_meta_keywords,
        post_opengraph_image_url=post_opengraph_image_url,
        post_excerpt=post_excerpt,
        remove_featured_image=remove_featured_image == "1",
    )
    result = await save_post(db, form, PostWriteMode.UPDATE, featured_image, form_data)

    set_flash(request, result.flash)
    if result.ok or result.error_kind == ErrorKind.NOT_FOUND:
        return redirect_to("posts")

    stash_form_state(request, result.form_data, result.errors)
    return redirect_to(f"posts/{target_id}/edit")


@router.post("/actions/bulk-post-actions")
async def bulk_post_actions(
    request: Request,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
    csrf_token: str = Form(""),
    bulk_action: str = Form(""),
) -> Any:
    """Publish, unpublish or delete the selected posts, then return to the list"""
    if not validate_csrf_token(request.session, csrf_token):
        set_flash(request, FlashMessage(message="CSRF token validation failed. Action aborted.", type="error"))
        return redirect_to("posts")

    form = await request.form()
    raw_ids = form.getlist("post_ids") + form.getlist("post_ids[]")

    result = run_bulk_action(db, bulk_action, raw_ids)
    set_flash(request, result.flash)
    return redirect_to("posts")


@router.post("/actions/delete-post")
def delete_post_by_id(
    request: Request,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
    csrf_token: str = Form(""),
    post_id: str = Form(""),
) -> Any:
    """
    Delete a single post and its featured image.
    XHR callers get a JSON body (always HTTP 200); others are redirected
    to the list with a flash message.
    """
    ajax = is_ajax(request)

    if not validate_csrf_token(request.session, csrf_token):
        if ajax:
            return JSONResponse(DeletePostResponse(success=False, message=CSRF_FAILED).model_dump())
        set_flash(request, FlashMessage(message=CSRF_FAILED, type="error"))
        return redirect_to("posts")

    result = delete_single_post(db, post_id)

    if ajax:
        return JSONResponse(
            DeletePostResponse(success=result.success, message=result.message, data=result.data).model_dump()
        )
    set_flash(request, result.flash)
    return redirect_to("posts")
