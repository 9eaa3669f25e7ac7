from typing import Any, Dict, List, Optional
from datetime import date, datetime
from enum import Enum
from pydantic import BaseModel, ConfigDict

from postdesk.core.errors import ErrorKind
from postdesk.core.flash import FlashMessage
from postdesk.modules.admin_users.schemas.admin_user import AuthorOption
from postdesk.modules.categories.schemas.category import CategoryOption


class PostWriteMode(str, Enum):
    CREATE = "create"
    UPDATE = "update"


class PostForm(BaseModel):
    """Fields submitted by the add/edit post forms, as received"""
    post_title: str = ""
    post_slug: str = ""
    post_content: str = ""
    post_category_id: str = ""
    post_status: str = ""
    post_author_id: str = ""
    post_meta_title: str = ""
    post_meta_description: str = ""
    post_meta_keywords: str = ""
    post_opengraph_image_url: str = ""
    post_excerpt: str = ""
    post_id: str = ""
    remove_featured_image: bool = False


class PostValues(BaseModel):
    """Validated, normalized column values ready to be written"""
    author_id: int
    title: str
    slug: str
    content: str
    category_id: Optional[int] = None
    status: str = "draft"
    featured_image: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    meta_keywords: Optional[str] = None
    opengraph_image_url: Optional[str] = None
    excerpt: Optional[str] = None


class PostWriteResult(BaseModel):
    ok: bool
    mode: PostWriteMode
    post_id: Optional[int] = None
    status: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    errors: List[str] = []
    flash: Optional[FlashMessage] = None
    form_data: Dict[str, Any] = {}


class PostDetail(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    author_id: int
    category_id: Optional[int] = None
    title: str
    slug: str
    content: Optional[str] = None
    status: str
    featured_image: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    meta_keywords: Optional[str] = None
    opengraph_image_url: Optional[str] = None
    excerpt: Optional[str] = None
    view_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PostListItem(BaseModel):
    """Post row joined with author and category names"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    slug: str
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    view_count: int = 0
    author_id: int
    author_name: Optional[str] = None
    author_full_name: Optional[str] = None
    category_id: Optional[int] = None
    category_name: Optional[str] = None


class PostListFilters(BaseModel):
    search_term: Optional[str] = None
    status: Optional[str] = None
    category_id: Optional[int] = None
    author_id: Optional[int] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None


class PostListResult(BaseModel):
    posts: List[PostListItem] = []
    total_posts: int = 0
    total_pages: int = 0
    current_page: int = 1
    per_page: int = 10


class PostListPage(PostListResult):
    """Everything the post list view renders"""
    filters: PostListFilters
    categories: List[CategoryOption] = []
    authors: List[AuthorOption] = []
    flash: Optional[FlashMessage] = None
    csrf_token: str


class PostFormPage(BaseModel):
    """Everything the add/edit post form renders"""
    mode: PostWriteMode
    csrf_token: str
    flash: Optional[FlashMessage] = None
    errors: List[str] = []
    form_data: Dict[str, Any] = {}
    authors: List[AuthorOption] = []
    categories: List[CategoryOption] = []
    post: Optional[PostDetail] = None


class PostActionResult(BaseModel):
    """Outcome of a bulk action or a single delete"""
    success: bool
    message: str
    flash_type: str = "success"
    error_kind: Optional[ErrorKind] = None
    success_count: int = 0
    error_count: int = 0
    data: Optional[Dict[str, Any]] = None

    @property
    def flash(self) -> FlashMessage:
        return FlashMessage(message=self.message, type=self.flash_type)


class DeletePostResponse(BaseModel):
    """JSON body returned to XHR delete callers"""
    success: bool
    message: str
    data: Optional[Dict[str, Any]] = None
