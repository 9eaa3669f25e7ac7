"""
One-shot state carried across a single redirect.

Services return typed results; routers stash the user-facing part of a
result here right before redirecting and the next view pops it, so the
state never outlives one round trip.
"""

from typing import Any, Dict, List, Optional

from fastapi import Request
from pydantic import BaseModel

FLASH_SESSION_KEY = "flash"
FORM_STATE_SESSION_KEY = "form_state"


class FlashMessage(BaseModel):
    message: str
    type: str = "info"  # success | error | warning | info


class FormState(BaseModel):
    errors: List[str] = []
    form_data: Dict[str, Any] = {}


def set_flash(request: Request, flash: Optional[FlashMessage]) -> None:
    if flash is None:
        return
    request.session[FLASH_SESSION_KEY] = flash.model_dump()


def pop_flash(request: Request) -> Optional[FlashMessage]:
    data = request.session.pop(FLASH_SESSION_KEY, None)
    return FlashMessage(**data) if data else None


def stash_form_state(request: Request, form_data: Dict[str, Any], errors: Optional[List[str]] = None) -> None:
    request.session[FORM_STATE_SESSION_KEY] = FormState(
        errors=errors or [], form_data=form_data
    ).model_dump()


def pop_form_state(request: Request) -> FormState:
    data = request.session.pop(FORM_STATE_SESSION_KEY, None)
    return FormState(**data) if data else FormState()
