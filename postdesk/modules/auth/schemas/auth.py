from typing import Optional
from pydantic import BaseModel

from postdesk.core.flash import FlashMessage

class LoginPage(BaseModel):
    csrf_token: str
    flash: Optional[FlashMessage] = None
    username: Optional[str] = None
