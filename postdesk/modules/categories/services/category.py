from typing import List
from sqlalchemy.orm import Session

from postdesk.modules.categories.models.category import Category

def list_categories(db: Session) -> List[Category]:
    """Categories for dropdowns, ordered by name"""
    return db.query(Category).order_by(Category.name.asc()).all()
