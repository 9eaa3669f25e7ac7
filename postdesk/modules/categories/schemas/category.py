from pydantic import BaseModel, ConfigDict

class CategoryOption(BaseModel):
    """Category entry for the post form and filter dropdowns"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
