"""Request models for category and subcategory operations."""

from typing import Annotated, Optional

from pydantic import Field, model_validator

from solchap.models.base import NonEmptyStr, RequestModel

DisplayOrder = Annotated[int, Field(ge=0, description='Position of the subcategory inside its category')]


class CreateCategoryRequest(RequestModel):
    marketplace_id: NonEmptyStr
    name: NonEmptyStr
    description: NonEmptyStr


class UpdateCategoryRequest(RequestModel):
    id: NonEmptyStr
    marketplace_id: NonEmptyStr
    name: NonEmptyStr
    description: NonEmptyStr


class CreateSubcategoryRequest(RequestModel):
    subcategory_id: NonEmptyStr
    category_id: NonEmptyStr
    name: NonEmptyStr
    display_order: DisplayOrder
    description: Optional[str] = None


class UpdateSubcategoryRequest(RequestModel):
    id: NonEmptyStr
    category_id: NonEmptyStr
    name: Optional[NonEmptyStr] = None
    description: Optional[str] = None
    display_order: Optional[DisplayOrder] = None

    @model_validator(mode='after')
    def require_change(self) -> 'UpdateSubcategoryRequest':
        if self.name is None and self.description is None and self.display_order is None:
            raise ValueError('at least one of name, description or displayOrder is required')
        return self
