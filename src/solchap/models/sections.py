"""Request models for section operations."""

from enum import Enum
from typing import Annotated, Any, Dict, Optional

from pydantic import Field, field_validator

from solchap.models.base import NonEmptyStr, RequestModel, fold_case

DEFAULT_DISPLAY_RULES: Dict[str, Any] = {
    'layout': 'GRID',
    'itemsPerPage': 20,
    'sortBy': 'PRICE_DESC',
}

DEFAULT_FILTERS: Dict[str, Any] = {
    'condition': ['NEW', 'USED', 'REFURBISHED'],
    'priceRange': {'min': 100, 'max': 2000},
}

DEFAULT_SECTION_METADATA: Dict[str, Any] = {
    'icon': 'default-icon',
    'color': '#000000',
    'visibility': 'PUBLIC',
    'permissions': [],
}


class SectionStatus(str, Enum):
    ACTIVE = 'ACTIVE'
    INACTIVE = 'INACTIVE'


class AssignSubcategoryRequest(RequestModel):
    section_id: NonEmptyStr
    subcategory_id: NonEmptyStr
    name: NonEmptyStr
    display_rules: Dict[str, Any] = Field(default_factory=lambda: dict(DEFAULT_DISPLAY_RULES))
    filters: Dict[str, Any] = Field(default_factory=lambda: dict(DEFAULT_FILTERS))

    @field_validator('display_rules', 'filters', mode='before')
    @classmethod
    def empty_means_default(cls, v: Any, info) -> Any:
        if v is None:
            return dict(DEFAULT_DISPLAY_RULES) if info.field_name == 'display_rules' else dict(DEFAULT_FILTERS)
        return v


class SetDisplayRulesRequest(RequestModel):
    id: NonEmptyStr
    display_rules: Annotated[Dict[str, Any], Field(description='Layout, paging and sorting rules')]


class OrganizeContentRequest(RequestModel):
    id: NonEmptyStr
    name: NonEmptyStr
    description: NonEmptyStr
    status: SectionStatus
    order: Annotated[int, Field(ge=0, description='Position of the section')]
    metadata: Dict[str, Any] = Field(default_factory=dict)
    parent_id: Optional[NonEmptyStr] = None

    @field_validator('status', mode='before')
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        return fold_case(v, upper=True)

    @field_validator('metadata', mode='before')
    @classmethod
    def default_metadata(cls, v: Any) -> Any:
        return {} if v is None else v

    def merged_metadata(self) -> Dict[str, Any]:
        return {**DEFAULT_SECTION_METADATA, **self.metadata}
