"""Request models for listing operations."""

from enum import Enum
from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import Field, field_validator

from solchap.models.base import Amount, NonEmptyStr, RequestModel, fold_case, positive_amount


class ListingVisibility(str, Enum):
    PUBLIC = 'PUBLIC'
    PRIVATE = 'PRIVATE'


class ListingReviewStatus(str, Enum):
    APPROVED = 'approved'
    REJECTED = 'rejected'
    PENDING = 'pending'

    @property
    def stored(self) -> str:
        return self.value.capitalize()


class VerifyListingRequest(RequestModel):
    listing_id: NonEmptyStr
    user_id: NonEmptyStr
    marketplace_id: NonEmptyStr
    category_id: NonEmptyStr
    title: NonEmptyStr
    price: Annotated[Amount, Field(description='Asking price, must be positive')]
    visibility: ListingVisibility
    description: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    attributes: Dict[str, Any] = Field(default_factory=dict)
    credit_type: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    location: Optional[Any] = None
    expiration: Optional[str] = None

    @field_validator('price')
    @classmethod
    def validate_price(cls, v: Union[int, float]) -> Union[int, float]:
        return positive_amount(v, 'price')

    @field_validator('visibility', mode='before')
    @classmethod
    def normalize_visibility(cls, v: Any) -> Any:
        return fold_case(v, upper=True)


class ReviewListingRequest(RequestModel):
    id: NonEmptyStr
    status: ListingReviewStatus
    admin_id: NonEmptyStr
    notes: Optional[str] = None

    @field_validator('status', mode='before')
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        return fold_case(v)
