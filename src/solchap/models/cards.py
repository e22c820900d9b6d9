"""Request models for card and card-schema operations."""

from enum import Enum
from typing import Annotated, Any, List, Optional

from pydantic import Field, field_validator, model_validator

from solchap.models.base import NonEmptyStr, RequestModel, fold_case


class CardStatus(str, Enum):
    PENDING = 'PENDING'
    APPROVED = 'APPROVED'
    REJECTED = 'REJECTED'
    DETAILS = 'DETAILS'


class UncoverPaymentType(str, Enum):
    CHAPTER_COINS = 'CHAPTER_COINS'
    GOLD_COINS = 'GOLD_COINS'


class CreateCardRequest(RequestModel):
    id: NonEmptyStr
    title: NonEmptyStr
    description: NonEmptyStr
    user_id: NonEmptyStr
    status: CardStatus
    payment_type: Optional[NonEmptyStr] = None

    @field_validator('status', mode='before')
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        return fold_case(v, upper=True)


class UpdateCardRequest(RequestModel):
    id: NonEmptyStr
    user_id: NonEmptyStr
    title: Optional[NonEmptyStr] = None
    description: Optional[NonEmptyStr] = None

    @model_validator(mode='after')
    def require_change(self) -> 'UpdateCardRequest':
        if self.title is None and self.description is None:
            raise ValueError('at least one of title or description is required')
        return self


class ReviewCardRequest(RequestModel):
    id: NonEmptyStr
    user_id: NonEmptyStr
    title: NonEmptyStr
    description: NonEmptyStr
    status: Annotated[CardStatus, Field(description='Review status, PENDING when omitted')] = CardStatus.PENDING

    @field_validator('status', mode='before')
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        if v is None or v == '':
            return CardStatus.PENDING
        return fold_case(v, upper=True)


class UncoverCardRequest(RequestModel):
    id: NonEmptyStr
    user_id: NonEmptyStr
    payment_type: UncoverPaymentType

    @field_validator('payment_type', mode='before')
    @classmethod
    def normalize_payment_type(cls, v: Any) -> Any:
        return fold_case(v, upper=True)


class ImportCardSchemaRequest(RequestModel):
    schema_id: NonEmptyStr
    section_id: NonEmptyStr
    schema_name: NonEmptyStr
    attributes: Annotated[List[Any], Field(description='Attribute definitions of the schema')]
