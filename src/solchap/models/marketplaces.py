"""Request models for marketplace operations."""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import field_validator, model_validator

from solchap.models.base import NonEmptyStr, RequestModel, fold_case


class MarketplaceStatus(str, Enum):
    ACTIVE = 'ACTIVE'
    INACTIVE = 'INACTIVE'


class CreateMarketplaceRequest(RequestModel):
    marketplace_id: NonEmptyStr
    name: NonEmptyStr
    description: NonEmptyStr
    status: MarketplaceStatus = MarketplaceStatus.ACTIVE

    @field_validator('status', mode='before')
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        if v is None or v == '':
            return MarketplaceStatus.ACTIVE
        return fold_case(v, upper=True)


class UpdateMarketplaceRequest(RequestModel):
    id: NonEmptyStr
    name: Optional[NonEmptyStr] = None
    description: Optional[NonEmptyStr] = None
    status: Optional[MarketplaceStatus] = None
    settings: Optional[Dict[str, Any]] = None

    @field_validator('status', mode='before')
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        return fold_case(v, upper=True)

    @model_validator(mode='after')
    def require_change(self) -> 'UpdateMarketplaceRequest':
        if all(value is None for value in (self.name, self.description, self.status, self.settings)):
            raise ValueError('request body must contain at least one field to update')
        return self
