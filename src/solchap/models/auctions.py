"""Request models for auction operations."""

from typing import Annotated, Union

from pydantic import Field, field_validator

from solchap.models.base import Amount, NonEmptyStr, RequestModel, positive_amount


class PlaceBidRequest(RequestModel):
    auction_id: NonEmptyStr
    bid_id: NonEmptyStr
    bid_amount: Annotated[Amount, Field(description='Bid amount, must be positive')]
    user_id: NonEmptyStr

    @field_validator('bid_amount')
    @classmethod
    def validate_bid_amount(cls, v: Union[int, float]) -> Union[int, float]:
        return positive_amount(v, 'bidAmount')
