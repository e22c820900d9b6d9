"""Request models for messaging and moderation operations."""

from enum import Enum
from typing import Annotated, Any, Dict, Optional

from pydantic import Field, StrictBool, field_validator, model_validator

from solchap.models.base import NonEmptyStr, RequestModel, fold_case


class MessageReviewStatus(str, Enum):
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'
    DETAILS = 'details'


class CreateMessageRequest(RequestModel):
    id: NonEmptyStr
    user_id: NonEmptyStr
    content: NonEmptyStr
    status: NonEmptyStr
    timestamp: Optional[NonEmptyStr] = None

    @field_validator('status', mode='before')
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        return fold_case(v, upper=True)


class PostMessageRequest(RequestModel):
    sender_id: NonEmptyStr
    receiver_id: NonEmptyStr
    message: NonEmptyStr
    subject: Optional[str] = None
    policy: Optional[Any] = None


class ReplyToMessageRequest(RequestModel):
    id: NonEmptyStr
    sender_id: NonEmptyStr
    receiver_id: NonEmptyStr
    message_text: Optional[NonEmptyStr] = None
    reply_text: Optional[NonEmptyStr] = None

    @model_validator(mode='after')
    def require_text(self) -> 'ReplyToMessageRequest':
        if self.message_text is None and self.reply_text is None:
            raise ValueError('messageText or replyText is required')
        return self

    @property
    def text(self) -> str:
        return self.message_text if self.message_text is not None else self.reply_text


class ReviewMessageRequest(RequestModel):
    id: NonEmptyStr
    status: MessageReviewStatus
    admin_id: NonEmptyStr

    @field_validator('status', mode='before')
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        return fold_case(v)


class ReviewMessageDetailsRequest(RequestModel):
    id: NonEmptyStr
    from_user_id: NonEmptyStr
    to_user_id: NonEmptyStr
    notes: NonEmptyStr
    admin_id: NonEmptyStr


class ReviewSubjectRequest(RequestModel):
    id: NonEmptyStr
    subject: NonEmptyStr


class CheckCircumventionRequest(RequestModel):
    id: NonEmptyStr
    circumvent_detected: StrictBool
    admin_id: NonEmptyStr


class FilterContactInfoRequest(RequestModel):
    message_id: NonEmptyStr
    sender_id: NonEmptyStr
    receiver_id: NonEmptyStr
    message_text: NonEmptyStr


class UpdateMessageFilterRequest(RequestModel):
    id: NonEmptyStr
    name: NonEmptyStr
    pattern: NonEmptyStr
    action: NonEmptyStr
    enabled: Annotated[StrictBool, Field(description='Whether the filter is applied')]
    metadata: Dict[str, Any]
