"""Request models for notification templates."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import field_validator

from solchap.models.base import NonEmptyStr, RequestModel, fold_case


class TemplateStatus(str, Enum):
    ACTIVE = 'ACTIVE'
    INACTIVE = 'INACTIVE'
    DRAFT = 'DRAFT'


class UpdateTemplateRequest(RequestModel):
    id: NonEmptyStr
    type: NonEmptyStr
    name: NonEmptyStr
    content: NonEmptyStr
    variables: List[Any]
    status: TemplateStatus
    admin_id: NonEmptyStr
    metadata: Optional[Dict[str, Any]] = None

    @field_validator('status', mode='before')
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        return fold_case(v, upper=True)
