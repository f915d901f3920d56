"""Savings goal data models."""

from typing import Any, Dict, Optional

from pydantic import Field

from shared.models import ApiModel, BoolFlag, NonEmptyStr, ObjectId, Timestamp


class GoalCreate(ApiModel):
    """Goal create request model."""

    name: NonEmptyStr
    description: Optional[str] = Field(None, max_length=500)
    target_amount: float = Field(..., ge=0, allow_inf_nan=False)
    current_amount: float = Field(0.0, ge=0, allow_inf_nan=False)
    wallet_id: Optional[ObjectId] = None
    user_id: Optional[ObjectId] = None
    deadline: Optional[Timestamp] = None


class GoalUpdate(ApiModel):
    """Goal update request model."""

    name: Optional[NonEmptyStr] = None
    description: Optional[str] = Field(None, max_length=500)
    target_amount: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    current_amount: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    wallet_id: Optional[ObjectId] = None
    user_id: Optional[ObjectId] = None
    deadline: Optional[Timestamp] = None


class GoalQuery(ApiModel):
    wallet_id: Optional[ObjectId] = None
    user_id: Optional[ObjectId] = None
    active_only: BoolFlag = False


class GoalAdjust(ApiModel):
    """Signed change to a goal's saved amount."""

    amount_delta: float = Field(..., allow_inf_nan=False)


class Goal(ApiModel):
    """Goal as returned by the API."""

    id: str
    name: str
    description: Optional[str] = None
    target_amount: float
    current_amount: float = 0.0
    wallet_id: Optional[str] = None
    user_id: Optional[str] = None
    deadline: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "Goal":
        fields = {k: v for k, v in item.items() if k in cls.model_fields}
        return cls(id=item['goal_id'], **fields)

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
