"""Budget data models."""

from typing import Any, Dict, Optional

from pydantic import Field

from shared.models import ApiModel, BoolFlag, CsvList, NonEmptyStr, ObjectId, Timestamp


class BudgetCreate(ApiModel):
    """Budget create request model."""

    name: NonEmptyStr
    category: NonEmptyStr
    limit: float = Field(..., ge=0, allow_inf_nan=False, description="Spending limit for the period")
    wallet_id: Optional[ObjectId] = None
    user_id: Optional[ObjectId] = None
    period_start: Timestamp
    period_end: Timestamp
    notes: Optional[str] = Field(None, max_length=500)


class BudgetUpdate(ApiModel):
    """Budget update request model."""

    name: Optional[NonEmptyStr] = None
    category: Optional[NonEmptyStr] = None
    limit: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    wallet_id: Optional[ObjectId] = None
    user_id: Optional[ObjectId] = None
    period_start: Optional[Timestamp] = None
    period_end: Optional[Timestamp] = None
    notes: Optional[str] = Field(None, max_length=500)


class BudgetQuery(ApiModel):
    """Budget list query parameters."""

    wallet_id: Optional[ObjectId] = None
    user_id: Optional[ObjectId] = None
    categories: Optional[CsvList] = None
    active_on: Optional[Timestamp] = None
    include_usage: BoolFlag = False


class Budget(ApiModel):
    """Budget as returned by the API."""

    id: str
    name: str
    category: str
    limit: float
    wallet_id: Optional[str] = None
    user_id: Optional[str] = None
    period_start: str
    period_end: str
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "Budget":
        fields = {k: v for k, v in item.items() if k in cls.model_fields}
        return cls(id=item['budget_id'], **fields)

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class BudgetUsage(ApiModel):
    """A budget with its spending in the budget period."""

    budget: Budget
    spent: float
    remaining: float
    utilization: float

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
