"""Expense data models."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import AnyHttpUrl, Field

from shared.models import ApiModel, CsvList, CurrencyCode, NonEmptyStr, ObjectId, Timestamp


class ExpenseCreate(ApiModel):
    """Expense create request model."""

    name: NonEmptyStr = Field(..., description="Expense name")
    amount: float = Field(..., ge=0, allow_inf_nan=False, description="Expense amount")
    category: NonEmptyStr = Field(..., description="Expense category")
    date: Optional[Timestamp] = Field(None, description="Expense date, defaults to now")
    currency: CurrencyCode = Field("USD", description="ISO 4217 currency code")
    note: Optional[str] = Field(None, max_length=500, description="Optional note")
    tags: List[NonEmptyStr] = Field(default_factory=list)
    wallet_id: Optional[ObjectId] = None
    user_id: Optional[ObjectId] = None
    is_recurring: bool = False
    receipt_url: Optional[AnyHttpUrl] = None


class ExpenseUpdate(ApiModel):
    """Expense update request model. Supplied fields replace stored values."""

    name: Optional[NonEmptyStr] = None
    amount: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    category: Optional[NonEmptyStr] = None
    date: Optional[Timestamp] = None
    currency: Optional[CurrencyCode] = None
    note: Optional[str] = Field(None, max_length=500)
    tags: Optional[List[NonEmptyStr]] = None
    wallet_id: Optional[ObjectId] = None
    user_id: Optional[ObjectId] = None
    is_recurring: Optional[bool] = None
    receipt_url: Optional[AnyHttpUrl] = None


class ExpenseFilters(ApiModel):
    """Criteria shared by expense listing and summaries."""

    wallet_id: Optional[ObjectId] = None
    user_id: Optional[ObjectId] = None
    categories: Optional[CsvList] = None
    tags: Optional[CsvList] = None
    search: Optional[str] = None
    from_date: Optional[Timestamp] = Field(None, alias="from")
    to_date: Optional[Timestamp] = Field(None, alias="to")
    limit: Optional[int] = Field(None, ge=1, le=500)
    sort: Optional[Literal["asc", "desc"]] = None


class SummaryQuery(ApiModel):
    """Query parameters accepted by the summary endpoint."""

    wallet_id: Optional[ObjectId] = None
    user_id: Optional[ObjectId] = None
    categories: Optional[CsvList] = None
    from_date: Optional[Timestamp] = Field(None, alias="from")
    to_date: Optional[Timestamp] = Field(None, alias="to")

    def to_filters(self) -> ExpenseFilters:
        return ExpenseFilters(**self.model_dump())


class Expense(ApiModel):
    """Expense as returned by the API."""

    id: str
    name: str
    amount: float
    category: str
    date: str
    currency: str = "USD"
    note: Optional[str] = None
    tags: List[str] = []
    wallet_id: Optional[str] = None
    user_id: Optional[str] = None
    is_recurring: bool = False
    receipt_url: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "Expense":
        fields = {k: v for k, v in item.items() if k in cls.model_fields}
        return cls(id=item['expense_id'], **fields)

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class CategoryBreakdown(ApiModel):
    category: str
    total: float
    count: int
    average: float
    percentage: float


class TrendPoint(ApiModel):
    date: str
    total: float


class TopCategory(ApiModel):
    category: str
    total: float
    percentage: float


class ExpenseHighlight(ApiModel):
    """A single notable expense (the top expense or an anomaly)."""

    id: str
    name: str
    amount: float
    category: str
    date: str


class ExpenseSummary(ApiModel):
    """Expense summary model."""

    total_amount: float = 0.0
    total_count: int = 0
    average_per_day: float = 0.0
    distinct_categories: int = 0
    category_breakdown: List[CategoryBreakdown] = []
    trend: List[TrendPoint] = []
    top_category: Optional[TopCategory] = None
    top_expense: Optional[ExpenseHighlight] = None
    anomalies: List[ExpenseHighlight] = []

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
