"""Wallet data models."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from shared.models import ApiModel, CurrencyCode, NonEmptyStr, ObjectId

WalletRole = Literal["owner", "editor", "viewer"]


class WalletMember(ApiModel):
    """A user's membership in a wallet."""

    user_id: ObjectId
    role: WalletRole = "viewer"


class WalletCreate(ApiModel):
    """Wallet create request model."""

    name: NonEmptyStr
    owner_id: ObjectId
    members: Optional[List[WalletMember]] = None
    currency: CurrencyCode = Field("USD", description="ISO 4217 currency code")


class WalletUpdate(ApiModel):
    """Wallet update request model."""

    name: Optional[NonEmptyStr] = None
    owner_id: Optional[ObjectId] = None
    members: Optional[List[WalletMember]] = None
    currency: Optional[CurrencyCode] = None


class WalletQuery(ApiModel):
    owner_id: Optional[ObjectId] = None


class Wallet(ApiModel):
    """Wallet as returned by the API."""

    id: str
    name: str
    owner_id: str
    members: List[WalletMember] = []
    currency: str = "USD"
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "Wallet":
        # Members are stored as a user id -> role map
        members = [
            WalletMember(user_id=user_id, role=role)
            for user_id, role in sorted((item.get('members') or {}).items())
        ]
        return cls(
            id=item['wallet_id'],
            name=item['name'],
            owner_id=item['owner_id'],
            members=members,
            currency=item.get('currency', 'USD'),
            created_at=item.get('created_at'),
            updated_at=item.get('updated_at')
        )

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
