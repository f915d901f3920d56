"""Wallet service for shared wallets and their members."""

from typing import Dict, Any, List, Optional
import logging
from boto3.dynamodb.conditions import Attr, Key

from shared.config import Settings
from shared.dynamodb import DynamoDBClient, build_set_expression
from shared.validators import new_object_id, utc_now
from shared.exceptions import NotFoundError
from wallets.models import WalletCreate, WalletMember, WalletUpdate

logger = logging.getLogger(__name__)

OWNER_INDEX = 'owner-index'


def _members_map(members: Optional[List[WalletMember]]) -> Dict[str, str]:
    # Later entries for the same user win
    return {member.user_id: member.role for member in members or []}


class WalletService:
    """Service for managing wallets."""

    def __init__(self, wallets_table: DynamoDBClient):
        """
        Initialize wallet service.

        Args:
            wallets_table: Wallets table client
        """
        self.wallets_table = wallets_table

    @classmethod
    def from_settings(cls, settings: Settings) -> "WalletService":
        return cls(DynamoDBClient(settings.wallets_table))

    def list_wallets(self, owner_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        List wallets, newest first.

        Args:
            owner_id: Optional owner filter

        Returns:
            Wallets
        """
        if owner_id:
            return self.wallets_table.query_all(
                key_condition_expression=Key('owner_id').eq(owner_id),
                index_name=OWNER_INDEX,
                scan_forward=False
            )

        wallets = self.wallets_table.scan_all()
        wallets.sort(key=lambda item: item.get('created_at', ''), reverse=True)
        return wallets

    def get_wallet(self, wallet_id: str) -> Dict[str, Any]:
        """
        Get wallet by ID.

        Raises:
            NotFoundError: If wallet not found
        """
        wallet = self.wallets_table.get_item({'wallet_id': wallet_id})

        if not wallet:
            raise NotFoundError("Wallet not found")

        return wallet

    def create_wallet(self, payload: WalletCreate) -> Dict[str, Any]:
        """Create a new wallet."""
        now = utc_now()

        wallet = self.wallets_table.put_item({
            'wallet_id': new_object_id(),
            'name': payload.name,
            'owner_id': payload.owner_id,
            'members': _members_map(payload.members),
            'currency': payload.currency,
            'created_at': now,
            'updated_at': now
        })

        logger.info(f"Created wallet {wallet['wallet_id']}")
        return wallet

    def update_wallet(self, wallet_id: str, payload: WalletUpdate) -> Dict[str, Any]:
        """
        Update wallet. A supplied member list replaces the stored one.

        Raises:
            NotFoundError: If wallet not found
        """
        updates = {
            key: value
            for key, value in payload.model_dump(exclude_unset=True).items()
            if value is not None
        }

        if 'members' in updates:
            updates['members'] = _members_map(payload.members)

        updates['updated_at'] = utc_now()
        update_expr, expr_names, expr_values = build_set_expression(updates)

        wallet = self.wallets_table.update_item(
            key={'wallet_id': wallet_id},
            update_expression=update_expr,
            expression_values=expr_values,
            expression_names=expr_names,
            condition_expression=Attr('wallet_id').exists(),
            not_found_message="Wallet not found"
        )

        logger.info(f"Updated wallet {wallet_id}")
        return wallet

    def delete_wallet(self, wallet_id: str) -> None:
        """
        Delete wallet.

        Raises:
            NotFoundError: If wallet not found
        """
        self.wallets_table.delete_item(
            {'wallet_id': wallet_id},
            condition_expression=Attr('wallet_id').exists(),
            not_found_message="Wallet not found"
        )

        logger.info(f"Deleted wallet {wallet_id}")

    def add_member(self, wallet_id: str, member: WalletMember) -> Dict[str, Any]:
        """
        Add a member, or change the role of an existing one.

        Raises:
            NotFoundError: If wallet not found
        """
        wallet = self.wallets_table.update_item(
            key={'wallet_id': wallet_id},
            update_expression="SET #members.#member = :role, #updated_at = :updated_at",
            expression_names={
                '#members': 'members',
                '#member': member.user_id,
                '#updated_at': 'updated_at'
            },
            expression_values={
                ':role': member.role,
                ':updated_at': utc_now()
            },
            condition_expression=Attr('wallet_id').exists(),
            not_found_message="Wallet not found"
        )

        logger.info(f"Added member {member.user_id} to wallet {wallet_id} as {member.role}")
        return wallet

    def remove_member(self, wallet_id: str, user_id: str) -> Dict[str, Any]:
        """
        Remove a member. Removing a non-member leaves the wallet unchanged.

        Raises:
            NotFoundError: If wallet not found
        """
        wallet = self.wallets_table.update_item(
            key={'wallet_id': wallet_id},
            update_expression="REMOVE #members.#member SET #updated_at = :updated_at",
            expression_names={
                '#members': 'members',
                '#member': user_id,
                '#updated_at': 'updated_at'
            },
            expression_values={':updated_at': utc_now()},
            condition_expression=Attr('wallet_id').exists(),
            not_found_message="Wallet not found"
        )

        logger.info(f"Removed member {user_id} from wallet {wallet_id}")
        return wallet
