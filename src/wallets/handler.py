"""Lambda handler for wallet operations."""

import os
import logging
from functools import lru_cache
from typing import Dict, Any
import sys

# Add parent directory to path for imports
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from shared.config import get_settings
from shared.response import (
    success_response,
    error_response,
    exception_response,
    no_content_response,
    server_error_response
)
from shared.validators import parse_json_body, require_non_empty, validate_model, validate_object_id
from shared.exceptions import ExpenseTrackerException
from wallets.models import Wallet, WalletCreate, WalletMember, WalletQuery, WalletUpdate
from wallets.service import WalletService

# Configure logging
logger = logging.getLogger()
logger.setLevel(get_settings().log_level)


@lru_cache(maxsize=1)
def get_wallet_service() -> WalletService:
    return WalletService.from_settings(get_settings())


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for wallet operations.

    Handles:
    - GET /wallets - List wallets
    - POST /wallets - Create wallet
    - GET /wallets/{id} - Get wallet details
    - PUT /wallets/{id} - Update wallet
    - DELETE /wallets/{id} - Delete wallet
    - POST /wallets/{id}/members - Add or re-role a member
    - DELETE /wallets/{id}/members/{userId} - Remove a member

    Args:
        event: Lambda event
        context: Lambda context

    Returns:
        API Gateway response
    """
    return route_request(event, get_wallet_service())


def route_request(event: Dict[str, Any], wallet_service: WalletService) -> Dict[str, Any]:
    """Dispatch one API Gateway event to the matching operation."""
    try:
        logger.info(f"Request: {event.get('httpMethod')} {event.get('path')}")

        http_method = event.get('httpMethod')
        path = (event.get('path') or '').rstrip('/')
        is_members_path = path.startswith('/wallets/') and '/members' in path

        if path == '/wallets' and http_method == 'GET':
            return handle_list(event, wallet_service)
        elif path == '/wallets' and http_method == 'POST':
            return handle_create(event, wallet_service)
        elif is_members_path and http_method == 'POST':
            return handle_add_member(event, wallet_service)
        elif is_members_path and http_method == 'DELETE':
            return handle_remove_member(event, wallet_service)
        elif path.startswith('/wallets/') and http_method == 'GET':
            return handle_get(event, wallet_service)
        elif path.startswith('/wallets/') and http_method == 'PUT':
            return handle_update(event, wallet_service)
        elif path.startswith('/wallets/') and http_method == 'DELETE':
            return handle_delete(event, wallet_service)
        else:
            return error_response("Route not found", status_code=404)

    except ExpenseTrackerException as e:
        logger.error(f"Application error: {str(e)}")
        return exception_response(e)
    except Exception as e:
        logger.error(f"Unexpected error: {str(e)}", exc_info=True)
        return server_error_response()


def _path_param(event: Dict[str, Any], name: str) -> str:
    path_params = event.get('pathParameters') or {}
    return validate_object_id(path_params.get(name), name)


def handle_list(event: Dict[str, Any], wallet_service: WalletService) -> Dict[str, Any]:
    query = validate_model(WalletQuery, event.get('queryStringParameters'))

    wallets = wallet_service.list_wallets(query.owner_id)

    return success_response(data={
        'wallets': [Wallet.from_item(item).to_response() for item in wallets],
        'count': len(wallets)
    })


def handle_get(event: Dict[str, Any], wallet_service: WalletService) -> Dict[str, Any]:
    wallet = wallet_service.get_wallet(_path_param(event, 'id'))
    return success_response(data=Wallet.from_item(wallet).to_response())


def handle_create(event: Dict[str, Any], wallet_service: WalletService) -> Dict[str, Any]:
    payload = validate_model(WalletCreate, parse_json_body(event))

    wallet = wallet_service.create_wallet(payload)

    return success_response(
        data=Wallet.from_item(wallet).to_response(),
        message="Wallet created successfully",
        status_code=201
    )


def handle_update(event: Dict[str, Any], wallet_service: WalletService) -> Dict[str, Any]:
    wallet_id = _path_param(event, 'id')
    payload = validate_model(WalletUpdate, require_non_empty(parse_json_body(event)))

    wallet = wallet_service.update_wallet(wallet_id, payload)

    return success_response(
        data=Wallet.from_item(wallet).to_response(),
        message="Wallet updated successfully"
    )


def handle_delete(event: Dict[str, Any], wallet_service: WalletService) -> Dict[str, Any]:
    wallet_service.delete_wallet(_path_param(event, 'id'))
    return no_content_response()


def handle_add_member(event: Dict[str, Any], wallet_service: WalletService) -> Dict[str, Any]:
    wallet_id = _path_param(event, 'id')
    member = validate_model(WalletMember, parse_json_body(event))

    wallet = wallet_service.add_member(wallet_id, member)

    return success_response(data=Wallet.from_item(wallet).to_response())


def handle_remove_member(event: Dict[str, Any], wallet_service: WalletService) -> Dict[str, Any]:
    wallet_id = _path_param(event, 'id')
    user_id = _path_param(event, 'userId')

    wallet = wallet_service.remove_member(wallet_id, user_id)

    return success_response(data=Wallet.from_item(wallet).to_response())
