"""DynamoDB utilities and helper functions."""

import os
import boto3
from typing import Any, Dict, List, Optional, Tuple
from decimal import Decimal
from botocore.exceptions import BotoCoreError, ClientError
import logging

from .exceptions import DatabaseError, NotFoundError

logger = logging.getLogger(__name__)


class DynamoDBClient:
    """DynamoDB client wrapper with common operations."""

    def __init__(self, table_name: str, resource: Optional[Any] = None):
        """
        Initialize DynamoDB client.

        Args:
            table_name: Name of the DynamoDB table
            resource: Optional pre-built boto3 DynamoDB resource
        """
        self.table_name = table_name

        if resource is not None:
            self.dynamodb = resource
        else:
            # Support for LocalStack
            endpoint_url = os.environ.get('LOCALSTACK_ENDPOINT')
            if endpoint_url and os.environ.get('USE_LOCALSTACK', 'false').lower() == 'true':
                self.dynamodb = boto3.resource('dynamodb', endpoint_url=endpoint_url)
            else:
                self.dynamodb = boto3.resource('dynamodb')

        self.table = self.dynamodb.Table(table_name)

    def put_item(self, item: Dict[str, Any]) -> Dict[str, Any]:
        """
        Put an item in the table.

        Attributes whose value is None are not written.

        Args:
            item: Item to put

        Returns:
            The item that was put, in Python format

        Raises:
            DatabaseError: If the operation fails
        """
        try:
            item = {k: v for k, v in item.items() if v is not None}
            # Convert floats to Decimal for DynamoDB
            self.table.put_item(Item=self._python_to_dynamodb(item))
            return item
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error putting item: {e}")
            raise DatabaseError(f"Failed to put item: {str(e)}")

    def get_item(self, key: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Get an item from the table.

        Args:
            key: Primary key of the item

        Returns:
            The item if found, None otherwise

        Raises:
            DatabaseError: If the operation fails
        """
        try:
            response = self.table.get_item(Key=key)
            item = response.get('Item')
            if item:
                return self._dynamodb_to_python(item)
            return None
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error getting item: {e}")
            raise DatabaseError(f"Failed to get item: {str(e)}")

    def update_item(
        self,
        key: Dict[str, Any],
        update_expression: str,
        expression_values: Optional[Dict[str, Any]] = None,
        expression_names: Optional[Dict[str, str]] = None,
        condition_expression: Optional[Any] = None,
        not_found_message: str = "Resource not found"
    ) -> Dict[str, Any]:
        """
        Update an item in the table.

        Args:
            key: Primary key of the item
            update_expression: Update expression
            expression_values: Optional expression attribute values
            expression_names: Optional expression attribute names
            condition_expression: Optional condition the stored item must meet
            not_found_message: Message used when the condition fails

        Returns:
            Updated item

        Raises:
            NotFoundError: If the condition fails
            DatabaseError: If the operation fails
        """
        try:
            kwargs = {
                'Key': key,
                'UpdateExpression': update_expression,
                'ReturnValues': 'ALL_NEW'
            }

            if expression_values:
                kwargs['ExpressionAttributeValues'] = self._python_to_dynamodb(expression_values)
            if expression_names:
                kwargs['ExpressionAttributeNames'] = expression_names
            if condition_expression is not None:
                kwargs['ConditionExpression'] = condition_expression

            response = self.table.update_item(**kwargs)
            return self._dynamodb_to_python(response['Attributes'])
        except (ClientError, BotoCoreError) as e:
            if self._is_condition_failure(e):
                raise NotFoundError(not_found_message)
            logger.error(f"Error updating item: {e}")
            raise DatabaseError(f"Failed to update item: {str(e)}")

    def delete_item(
        self,
        key: Dict[str, Any],
        condition_expression: Optional[Any] = None,
        not_found_message: str = "Resource not found"
    ) -> None:
        """
        Delete an item from the table.

        Args:
            key: Primary key of the item
            condition_expression: Optional condition the stored item must meet
            not_found_message: Message used when the condition fails

        Raises:
            NotFoundError: If the condition fails
            DatabaseError: If the operation fails
        """
        try:
            kwargs = {'Key': key}
            if condition_expression is not None:
                kwargs['ConditionExpression'] = condition_expression
            self.table.delete_item(**kwargs)
        except (ClientError, BotoCoreError) as e:
            if self._is_condition_failure(e):
                raise NotFoundError(not_found_message)
            logger.error(f"Error deleting item: {e}")
            raise DatabaseError(f"Failed to delete item: {str(e)}")

    def query(
        self,
        key_condition_expression: Any,
        filter_expression: Optional[Any] = None,
        index_name: Optional[str] = None,
        scan_forward: bool = True,
        exclusive_start_key: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Query items from the table.

        Args:
            key_condition_expression: Key condition expression
            filter_expression: Optional filter expression
            index_name: Optional index name
            scan_forward: Sort order (default: True for ascending)
            exclusive_start_key: Optional pagination key

        Returns:
            Dictionary with items and optional LastEvaluatedKey

        Raises:
            DatabaseError: If the operation fails
        """
        try:
            kwargs = {
                'KeyConditionExpression': key_condition_expression,
                'ScanIndexForward': scan_forward
            }

            if filter_expression is not None:
                kwargs['FilterExpression'] = filter_expression
            if index_name:
                kwargs['IndexName'] = index_name
            if exclusive_start_key:
                kwargs['ExclusiveStartKey'] = exclusive_start_key

            response = self.table.query(**kwargs)

            return {
                'items': [self._dynamodb_to_python(item) for item in response.get('Items', [])],
                'last_evaluated_key': response.get('LastEvaluatedKey')
            }
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error querying items: {e}")
            raise DatabaseError(f"Failed to query items: {str(e)}")

    def query_all(
        self,
        key_condition_expression: Any,
        filter_expression: Optional[Any] = None,
        index_name: Optional[str] = None,
        scan_forward: bool = True
    ) -> List[Dict[str, Any]]:
        """Query every page and return the concatenated items."""
        items = []
        last_key = None

        while True:
            result = self.query(
                key_condition_expression=key_condition_expression,
                filter_expression=filter_expression,
                index_name=index_name,
                scan_forward=scan_forward,
                exclusive_start_key=last_key
            )

            items.extend(result['items'])
            last_key = result.get('last_evaluated_key')

            if not last_key:
                break

        return items

    def scan(
        self,
        filter_expression: Optional[Any] = None,
        exclusive_start_key: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Scan items from the table.

        Args:
            filter_expression: Optional filter expression
            exclusive_start_key: Optional pagination key

        Returns:
            Dictionary with items and optional LastEvaluatedKey

        Raises:
            DatabaseError: If the operation fails
        """
        try:
            kwargs = {}

            if filter_expression is not None:
                kwargs['FilterExpression'] = filter_expression
            if exclusive_start_key:
                kwargs['ExclusiveStartKey'] = exclusive_start_key

            response = self.table.scan(**kwargs)

            return {
                'items': [self._dynamodb_to_python(item) for item in response.get('Items', [])],
                'last_evaluated_key': response.get('LastEvaluatedKey')
            }
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error scanning items: {e}")
            raise DatabaseError(f"Failed to scan items: {str(e)}")

    def scan_all(self, filter_expression: Optional[Any] = None) -> List[Dict[str, Any]]:
        """
        Scan every page of the table.

        DynamoDB applies Limit before filtering, so callers that need a
        bounded result must read all matching pages and slice afterwards.

        Args:
            filter_expression: Optional filter expression

        Returns:
            All matching items
        """
        items = []
        last_key = None

        while True:
            result = self.scan(
                filter_expression=filter_expression,
                exclusive_start_key=last_key
            )

            items.extend(result['items'])
            last_key = result.get('last_evaluated_key')

            if not last_key:
                break

        return items

    def batch_delete(self, keys: List[Dict[str, Any]]) -> None:
        """
        Batch delete items from the table.

        Args:
            keys: Primary keys of the items to delete

        Raises:
            DatabaseError: If the operation fails
        """
        try:
            with self.table.batch_writer() as batch:
                for key in keys:
                    batch.delete_item(Key=key)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error batch deleting items: {e}")
            raise DatabaseError(f"Failed to batch delete items: {str(e)}")

    @staticmethod
    def _is_condition_failure(error: Exception) -> bool:
        if not isinstance(error, ClientError):
            return False
        return error.response.get('Error', {}).get('Code') == 'ConditionalCheckFailedException'

    @staticmethod
    def _python_to_dynamodb(obj: Any) -> Any:
        """Convert Python objects to DynamoDB compatible format."""
        if isinstance(obj, dict):
            return {k: DynamoDBClient._python_to_dynamodb(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [DynamoDBClient._python_to_dynamodb(item) for item in obj]
        elif isinstance(obj, float):
            return Decimal(str(obj))
        return obj

    @staticmethod
    def _dynamodb_to_python(obj: Any) -> Any:
        """Convert DynamoDB objects to Python format."""
        if isinstance(obj, dict):
            return {k: DynamoDBClient._dynamodb_to_python(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [DynamoDBClient._dynamodb_to_python(item) for item in obj]
        elif isinstance(obj, Decimal):
            if obj % 1 == 0:
                return int(obj)
            return float(obj)
        return obj


def build_set_expression(updates: Dict[str, Any]) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
    """
    Build a SET update expression for the given attribute values.

    Args:
        updates: Attribute name to new value

    Returns:
        Update expression, expression attribute names, expression attribute values
    """
    update_parts = []
    expr_values = {}
    expr_names = {}

    for key, value in updates.items():
        update_parts.append(f"#{key} = :{key}")
        expr_names[f'#{key}'] = key
        expr_values[f':{key}'] = value

    return "SET " + ", ".join(update_parts), expr_names, expr_values
