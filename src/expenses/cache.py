"""Summary cache backed by a DynamoDB table with TTL."""

import hashlib
import json
import logging
import math
import time
from typing import Callable, Optional

from boto3.dynamodb.conditions import Key
from pydantic import ValidationError as PydanticValidationError

from shared.dynamodb import DynamoDBClient
from shared.exceptions import DatabaseError
from expenses.models import ExpenseFilters, ExpenseSummary

logger = logging.getLogger(__name__)

SUMMARY_NAMESPACE = 'summary'
DEFAULT_TTL_SECONDS = 60


def build_cache_key(filters: ExpenseFilters) -> str:
    """
    Stable key for a set of filter criteria.

    Unset criteria are dropped and list criteria are sorted, so filters that
    differ only in list order share a key.
    """
    normalized = filters.model_dump(by_alias=True, exclude_none=True, mode='json')
    for field in ('categories', 'tags'):
        if field in normalized:
            normalized[field] = sorted(normalized[field])

    return f"{SUMMARY_NAMESPACE}:{json.dumps(normalized, sort_keys=True, separators=(',', ':'))}"


class SummaryCache:
    """
    Memoizes summaries per filter key.

    Table layout: partition key `namespace`, sort key `cache_key` (SHA-256 of
    the filter key), `expires_at` as the table's TTL attribute. DynamoDB
    deletes expired items lazily, so expiry is also checked on read.

    Failures never propagate: a broken cache behaves like an empty one.
    """

    def __init__(
        self,
        table: DynamoDBClient,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize summary cache.

        Args:
            table: Cache table client
            ttl_seconds: Entry lifetime from write
            clock: Source of the current epoch time
        """
        self.table = table
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    @staticmethod
    def _item_key(cache_key: str) -> dict:
        return {
            'namespace': SUMMARY_NAMESPACE,
            'cache_key': hashlib.sha256(cache_key.encode('utf-8')).hexdigest()
        }

    def get(self, filters: ExpenseFilters) -> Optional[ExpenseSummary]:
        """Return the cached summary for these filters, or None on miss."""
        cache_key = build_cache_key(filters)

        try:
            item = self.table.get_item(self._item_key(cache_key))
        except DatabaseError as e:
            logger.warning(f"Summary cache read failed, recomputing: {e}")
            return None

        if not item or item.get('filter_key') != cache_key or not item.get('payload'):
            return None

        if item.get('expires_at', 0) <= self.clock():
            return None

        try:
            return ExpenseSummary.model_validate_json(item['payload'])
        except PydanticValidationError as e:
            logger.warning(f"Discarding unreadable cached summary: {e}")
            return None

    def set(self, filters: ExpenseFilters, summary: ExpenseSummary) -> None:
        """Store a summary for these filters."""
        cache_key = build_cache_key(filters)

        try:
            self.table.put_item({
                **self._item_key(cache_key),
                'filter_key': cache_key,
                'payload': json.dumps(summary.to_response()),
                'expires_at': math.ceil(self.clock() + self.ttl_seconds)
            })
        except DatabaseError as e:
            logger.warning(f"Summary cache write failed: {e}")

    def invalidate_all(self) -> int:
        """
        Drop every cached summary.

        Returns:
            Number of entries removed
        """
        try:
            items = self.table.query_all(
                key_condition_expression=Key('namespace').eq(SUMMARY_NAMESPACE)
            )
            keys = [{'namespace': item['namespace'], 'cache_key': item['cache_key']} for item in items]
            if keys:
                self.table.batch_delete(keys)
        except DatabaseError as e:
            logger.warning(f"Summary cache invalidation failed: {e}")
            return 0

        logger.info(f"Invalidated {len(keys)} cached summaries")
        return len(keys)
