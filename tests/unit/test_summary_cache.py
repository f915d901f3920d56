"""Unit tests for the summary cache."""

import json
import pytest
from unittest.mock import Mock
from datetime import datetime, timezone
import sys
import os

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from expenses.cache import SummaryCache, build_cache_key
from expenses.models import ExpenseFilters, ExpenseSummary
from shared.exceptions import DatabaseError


class TestBuildCacheKey:
    """Test cases for build_cache_key."""

    def test_empty_filters(self):
        assert build_cache_key(ExpenseFilters()) == 'summary:{}'

    def test_list_order_does_not_matter(self):
        first = build_cache_key(ExpenseFilters(categories=['Travel', 'Food']))
        second = build_cache_key(ExpenseFilters(categories=['Food', 'Travel']))

        assert first == second

    def test_different_filters_differ(self):
        first = build_cache_key(ExpenseFilters(categories=['Food']))
        second = build_cache_key(ExpenseFilters(categories=['Travel']))

        assert first != second

    def test_dates_use_wire_names(self):
        key = build_cache_key(ExpenseFilters(from_date=datetime(2024, 1, 1, tzinfo=timezone.utc)))

        assert '"from"' in key
        assert 'from_date' not in key


class TestSummaryCache:
    """Test cases for SummaryCache with a mocked table."""

    @pytest.fixture
    def table(self):
        return Mock()

    @pytest.fixture
    def cache(self, table):
        return SummaryCache(table, ttl_seconds=60, clock=lambda: 1000.0)

    def test_set_writes_expiry(self, cache, table):
        cache.set(ExpenseFilters(), ExpenseSummary(total_amount=10, total_count=1))

        item = table.put_item.call_args[0][0]
        assert item['namespace'] == 'summary'
        assert item['filter_key'] == 'summary:{}'
        assert item['expires_at'] == 1060
        assert json.loads(item['payload'])['totalAmount'] == 10

    def test_hit(self, cache, table):
        summary = ExpenseSummary(total_amount=10, total_count=1)
        table.get_item.return_value = {
            'filter_key': 'summary:{}',
            'payload': json.dumps(summary.to_response()),
            'expires_at': 1060
        }

        assert cache.get(ExpenseFilters()) == summary

    def test_expired_entry_is_a_miss(self, cache, table):
        table.get_item.return_value = {
            'filter_key': 'summary:{}',
            'payload': json.dumps(ExpenseSummary().to_response()),
            'expires_at': 1000
        }

        assert cache.get(ExpenseFilters()) is None

    def test_unreadable_payload_is_a_miss(self, cache, table):
        table.get_item.return_value = {
            'filter_key': 'summary:{}',
            'payload': json.dumps({'totalAmount': 'x'}),
            'expires_at': 1060
        }

        assert cache.get(ExpenseFilters()) is None

    def test_malformed_json_payload_is_a_miss(self, cache, table):
        table.get_item.return_value = {
            'filter_key': 'summary:{}',
            'payload': '{"totalAmount": ',
            'expires_at': 1060
        }

        assert cache.get(ExpenseFilters()) is None

    def test_entry_lives_full_ttl_from_fractional_write_time(self, table):
        clock = Mock(return_value=1000.9)
        cache = SummaryCache(table, ttl_seconds=60, clock=clock)
        summary = ExpenseSummary(total_amount=10, total_count=1)

        cache.set(ExpenseFilters(), summary)
        table.get_item.return_value = table.put_item.call_args[0][0]

        clock.return_value = 1060.4
        assert cache.get(ExpenseFilters()) == summary

        clock.return_value = 1061.0
        assert cache.get(ExpenseFilters()) is None

    def test_read_failure_is_a_miss(self, cache, table):
        table.get_item.side_effect = DatabaseError("boom")

        assert cache.get(ExpenseFilters()) is None

    def test_write_failure_is_ignored(self, cache, table):
        table.put_item.side_effect = DatabaseError("boom")

        cache.set(ExpenseFilters(), ExpenseSummary())

    def test_invalidate_all(self, cache, table):
        table.query_all.return_value = [
            {'namespace': 'summary', 'cache_key': 'k1', 'payload': '{}'},
            {'namespace': 'summary', 'cache_key': 'k2', 'payload': '{}'}
        ]

        assert cache.invalidate_all() == 2
        table.batch_delete.assert_called_once_with([
            {'namespace': 'summary', 'cache_key': 'k1'},
            {'namespace': 'summary', 'cache_key': 'k2'}
        ])

    def test_invalidate_failure_is_ignored(self, cache, table):
        table.query_all.side_effect = DatabaseError("boom")

        assert cache.invalidate_all() == 0


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
