"""Shared fixtures: moto-backed DynamoDB tables and wired services."""

import os
import sys

import boto3
import pytest
from moto import mock_aws

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from shared.dynamodb import DynamoDBClient
from expenses.cache import SummaryCache
from expenses.service import ExpenseService
from wallets.service import WalletService
from budgets.service import BudgetService
from goals.service import GoalService


class FakeClock:
    """Settable epoch clock for TTL tests."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _simple_table(dynamodb, name, key):
    return dynamodb.create_table(
        TableName=name,
        KeySchema=[{'AttributeName': key, 'KeyType': 'HASH'}],
        AttributeDefinitions=[{'AttributeName': key, 'AttributeType': 'S'}],
        BillingMode='PAY_PER_REQUEST'
    )


@pytest.fixture
def aws_credentials():
    """Mock AWS Credentials for moto."""
    os.environ['AWS_ACCESS_KEY_ID'] = 'testing'
    os.environ['AWS_SECRET_ACCESS_KEY'] = 'testing'
    os.environ['AWS_SECURITY_TOKEN'] = 'testing'
    os.environ['AWS_SESSION_TOKEN'] = 'testing'
    os.environ['AWS_DEFAULT_REGION'] = 'us-east-1'
    os.environ['USE_LOCALSTACK'] = 'false'


@pytest.fixture
def dynamodb(aws_credentials):
    """Create mock DynamoDB with every table the services use."""
    with mock_aws():
        resource = boto3.resource('dynamodb', region_name='us-east-1')

        _simple_table(resource, 'test-expenses', 'expense_id')
        _simple_table(resource, 'test-budgets', 'budget_id')
        _simple_table(resource, 'test-goals', 'goal_id')

        resource.create_table(
            TableName='test-wallets',
            KeySchema=[{'AttributeName': 'wallet_id', 'KeyType': 'HASH'}],
            AttributeDefinitions=[
                {'AttributeName': 'wallet_id', 'AttributeType': 'S'},
                {'AttributeName': 'owner_id', 'AttributeType': 'S'},
                {'AttributeName': 'created_at', 'AttributeType': 'S'}
            ],
            BillingMode='PAY_PER_REQUEST',
            GlobalSecondaryIndexes=[
                {
                    'IndexName': 'owner-index',
                    'KeySchema': [
                        {'AttributeName': 'owner_id', 'KeyType': 'HASH'},
                        {'AttributeName': 'created_at', 'KeyType': 'RANGE'}
                    ],
                    'Projection': {'ProjectionType': 'ALL'}
                }
            ]
        )

        resource.create_table(
            TableName='test-summary-cache',
            KeySchema=[
                {'AttributeName': 'namespace', 'KeyType': 'HASH'},
                {'AttributeName': 'cache_key', 'KeyType': 'RANGE'}
            ],
            AttributeDefinitions=[
                {'AttributeName': 'namespace', 'AttributeType': 'S'},
                {'AttributeName': 'cache_key', 'AttributeType': 'S'}
            ],
            BillingMode='PAY_PER_REQUEST'
        )

        yield resource


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def expenses_table(dynamodb):
    return DynamoDBClient('test-expenses', resource=dynamodb)


@pytest.fixture
def summary_cache(dynamodb, clock):
    return SummaryCache(DynamoDBClient('test-summary-cache', resource=dynamodb), ttl_seconds=60, clock=clock)


@pytest.fixture
def expense_service(expenses_table, summary_cache):
    return ExpenseService(expenses_table, summary_cache)


@pytest.fixture
def wallet_service(dynamodb):
    return WalletService(DynamoDBClient('test-wallets', resource=dynamodb))


@pytest.fixture
def budget_service(dynamodb, expenses_table):
    return BudgetService(DynamoDBClient('test-budgets', resource=dynamodb), expenses_table)


@pytest.fixture
def goal_service(dynamodb):
    return GoalService(DynamoDBClient('test-goals', resource=dynamodb))
