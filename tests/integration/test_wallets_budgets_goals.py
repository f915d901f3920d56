"""Integration tests for wallets, budgets and goals against mocked DynamoDB."""

import pytest
import json
import sys
import os

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from expenses.models import ExpenseCreate
from wallets import handler as wallet_handler
from budgets import handler as budget_handler
from goals import handler as goal_handler

OWNER_ID = '65a1b2c3d4e5f60718293a01'
OTHER_OWNER_ID = '65a1b2c3d4e5f60718293a02'
MEMBER_ID = '65a1b2c3d4e5f60718293a03'
WALLET_ID = '65a1b2c3d4e5f60718293a04'
MISSING_ID = 'ffffffffffffffffffffffff'


def call(handler, service, method, path, body=None, query=None, path_params=None):
    event = {
        'httpMethod': method,
        'path': path,
        'body': json.dumps(body) if body is not None else None,
        'queryStringParameters': query,
        'pathParameters': path_params
    }
    response = handler.route_request(event, service)
    return response['statusCode'], json.loads(response['body']) if response['body'] else None


class TestWalletFlow:
    """Test cases for wallet operations."""

    def create(self, wallet_service, **fields):
        status, body = call(wallet_handler, wallet_service, 'POST', '/wallets', body=fields)
        assert status == 201, body
        return body['data']

    def test_create_and_get(self, wallet_service):
        wallet = self.create(
            wallet_service,
            name='Household',
            ownerId=OWNER_ID,
            members=[{'userId': MEMBER_ID, 'role': 'editor'}],
            currency='eur'
        )

        assert wallet['currency'] == 'EUR'
        assert wallet['members'] == [{'userId': MEMBER_ID, 'role': 'editor'}]

        status, body = call(wallet_handler, wallet_service, 'GET', f"/wallets/{wallet['id']}",
                            path_params={'id': wallet['id']})

        assert status == 200
        assert body['data']['name'] == 'Household'

    def test_invalid_role(self, wallet_service):
        status, body = call(wallet_handler, wallet_service, 'POST', '/wallets', body={
            'name': 'Household',
            'ownerId': OWNER_ID,
            'members': [{'userId': MEMBER_ID, 'role': 'admin'}]
        })

        assert status == 400
        assert body['error']['details'][0]['path'] == 'members.0.role'

    def test_list_by_owner_newest_first(self, wallet_service):
        first = self.create(wallet_service, name='First', ownerId=OWNER_ID)
        second = self.create(wallet_service, name='Second', ownerId=OWNER_ID)
        self.create(wallet_service, name='Other', ownerId=OTHER_OWNER_ID)

        status, body = call(wallet_handler, wallet_service, 'GET', '/wallets', query={'ownerId': OWNER_ID})

        assert status == 200
        assert [wallet['id'] for wallet in body['data']['wallets']] == [second['id'], first['id']]

        status, body = call(wallet_handler, wallet_service, 'GET', '/wallets')
        assert body['data']['count'] == 3

    def test_members(self, wallet_service):
        wallet = self.create(wallet_service, name='Trip', ownerId=OWNER_ID)
        members_path = f"/wallets/{wallet['id']}/members"

        status, body = call(wallet_handler, wallet_service, 'POST', members_path,
                            body={'userId': MEMBER_ID}, path_params={'id': wallet['id']})
        assert status == 200
        assert body['data']['members'] == [{'userId': MEMBER_ID, 'role': 'viewer'}]

        # Adding an existing member changes the role
        status, body = call(wallet_handler, wallet_service, 'POST', members_path,
                            body={'userId': MEMBER_ID, 'role': 'editor'}, path_params={'id': wallet['id']})
        assert body['data']['members'] == [{'userId': MEMBER_ID, 'role': 'editor'}]

        status, body = call(wallet_handler, wallet_service, 'DELETE', f"{members_path}/{MEMBER_ID}",
                            path_params={'id': wallet['id'], 'userId': MEMBER_ID})
        assert status == 200
        assert body['data']['members'] == []

    def test_member_on_missing_wallet(self, wallet_service):
        status, _ = call(wallet_handler, wallet_service, 'POST', f"/wallets/{MISSING_ID}/members",
                         body={'userId': MEMBER_ID}, path_params={'id': MISSING_ID})

        assert status == 404

    def test_update_and_delete(self, wallet_service):
        wallet = self.create(wallet_service, name='Trip', ownerId=OWNER_ID)
        path = f"/wallets/{wallet['id']}"

        status, body = call(wallet_handler, wallet_service, 'PUT', path,
                            body={'name': 'Summer trip'}, path_params={'id': wallet['id']})
        assert status == 200
        assert body['data']['name'] == 'Summer trip'
        assert body['data']['ownerId'] == OWNER_ID

        status, _ = call(wallet_handler, wallet_service, 'DELETE', path, path_params={'id': wallet['id']})
        assert status == 204

        status, _ = call(wallet_handler, wallet_service, 'PUT', path,
                         body={'name': 'Again'}, path_params={'id': wallet['id']})
        assert status == 404


class TestBudgetFlow:
    """Test cases for budgets and their usage."""

    @pytest.fixture
    def january_spending(self, expense_service):
        for name, amount, category, date in [
            ('Groceries', 80, 'Food', '2024-01-05'),
            ('Restaurant', 150, 'Food', '2024-01-20'),
            ('Bakery', 30, 'Food', '2024-02-02'),
            ('Train', 100, 'Travel', '2024-01-10')
        ]:
            expense_service.create_expense(ExpenseCreate(
                name=name, amount=amount, category=category, date=date, wallet_id=WALLET_ID
            ))

    def create(self, budget_service, **fields):
        status, body = call(budget_handler, budget_service, 'POST', '/budgets', body=fields)
        assert status == 201, body
        return body['data']

    def test_create_requires_period(self, budget_service):
        status, body = call(budget_handler, budget_service, 'POST', '/budgets',
                            body={'name': 'Food', 'category': 'Food', 'limit': 200})

        assert status == 400
        paths = {detail['path'] for detail in body['error']['details']}
        assert paths == {'periodStart', 'periodEnd'}

    def test_usage(self, budget_service, january_spending):
        self.create(budget_service, name='Food', category='Food', limit=200, walletId=WALLET_ID,
                    periodStart='2024-01-01', periodEnd='2024-01-31')
        self.create(budget_service, name='Travel', category='Travel', limit=0, walletId=WALLET_ID,
                    periodStart='2023-12-01', periodEnd='2023-12-31')

        status, body = call(budget_handler, budget_service, 'GET', '/budgets', query={'includeUsage': 'true'})

        assert status == 200
        food, travel = body['data']['budgets']

        assert food['budget']['category'] == 'Food'
        assert food['spent'] == 230
        assert food['remaining'] == 0
        assert food['utilization'] == pytest.approx(115)

        assert travel['spent'] == 0
        assert travel['utilization'] == 0

    def test_list_without_usage(self, budget_service):
        self.create(budget_service, name='Food', category='Food', limit=200,
                    periodStart='2024-01-01', periodEnd='2024-01-31')

        status, body = call(budget_handler, budget_service, 'GET', '/budgets')

        assert body['data']['count'] == 1
        assert 'spent' not in body['data']['budgets'][0]
        assert body['data']['budgets'][0]['limit'] == 200

    def test_active_on_filter(self, budget_service):
        self.create(budget_service, name='Jan', category='Food', limit=200,
                    periodStart='2024-01-01', periodEnd='2024-01-31')
        self.create(budget_service, name='Feb', category='Food', limit=200,
                    periodStart='2024-02-01', periodEnd='2024-02-29')

        status, body = call(budget_handler, budget_service, 'GET', '/budgets', query={'activeOn': '2024-02-10'})

        assert [budget['name'] for budget in body['data']['budgets']] == ['Feb']

    def test_update_get_delete(self, budget_service):
        budget = self.create(budget_service, name='Food', category='Food', limit=200,
                             periodStart='2024-01-01', periodEnd='2024-01-31')
        path = f"/budgets/{budget['id']}"

        status, body = call(budget_handler, budget_service, 'PUT', path,
                            body={'limit': 250}, path_params={'id': budget['id']})
        assert status == 200
        assert body['data']['limit'] == 250

        status, body = call(budget_handler, budget_service, 'GET', path, path_params={'id': budget['id']})
        assert body['data']['limit'] == 250

        status, _ = call(budget_handler, budget_service, 'DELETE', path, path_params={'id': budget['id']})
        assert status == 204

        status, _ = call(budget_handler, budget_service, 'GET', path, path_params={'id': budget['id']})
        assert status == 404


class TestGoalFlow:
    """Test cases for savings goals."""

    def create(self, goal_service, **fields):
        status, body = call(goal_handler, goal_service, 'POST', '/goals', body=fields)
        assert status == 201, body
        return body['data']

    def adjust(self, goal_service, goal_id, delta):
        return call(goal_handler, goal_service, 'PATCH', f"/goals/{goal_id}/progress",
                    body={'amountDelta': delta}, path_params={'id': goal_id})

    def test_progress(self, goal_service):
        goal = self.create(goal_service, name='Bike', targetAmount=1000, currentAmount=100)

        status, body = self.adjust(goal_service, goal['id'], 50)
        assert status == 200
        assert body['data']['currentAmount'] == 150

        status, body = self.adjust(goal_service, goal['id'], -150)
        assert status == 200
        assert body['data']['currentAmount'] == 0

    def test_overdraw_rejected(self, goal_service):
        goal = self.create(goal_service, name='Bike', targetAmount=1000, currentAmount=100)

        status, body = self.adjust(goal_service, goal['id'], -200)

        assert status == 400
        assert body['error']['details'][0]['path'] == 'amountDelta'

        status, body = call(goal_handler, goal_service, 'GET', f"/goals/{goal['id']}",
                            path_params={'id': goal['id']})
        assert body['data']['currentAmount'] == 100

    def test_adjust_missing_goal(self, goal_service):
        status, _ = self.adjust(goal_service, MISSING_ID, 10)
        assert status == 404

        status, _ = self.adjust(goal_service, MISSING_ID, -10)
        assert status == 404

    def test_list_order_and_active_filter(self, goal_service):
        self.create(goal_service, name='Someday', targetAmount=500)
        self.create(goal_service, name='Car', targetAmount=5000, deadline='2025-06-01')
        self.create(goal_service, name='Phone', targetAmount=800, deadline='2024-12-01')
        self.create(goal_service, name='Done', targetAmount=100, currentAmount=100, deadline='2024-01-01')

        status, body = call(goal_handler, goal_service, 'GET', '/goals')
        assert [goal['name'] for goal in body['data']['goals']] == ['Done', 'Phone', 'Car', 'Someday']

        status, body = call(goal_handler, goal_service, 'GET', '/goals', query={'activeOnly': 'true'})
        assert [goal['name'] for goal in body['data']['goals']] == ['Phone', 'Car', 'Someday']

    def test_update_and_delete(self, goal_service):
        goal = self.create(goal_service, name='Bike', targetAmount=1000)
        path = f"/goals/{goal['id']}"

        status, body = call(goal_handler, goal_service, 'PUT', path,
                            body={'targetAmount': 1200, 'deadline': '2025-01-01'}, path_params={'id': goal['id']})
        assert status == 200
        assert body['data']['targetAmount'] == 1200
        assert body['data']['deadline'] == '2025-01-01T00:00:00.000000Z'

        status, _ = call(goal_handler, goal_service, 'DELETE', path, path_params={'id': goal['id']})
        assert status == 204

        status, _ = call(goal_handler, goal_service, 'DELETE', path, path_params={'id': goal['id']})
        assert status == 404


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
