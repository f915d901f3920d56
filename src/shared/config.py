"""Environment-driven settings shared by all Lambda functions."""

import os
from functools import lru_cache
from typing import Optional


class Settings:
    """Resolved configuration for one Lambda container."""

    def __init__(
        self,
        expenses_table: str,
        wallets_table: str,
        budgets_table: str,
        goals_table: str,
        summary_cache_table: Optional[str],
        summary_cache_ttl: int,
        log_level: str
    ):
        self.expenses_table = expenses_table
        self.wallets_table = wallets_table
        self.budgets_table = budgets_table
        self.goals_table = goals_table
        self.summary_cache_table = summary_cache_table
        self.summary_cache_ttl = summary_cache_ttl
        self.log_level = log_level


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read settings from the environment once per container."""
    return Settings(
        expenses_table=os.environ.get('EXPENSES_TABLE', 'finance-tracker-expenses'),
        wallets_table=os.environ.get('WALLETS_TABLE', 'finance-tracker-wallets'),
        budgets_table=os.environ.get('BUDGETS_TABLE', 'finance-tracker-budgets'),
        goals_table=os.environ.get('GOALS_TABLE', 'finance-tracker-goals'),
        summary_cache_table=os.environ.get('SUMMARY_CACHE_TABLE') or None,
        summary_cache_ttl=int(os.environ.get('SUMMARY_CACHE_TTL_SECONDS', '60')),
        log_level=os.environ.get('LOG_LEVEL', 'INFO')
    )
