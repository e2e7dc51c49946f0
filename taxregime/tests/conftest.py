"""
Shared fixtures for the taxregime test suite.

Rule tables are immutable module-level data, so the fixtures simply hand out
the shared instances.
"""
import pytest

from taxregime.evaluator.rules import RuleTable, get_rule_table
from taxregime.tests.fakes import FakeRedis


@pytest.fixture
def rules_2024() -> RuleTable:
    return get_rule_table("2024-25")


@pytest.fixture
def rules_2025() -> RuleTable:
    return get_rule_table("2025-26")


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()
