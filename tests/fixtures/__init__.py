"""Test fixtures and fake collaborators for the journal tests"""

from .fakes import FakeMarketData, FakeOrderRepository, FakeTrendRepository, make_trend

__all__ = [
    'FakeMarketData',
    'FakeOrderRepository',
    'FakeTrendRepository',
    'make_trend',
]
