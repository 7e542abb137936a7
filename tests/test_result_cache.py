"""
Unit tests for the aggregate result cache.
"""

import unittest
from datetime import date, timedelta
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from energy_dashboard.api.result_cache import CacheKey, ResultCache
from energy_dashboard.utils.exceptions import DataSourceError


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestResultCache(unittest.TestCase):
    """Test cases for ResultCache."""
    
    def setUp(self):
        """Set up test fixtures."""
        self.clock = FakeClock()
        self.cache = ResultCache(ttl_seconds=60, clock=self.clock)
        self.key = CacheKey('dashboard_stats', 'MH', date(2024, 1, 15))
    
    def test_get_or_compute_caches(self):
        """Test that a computed value is reused."""
        calls = []
        
        def compute():
            calls.append(1)
            return [1, 2, 3]
        
        self.assertEqual(self.cache.get_or_compute(self.key, compute), [1, 2, 3])
        self.assertEqual(self.cache.get_or_compute(self.key, compute), [1, 2, 3])
        self.assertEqual(len(calls), 1)
        self.assertEqual(self.cache.get_stats()['hits'], 1)
        self.assertEqual(self.cache.get_stats()['misses'], 1)
    
    def test_empty_results_are_cached(self):
        """Test that an empty list is a cached value, not a miss."""
        self.cache.set(self.key, [])
        
        self.assertEqual(self.cache.get(self.key, default='missing'), [])
    
    def test_expiry(self):
        """Test TTL expiry."""
        self.cache.set(self.key, 'value')
        self.clock.now += 61
        
        self.assertIsNone(self.cache.get(self.key))
        self.assertEqual(len(self.cache), 0)
    
    def test_expired_windows_are_evicted(self):
        """Test that entries of past days do not accumulate."""
        for offset in range(50):
            key = CacheKey('regional_consumption', None, date(2024, 1, 1) + timedelta(days=offset))
            self.cache.get_or_compute(key, lambda: offset)
            self.clock.now += 24 * 60 * 60
    
        self.assertEqual(len(self.cache), 1)
    
    def test_live_entries_survive_eviction(self):
        """Test that storing a result keeps unexpired entries."""
        self.cache.set(self.key, 'fresh')
        self.clock.now += 30
        self.cache.set(CacheKey('dashboard_stats', 'KA', date(2024, 1, 15)), 'other')
    
        self.assertEqual(self.cache.get(self.key), 'fresh')
        self.assertEqual(len(self.cache), 2)
    
    def test_failures_not_cached(self):
        """Test that a failed computation leaves no entry behind."""
        def failing():
            raise DataSourceError("timeout", table='forecasts')
        
        with self.assertRaises(DataSourceError):
            self.cache.get_or_compute(self.key, failing)
        
        self.assertEqual(len(self.cache), 0)
        self.assertEqual(self.cache.get_or_compute(self.key, lambda: 'ok'), 'ok')
    
    def test_date_window_is_part_of_key(self):
        """Test that a new calendar day misses."""
        self.cache.set(self.key, 'yesterday')
        
        tomorrow = CacheKey('dashboard_stats', 'MH', date(2024, 1, 16))
        self.assertIsNone(self.cache.get(tomorrow))
    
    def test_invalidate(self):
        """Test selective invalidation."""
        self.cache.set(CacheKey('dashboard_stats', 'MH', 1), 'a')
        self.cache.set(CacheKey('dashboard_stats', 'KA', 1), 'b')
        self.cache.set(CacheKey('holiday_comparison', 'MH', 1), 'c')
        self.cache.set(CacheKey('regional_consumption', None, 1), 'd')
        
        self.assertEqual(self.cache.invalidate(state_id='MH'), 2)
        self.assertEqual(self.cache.invalidate(aggregator='dashboard_stats'), 1)
        self.assertEqual(len(self.cache), 1)
        self.assertEqual(self.cache.invalidate(), 1)
    
    def test_clear(self):
        """Test clearing the cache."""
        self.cache.set(self.key, 'value')
        self.cache.clear()
        
        self.assertEqual(len(self.cache), 0)


if __name__ == '__main__':
    unittest.main()
