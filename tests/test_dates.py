"""
Unit tests for calendar-date normalization.
"""

import unittest
from datetime import date, datetime, timezone
import pandas as pd
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from energy_dashboard.utils.dates import (
    normalize_date_column, to_calendar_date, today, trailing_window
)


class TestCalendarDates(unittest.TestCase):
    """Test cases for date normalization."""
    
    def test_date_only_string(self):
        """Test plain ISO dates."""
        self.assertEqual(to_calendar_date('2024-01-15', 'Asia/Kolkata'), date(2024, 1, 15))
    
    def test_offset_timestamp_is_converted(self):
        """Test that the same instant maps to the reference timezone's day."""
        self.assertEqual(to_calendar_date('2024-01-14T20:00:00Z', 'Asia/Kolkata'), date(2024, 1, 15))
        self.assertEqual(to_calendar_date('2024-01-14T20:00:00Z', 'UTC'), date(2024, 1, 14))
        self.assertEqual(to_calendar_date('2024-01-15T01:30:00+05:30', 'Asia/Kolkata'), date(2024, 1, 15))
    
    def test_naive_timestamp_kept_as_local(self):
        """Test that naive timestamps are read in the reference timezone."""
        self.assertEqual(to_calendar_date('2024-01-15T23:59:00', 'Asia/Kolkata'), date(2024, 1, 15))
    
    def test_python_values(self):
        """Test date and datetime inputs."""
        self.assertEqual(to_calendar_date(date(2024, 3, 1)), date(2024, 3, 1))
        aware = datetime(2024, 3, 1, 22, 0, tzinfo=timezone.utc)
        self.assertEqual(to_calendar_date(aware, 'Asia/Kolkata'), date(2024, 3, 2))
    
    def test_invalid_values(self):
        """Test that missing and malformed values become None."""
        self.assertIsNone(to_calendar_date(None))
        self.assertIsNone(to_calendar_date('not-a-date'))
        self.assertIsNone(to_calendar_date(float('nan')))
        self.assertIsNone(to_calendar_date('2024-13-45'))
    
    def test_normalize_date_column(self):
        """Test column normalization."""
        data = pd.DataFrame({'date': ['2024-01-01', 'garbage', None]})
        normalize_date_column(data, 'date', 'Asia/Kolkata')
        
        self.assertEqual(data['date'].tolist(), [date(2024, 1, 1), None, None])
    
    def test_trailing_window(self):
        """Test trailing windows ending yesterday or today."""
        self.assertEqual(trailing_window(date(2024, 1, 31), 30), (date(2024, 1, 1), date(2024, 1, 30)))
        self.assertEqual(trailing_window(date(2024, 1, 31), 7, include_reference=True),
                         (date(2024, 1, 25), date(2024, 1, 31)))
    
    def test_today(self):
        """Test that today returns a calendar date."""
        self.assertIsInstance(today('Asia/Kolkata'), date)


if __name__ == '__main__':
    unittest.main()
