"""
Unit tests for the weather impact correlator.
"""

import unittest
from datetime import date
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from fake_client import FakeClient, forecast_frame
from energy_dashboard.aggregation.weather_impact import aggregate_weather_impact, get_weather_impact
from energy_dashboard.data.fetchers import WEATHER_COLUMNS, rows_to_frame
from energy_dashboard.models.data_models import WeatherImpactPoint
from energy_dashboard.utils.exceptions import DataValidationError


def weather_frame(rows):
    return rows_to_frame(rows, WEATHER_COLUMNS)


class TestWeatherImpact(unittest.TestCase):
    """Test cases for the weather impact aggregator."""
    
    def setUp(self):
        """Set up test fixtures."""
        self.weather = weather_frame([
            {'state_id': 'RJ', 'date': '2024-05-01', 'temperature': None, 'humidity': 20.0},
            {'state_id': 'RJ', 'date': '2024-05-02', 'temperature': 41.0, 'humidity': 15.0},
            {'state_id': 'RJ', 'date': '2024-05-03', 'temperature': 39.0, 'humidity': 18.0, 'rainfall': 0.0},
            {'state_id': 'RJ', 'date': '2024-05-03', 'temperature': 40.0, 'humidity': None, 'rainfall': 1.0},
        ])
        self.forecasts = forecast_frame([
            {'state_id': 'RJ', 'date': '2024-05-01', 'predicted_consumption': 500.0},
            {'state_id': 'RJ', 'date': '2024-05-02', 'predicted_consumption': 0.0},
            {'state_id': 'RJ', 'date': '2024-05-03', 'predicted_consumption': 300.0},
            {'state_id': 'GJ', 'date': '2024-05-03', 'predicted_consumption': 200.4},
            {'state_id': 'RJ', 'date': '2024-05-04', 'predicted_consumption': 700.0},
        ])
    
    def test_joined_series(self):
        """Test averaging, summing and the inclusion rules."""
        result = aggregate_weather_impact(self.weather, self.forecasts)
        
        self.assertEqual(result, [WeatherImpactPoint(
            date=date(2024, 5, 3),
            temperature=39.5,
            humidity=18.0,
            wind_speed=None,
            rainfall=0.5,
            consumption=500,
        )])
    
    def test_missing_temperature_excluded(self):
        """Test that a day without temperature is dropped despite consumption."""
        result = aggregate_weather_impact(self.weather, self.forecasts)
        
        self.assertNotIn(date(2024, 5, 1), [p.date for p in result])
    
    def test_zero_consumption_excluded(self):
        """Test that a day with valid weather but no consumption is dropped."""
        result = aggregate_weather_impact(self.weather, self.forecasts)
        
        self.assertNotIn(date(2024, 5, 2), [p.date for p in result])
    
    def test_other_field(self):
        """Test that inclusion follows the analyzed field."""
        result = aggregate_weather_impact(self.weather, self.forecasts, field='humidity')
        
        self.assertEqual([p.date for p in result], [date(2024, 5, 1), date(2024, 5, 3)])
        self.assertIsNone(result[0].temperature)
    
    def test_unknown_field(self):
        """Test that an unknown field is rejected."""
        with self.assertRaises(DataValidationError):
            aggregate_weather_impact(self.weather, self.forecasts, field='pressure')
    
    def test_empty_weather(self):
        """Test that no weather rows yield an empty series."""
        self.assertEqual(aggregate_weather_impact(weather_frame([]), self.forecasts), [])
    
    def test_get_weather_impact_window(self):
        """Test the 30 day window ending yesterday."""
        client = FakeClient({
            'weather_data': [
                {'state_id': 'RJ', 'date': '2024-05-31', 'temperature': 45.0},
                {'state_id': 'RJ', 'date': '2024-05-01', 'temperature': 38.0},
                {'state_id': 'RJ', 'date': '2024-06-01', 'temperature': 46.0},
            ],
            'forecasts': [
                {'id': '1', 'state_id': 'RJ', 'date': '2024-05-31', 'predicted_consumption': 610.0},
                {'id': '2', 'state_id': 'RJ', 'date': '2024-05-01', 'predicted_consumption': 520.0},
                {'id': '3', 'state_id': 'RJ', 'date': '2024-06-01', 'predicted_consumption': 640.0},
            ],
        })
        
        result = get_weather_impact(client, 'RJ', reference_day=date(2024, 6, 1))
        
        self.assertEqual([(p.date, p.consumption) for p in result], [(date(2024, 5, 31), 610)])
        _, _, filters = client.calls_to('weather_data')[0]
        self.assertIn(('date', 'gte', date(2024, 5, 2)), filters)
        self.assertIn(('date', 'lte', date(2024, 5, 31)), filters)


if __name__ == '__main__':
    unittest.main()
