"""
Custom exceptions for the consumption dashboard data layer.
"""

from typing import Optional


class ConsumptionDashboardError(Exception):
    """Base exception for the consumption dashboard."""
    pass


class DataSourceError(ConsumptionDashboardError):
    """Exception raised when a query against the remote data source fails."""

    def __init__(self, message: str, table: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.table = table
        self.status_code = status_code


class ConfigurationError(ConsumptionDashboardError):
    """Exception raised for missing or invalid configuration."""
    pass


class DataValidationError(ConsumptionDashboardError):
    """Exception raised when an aggregator receives an unusable argument."""
    pass
