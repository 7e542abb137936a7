"""
Data layer for the India electricity consumption forecast dashboard.
"""

__version__ = "0.1.0"
