"""
greenlight: persistence and identity core for a movie catalogue JSON API.
"""

__version__ = "1.0.0"
