"""
Configuration package for the rental service.

Holds environment settings, logging and the Redis connection factory.
"""

from rentals.config.settings import settings, get_settings

__all__ = ['settings', 'get_settings']
