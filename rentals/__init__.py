"""
Vehicle rental search and reputation service.

Ranks vehicles and suppliers by distance from a pickup point and keeps
vehicle and supplier ratings in step with moderated reviews.
"""

__version__ = "1.0.0"
