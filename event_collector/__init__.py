"""
Event Collector

An API for collecting, validating, enriching and querying analytics events.
"""

__version__ = "1.0.0"
