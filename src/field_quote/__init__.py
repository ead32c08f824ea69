"""
Field Quote Package

Quote resolution for field-service operations.
Prices a request using Combo → Tier → Base pipeline with zone surcharges,
zone exceptions and add-ons, or reports that a manual quote is required.
"""

__version__ = "1.0.0"
