"""Marketplace storefront checkout"""

__version__ = "1.0.0"
