"""
Catalog module.

Sellable items with their price and current stock.
"""

from . import models  # noqa: F401
