"""
Ledger module.

Append-only log of who took what, how many, and for how much.
"""

from . import models  # noqa: F401
