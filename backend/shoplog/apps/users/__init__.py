"""
Users module.

Known user names, derived from the ledger or read from a dedicated table.
"""

from . import models  # noqa: F401
