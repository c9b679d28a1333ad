"""
Transactions module.

Validates submissions, appends them to the ledger and deducts catalog stock.
The HTTP surface lives in `router.py` and is mounted by `shoplog.main`.
"""
