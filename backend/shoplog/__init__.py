# backend/shoplog/__init__.py
"""
Shop logger backend.

Records who took what, how many, and for how much into an append-only
ledger, keeps catalog stock in step, and serves the user and item lists a
client form needs.

The model classes live in shoplog/apps/*/models.py.
"""
