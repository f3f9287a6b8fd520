"""
Network commission and wallet settlement engine.

Downline trees, phase classification, multi-level commission settlement,
an append-only wallet ledger and the withdrawal request workflow.
"""

__version__ = "1.0.0"
