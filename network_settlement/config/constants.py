"""
Business logic constants for the settlement engine.

Central location for default business rules. Values here are defaults only;
settings and administrator-owned tables override them at runtime.
"""

from decimal import Decimal

# Downline tree depth (levels below the root)
DEFAULT_TREE_DEPTH = 10

# Upline levels eligible for a cut of an order
DEFAULT_COMMISSION_DEPTH = 10

# Share of an order that may be distributed as commissions (1 = 100%)
DEFAULT_MAX_PAYOUT_RATIO = Decimal("1")

# Phase tier thresholds
PHASE1_MIN_DIRECT_ACTIVE = 2
PHASE2_MIN_SECOND_LEVEL_TOTAL = 4
PHASE3_MIN_BRANCH_SECOND_LEVEL = 2

# Payment requests expire if unresolved after this many hours
PAYMENT_REQUEST_TTL_HOURS = 24

# Withdrawal allowances (cents)
DEFAULT_SINGLE_WITHDRAWAL_LIMIT_CENTS = 500_000  # $5,000
DEFAULT_DAILY_WITHDRAWAL_LIMIT_CENTS = 1_000_000  # $10,000
DEFAULT_MONTHLY_WITHDRAWAL_LIMIT_CENTS = 5_000_000  # $50,000

# Upline walk guard used by chain integrity checks
MAX_CHAIN_VALIDATION_DEPTH = 50

# created_by of ledger entries written by the engine itself
SYSTEM_ACTOR = "system"

# Dramatiq actor time limits (milliseconds)
DRAMATIQ_TIME_LIMIT_SHORT = 60_000  # 1 minute
DRAMATIQ_TIME_LIMIT_STANDARD = 300_000  # 5 minutes

# pg_advisory_xact_lock key serializing sponsor reference writes
SPONSOR_WRITE_LOCK_KEY = 7_240_001
