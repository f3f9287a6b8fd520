"""
Standard type definitions for database models.

Provides consistent types for monetary, rate and identifier fields across
all models.
"""

from sqlalchemy import BigInteger, Integer, Numeric, String

# Money is stored as integer cents
# Range: +/- 92,233,720,368,547,758.07 USD
CentsType = BigInteger

# Commission rates as exact decimals in [0, 1]
# Precision: 6 digits total, 4 after decimal point (e.g. 0.0525 = 5.25%)
RateType = Numeric(6, 4)

# Member identifiers (UUID strings from the identity provider)
MemberIdType = String(36)

# Surrogate keys for append-only tables. SQLite only autoincrements INTEGER
# primary keys, so BIGINT degrades to INTEGER there.
SurrogateKeyType = BigInteger().with_variant(Integer, "sqlite")
