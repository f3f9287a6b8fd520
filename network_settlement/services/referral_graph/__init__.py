"""Referral graph access and sponsor assignment."""

from network_settlement.services.referral_graph.graph_store import (
    ReferralGraphStore,
    SqlReferralGraphStore,
)
from network_settlement.services.referral_graph.sponsor_registry import (
    ChainValidation,
    SponsorRegistry,
)

__all__ = [
    "ChainValidation",
    "ReferralGraphStore",
    "SponsorRegistry",
    "SqlReferralGraphStore",
]
