"""
Phase plan.

Versioned, immutable compensation configuration passed into computations at
call time. Two computations with equal plan versions used equal inputs.
"""

import hashlib
import json
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from network_settlement.config.settings import settings
from network_settlement.repositories.phase_repository import PhaseTierRepository
from network_settlement.utils.exceptions import ConfigurationInvalid


class PhaseTierConfig(BaseModel):
    """Configuration of one tier."""

    model_config = ConfigDict(frozen=True)

    tier: int = Field(ge=0)
    commission_rate: Decimal = Field(ge=0, le=1)
    credit_cents: int = Field(default=0, ge=0)
    free_product_value_cents: int = Field(default=0, ge=0)

    @field_validator("commission_rate", mode="before")
    @classmethod
    def reject_float_rate(cls, v: object) -> object:
        """Rates must arrive as Decimal, int or str."""
        if isinstance(v, float):
            raise ValueError("commission_rate must not be a float")
        return v

    @field_validator("commission_rate")
    @classmethod
    def normalize_rate(cls, v: Decimal) -> Decimal:
        """Drop trailing zeros so 0.1000 and 0.1 hash the same."""
        return v.normalize()


class PhaseThresholds(BaseModel):
    """Downline thresholds of the tier step function."""

    model_config = ConfigDict(frozen=True)

    min_direct_active: int = Field(ge=0)
    min_second_level_total: int = Field(ge=0)
    min_branch_second_level: int = Field(ge=0)

    @classmethod
    def from_settings(cls) -> "PhaseThresholds":
        """Thresholds configured through environment."""
        return cls(
            min_direct_active=settings.phase1_min_direct_active,
            min_second_level_total=settings.phase2_min_second_level_total,
            min_branch_second_level=settings.phase3_min_branch_second_level,
        )


class PhasePlan(BaseModel):
    """
    Compensation plan.

    Attributes:
        tiers: Tier configurations, sorted by tier, unique
        thresholds: Tier step function thresholds
        max_commission_depth: Number of upline levels paid per order
        max_payout_ratio: Max share of an order paid out as commission
    """

    model_config = ConfigDict(frozen=True)

    tiers: tuple[PhaseTierConfig, ...]
    thresholds: PhaseThresholds
    max_commission_depth: int = Field(ge=1)
    max_payout_ratio: Decimal = Field(gt=0, le=1)

    @field_validator("tiers")
    @classmethod
    def validate_tiers(
        cls, v: tuple[PhaseTierConfig, ...]
    ) -> tuple[PhaseTierConfig, ...]:
        """Require at least one tier and unique tier numbers."""
        if not v:
            raise ValueError("At least one tier is required")
        numbers = [t.tier for t in v]
        if len(numbers) != len(set(numbers)):
            raise ValueError(f"Duplicate tier numbers: {numbers}")
        return tuple(sorted(v, key=lambda t: t.tier))

    @property
    def version(self) -> str:
        """Content hash of the plan (first 16 hex chars of sha256)."""
        payload = json.dumps(
            self.model_dump(mode="json"), sort_keys=True, separators=(",", ":")
        )
        return hashlib.sha256(payload.encode()).hexdigest()[:16]

    def tier_config(self, tier: int) -> PhaseTierConfig:
        """
        Get configuration of a tier.

        Raises:
            ConfigurationInvalid: Tier is not part of the plan
        """
        for config in self.tiers:
            if config.tier == tier:
                return config
        raise ConfigurationInvalid(
            f"Tier {tier} is not configured in plan {self.version}",
            tier=tier,
            plan_version=self.version,
        )

    def rate_for(self, tier: int) -> Decimal:
        """
        Commission rate of a tier.

        Raises:
            ConfigurationInvalid: Tier is not part of the plan
        """
        return self.tier_config(tier).commission_rate


class PhasePlanLoader:
    """Builds a PhasePlan from the phase_tiers table and settings."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize loader."""
        self.tier_repo = PhaseTierRepository(session)

    async def load(self) -> PhasePlan:
        """
        Load the current plan.

        Returns:
            PhasePlan

        Raises:
            ConfigurationInvalid: No active tiers or invalid tier rows
        """
        rows = await self.tier_repo.get_active_tiers()
        if not rows:
            raise ConfigurationInvalid("No active phase tiers configured")

        try:
            return PhasePlan(
                tiers=tuple(
                    PhaseTierConfig(
                        tier=row.tier,
                        commission_rate=row.commission_rate,
                        credit_cents=row.credit_cents,
                        free_product_value_cents=row.free_product_value_cents,
                    )
                    for row in rows
                ),
                thresholds=PhaseThresholds.from_settings(),
                max_commission_depth=settings.commission_max_depth,
                max_payout_ratio=settings.max_payout_ratio,
            )
        except ValidationError as e:
            raise ConfigurationInvalid(
                f"Invalid phase tier configuration: {e}"
            ) from e
