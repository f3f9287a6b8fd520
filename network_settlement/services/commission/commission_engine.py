"""
Commission engine.

Settles a paid order: walks the buyer's upline, prices each level at the
recipient's own tier rate and writes the settlement claim, commission
records and wallet credits in one transaction.
"""

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from network_settlement.config.constants import SYSTEM_ACTOR
from network_settlement.models.commission import (
    CommissionRecord,
    OrderSettlement,
)
from network_settlement.models.enums import WalletReason
from network_settlement.repositories.commission_repository import (
    CommissionRecordRepository,
    OrderSettlementRepository,
)
from network_settlement.repositories.phase_repository import (
    MemberPhaseRepository,
)
from network_settlement.services.base_service import BaseService, log_operation
from network_settlement.services.phase.phase_plan import PhasePlan
from network_settlement.services.referral_graph.graph_store import (
    ReferralGraphStore,
    SqlReferralGraphStore,
)
from network_settlement.services.wallet.wallet_ledger import WalletLedger
from network_settlement.utils.exceptions import (
    AlreadyProcessed,
    ConfigurationInvalid,
    NotFound,
)
from network_settlement.utils.money import apply_rate, cap_cents


@dataclass
class PlannedPayout:
    """One level of a computed distribution, before it is written."""

    recipient_id: str
    level: int
    tier: int
    rate: Decimal
    amount_cents: int


class CommissionEngine(BaseService):
    """
    Commission engine.

    Idempotency key is the order id: the OrderSettlement row is the claim,
    so a second settlement of the same order either sees the claim in the
    pre-check or loses on the primary key when it commits.
    """

    def __init__(
        self,
        session: AsyncSession,
        graph: ReferralGraphStore | None = None,
    ) -> None:
        """
        Initialize commission engine.

        Args:
            session: Async database session
            graph: Referral graph store (SQL store on the same session
                when omitted)
        """
        super().__init__(session)
        self.graph = graph or SqlReferralGraphStore(session)
        self.ledger = WalletLedger(session)
        self.settlement_repo = OrderSettlementRepository(session)
        self.record_repo = CommissionRecordRepository(session)
        self.phase_repo = MemberPhaseRepository(session)

    @log_operation
    async def settle_order(
        self,
        order_id: str,
        buyer_id: str,
        paid_amount_cents: int,
        plan: PhasePlan,
    ) -> list[CommissionRecord]:
        """
        Settle commissions for a paid order.

        Args:
            order_id: Unique order ID
            buyer_id: Member who paid
            paid_amount_cents: Paid amount
            plan: Phase plan in force for this computation

        Returns:
            Created commission records ordered by level

        Raises:
            ValueError: Non-positive amount
            AlreadyProcessed: Order was settled before (carries records)
            NotFound: Unknown buyer
            ConfigurationInvalid: Unknown tier or rates above the payout
                ratio; nothing is written
            GraphStoreUnavailable: Upline could not be read
        """
        if (
            isinstance(paid_amount_cents, bool)
            or not isinstance(paid_amount_cents, int)
            or paid_amount_cents <= 0
        ):
            raise ValueError(
                f"paid_amount_cents must be a positive integer, "
                f"got {paid_amount_cents!r}"
            )

        # Read-only pre-check; nothing to roll back
        if await self.settlement_repo.get_by_id(order_id) is not None:
            records = await self.record_repo.get_for_order(order_id)
            self.logger.info(
                "Order already settled", extra={"order_id": order_id}
            )
            raise AlreadyProcessed(order_id, records)

        try:
            if not await self.graph.exists(buyer_id):
                raise NotFound("Member", buyer_id)

            payouts = await self.compute_payouts(
                buyer_id, paid_amount_cents, plan
            )
            records = await self._write_settlement(
                order_id, buyer_id, paid_amount_cents, plan, payouts
            )
            await self.commit()

        except IntegrityError as e:
            await self.rollback()
            if not await self.settlement_repo.exists(order_id=order_id):
                raise
            records = await self.record_repo.get_for_order(order_id)
            self.logger.info(
                "Concurrent settlement lost the claim",
                extra={"order_id": order_id, "records": len(records)},
            )
            raise AlreadyProcessed(order_id, records) from e

        except ConfigurationInvalid as e:
            await self.rollback()
            self.logger.error(
                "Commission configuration rejected, order not settled",
                extra={
                    "order_id": order_id,
                    "detail": e.detail,
                    **e.context,
                },
            )
            raise

        except Exception as e:
            await self.rollback()
            self.logger.error(
                "Order settlement failed",
                extra={"order_id": order_id, "error": str(e)},
                exc_info=True,
            )
            raise

        self.logger.info(
            "Order settled",
            extra={
                "order_id": order_id,
                "buyer_id": buyer_id,
                "paid_amount_cents": paid_amount_cents,
                "levels_paid": len(records),
                "total_cents": sum(r.amount_cents for r in records),
                "plan_version": plan.version,
            },
        )
        return records

    async def compute_payouts(
        self,
        buyer_id: str,
        paid_amount_cents: int,
        plan: PhasePlan,
    ) -> list[PlannedPayout]:
        """
        Compute the distribution without writing anything.

        Inactive sponsors are skipped but keep their level number, and the
        walk continues to their sponsor.

        Args:
            buyer_id: Member who paid
            paid_amount_cents: Paid amount
            plan: Phase plan

        Returns:
            Payouts ordered by level

        Raises:
            ConfigurationInvalid: Unknown tier or applied rates above
                plan.max_payout_ratio
        """
        upline = await self._walk_upline(buyer_id, plan.max_commission_depth)
        if not upline:
            return []

        member_ids = [member_id for _, member_id in upline]
        active = await self.graph.active_among(member_ids)
        phases = await self.phase_repo.get_many(member_ids)

        payouts: list[PlannedPayout] = []
        rate_total = Decimal("0")

        for level, member_id in upline:
            if member_id not in active:
                self.logger.debug(
                    "Inactive sponsor skipped",
                    extra={"member_id": member_id, "level": level},
                )
                continue

            phase = phases.get(member_id)
            tier = phase.effective_tier if phase is not None else 0
            rate = plan.rate_for(tier)
            rate_total += rate

            amount = apply_rate(paid_amount_cents, rate)
            if amount > 0:
                payouts.append(
                    PlannedPayout(
                        recipient_id=member_id,
                        level=level,
                        tier=tier,
                        rate=rate,
                        amount_cents=amount,
                    )
                )

        if rate_total > plan.max_payout_ratio:
            raise ConfigurationInvalid(
                f"Applied commission rates {rate_total} exceed max payout "
                f"ratio {plan.max_payout_ratio}",
                rate_total=str(rate_total),
                max_payout_ratio=str(plan.max_payout_ratio),
                plan_version=plan.version,
            )

        return self._trim_to_cap(
            payouts, cap_cents(paid_amount_cents, plan.max_payout_ratio)
        )

    async def _walk_upline(
        self, buyer_id: str, max_depth: int
    ) -> list[tuple[int, str]]:
        """(level, sponsor_id) pairs from level 1 up to max_depth."""
        upline: list[tuple[int, str]] = []
        seen = {buyer_id}
        current = await self.graph.get_sponsor(buyer_id)

        while current is not None and len(upline) < max_depth:
            if current in seen:
                self.logger.error(
                    "Cycle in sponsor chain, upline walk stopped",
                    extra={"buyer_id": buyer_id, "member_id": current},
                )
                break
            seen.add(current)
            upline.append((len(upline) + 1, current))
            current = await self.graph.get_sponsor(current)

        return upline

    @staticmethod
    def _trim_to_cap(
        payouts: list[PlannedPayout], cap: int
    ) -> list[PlannedPayout]:
        """Remove rounding overflow above cap, deepest level first."""
        overflow = sum(p.amount_cents for p in payouts) - cap
        for payout in reversed(payouts):
            if overflow <= 0:
                break
            cut = min(overflow, payout.amount_cents)
            payout.amount_cents -= cut
            overflow -= cut
        return [p for p in payouts if p.amount_cents > 0]

    async def _write_settlement(
        self,
        order_id: str,
        buyer_id: str,
        paid_amount_cents: int,
        plan: PhasePlan,
        payouts: list[PlannedPayout],
    ) -> list[CommissionRecord]:
        settlement = OrderSettlement(
            order_id=order_id,
            buyer_id=buyer_id,
            paid_amount_cents=paid_amount_cents,
            total_distributed_cents=sum(p.amount_cents for p in payouts),
            plan_version=plan.version,
        )
        self.session.add(settlement)
        await self.session.flush()

        records: list[CommissionRecord] = []
        for payout in payouts:
            tx_id = await self.ledger.credit(
                payout.recipient_id,
                payout.amount_cents,
                WalletReason.COMMISSION,
                actor_id=SYSTEM_ACTOR,
                reference=order_id,
            )
            record = await self.record_repo.create(
                order_id=order_id,
                recipient_id=payout.recipient_id,
                buyer_id=buyer_id,
                level=payout.level,
                tier=payout.tier,
                rate=payout.rate,
                amount_cents=payout.amount_cents,
                wallet_transaction_id=tx_id,
            )
            records.append(record)

        return records
