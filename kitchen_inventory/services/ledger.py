"""Inventory ledger: on-hand quantities and sale application."""

import asyncio
from typing import Mapping

from kitchen_inventory.models.inventory import (
    AdjustmentReport,
    InventoryAdjustment,
    OversellPolicy,
    SalePayload,
)
from kitchen_inventory.services.recipes import RecipeResolver
from kitchen_inventory.utils.logging import get_logger

logger = get_logger(__name__)


class OversellError(Exception):
    """Raised when a blocked sale needs more stock than is on hand."""

    code = "OVERSELL_BLOCKED"

    def __init__(self, sku: str, required: float, available: float):
        self.sku = sku
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient stock for {sku}: need {required}, have {available}"
        )

    @property
    def shortfall(self) -> float:
        """How much stock is missing."""
        return self.required - self.available


class InventoryLedger:
    """
    Current on-hand quantity per SKU.

    Quantities are signed: the permissive oversell policy lets them go
    negative. Unknown SKUs read as zero.
    """

    def __init__(
        self,
        resolver: RecipeResolver | None = None,
        initial: Mapping[str, float] | None = None,
        low_stock_threshold: float = 5.0,
    ):
        self.resolver = resolver if resolver is not None else RecipeResolver()
        self.low_stock_threshold = low_stock_threshold
        self._quantities: dict[str, float] = dict(initial or {})
        self._lock = asyncio.Lock()

    def get_qty(self, sku: str) -> float:
        """Get current quantity for a SKU."""
        return self._quantities.get(sku, 0.0)

    def set_qty(self, sku: str, qty: float) -> None:
        """Set quantity for a SKU."""
        self._quantities[sku] = qty

    def get_all_quantities(self) -> dict[str, float]:
        """Get a copy of all current quantities."""
        return dict(self._quantities)

    def update_quantities(self, updates: Mapping[str, float]) -> None:
        """Bulk administrative set."""
        for sku, qty in updates.items():
            self.set_qty(sku, qty)

    def reset(self) -> None:
        """Forget all quantities."""
        self._quantities.clear()

    async def adjust(self, sku: str, delta: float) -> InventoryAdjustment:
        """Add (or remove) stock for a single SKU, e.g. on receipt."""
        async with self._lock:
            old_qty = self.get_qty(sku)
            new_qty = old_qty + delta
            self.set_qty(sku, new_qty)

        return InventoryAdjustment(sku=sku, old_qty=old_qty, new_qty=new_qty, delta=delta)

    async def apply_sale(
        self,
        payload: SalePayload,
        policy: OversellPolicy = OversellPolicy.BLOCK,
    ) -> AdjustmentReport:
        """
        Apply a sale to inventory.

        The availability check and the mutation of every SKU in the sale run
        in one critical section, so two concurrent blocked sales can never
        both pass the check on the same stock.

        Args:
            payload: The recorded sale
            policy: Oversell policy to enforce

        Returns:
            Adjustment report with any low/negative stock alerts

        Raises:
            OversellError: policy is ``block`` and a requirement exceeds stock.
                No quantity is changed in that case.
        """
        policy = OversellPolicy(policy)
        requirements = self.resolver.explode_lines(payload.lines)

        async with self._lock:
            if policy == OversellPolicy.BLOCK:
                for req in requirements:
                    available = self.get_qty(req.sku)
                    if available < req.qty:
                        logger.warning(
                            "oversell_blocked",
                            ticket_id=payload.ticket_id,
                            sku=req.sku,
                            required=req.qty,
                            available=available,
                        )
                        raise OversellError(req.sku, req.qty, available)

            adjustments: list[InventoryAdjustment] = []
            alerts: list[str] = []

            for req in requirements:
                old_qty = self.get_qty(req.sku)
                new_qty = old_qty - req.qty
                self.set_qty(req.sku, new_qty)

                adjustments.append(
                    InventoryAdjustment(
                        sku=req.sku,
                        old_qty=old_qty,
                        new_qty=new_qty,
                        delta=-req.qty,
                    )
                )

                if new_qty < 0 and policy == OversellPolicy.ALLOW_NEGATIVE_ALERT:
                    alerts.append(f"Low stock alert: {req.sku} is now at {new_qty} (negative)")
                elif 0 <= new_qty <= self.low_stock_threshold:
                    alerts.append(f"Low stock warning: {req.sku} is down to {new_qty} units")

        logger.info(
            "sale_applied",
            ticket_id=payload.ticket_id,
            policy=policy.value,
            skus=len(adjustments),
            alerts=len(alerts),
        )

        return AdjustmentReport(adjustments=adjustments, alerts=alerts or None)
