from collections import deque
from decimal import Decimal
from typing import Deque, Sequence

from portfolio_ledger.core.errors import AccountingError, InvalidInput
from portfolio_ledger.core.logger import logger
from portfolio_ledger.schemas.positions import PositionState

ZERO = Decimal("0")
UNITS_DP = Decimal("0.0001")


def calculate_position_state(
        amounts: Sequence[Decimal],
        quantities: Sequence[Decimal],
) -> PositionState:
    """
    Replay a (ticker, broker) history through a FIFO lot queue.

    ``amounts`` are signed cash flows (negative for purchases) and
    ``quantities`` signed unit changes (negative for disposals). The quantity
    sign decides the direction, so a disposal whose fees exceed its proceeds
    still consumes lots. The returned
    state describes the group after the last element; ``cost_of_units_sold``
    only covers that last element.

    The queue holds one unit cost per whole unit, so fractional units are
    approximated: every quantity is truncated with ``floor(abs(q))``.
    """
    if len(amounts) != len(quantities):
        raise AccountingError(
            f"amounts and quantities differ in length ({len(amounts)} != {len(quantities)})"
        )
    if not amounts:
        raise AccountingError("cannot compute a position state from an empty history")

    queue: Deque[Decimal] = deque()
    cost_of_units_sold = ZERO
    remaining_quantity = ZERO

    for i, (amount, quantity) in enumerate(zip(amounts, quantities)):
        amount = Decimal(amount)
        quantity = Decimal(quantity)
        if quantity == 0:
            raise InvalidInput(f"quantity of element {i} is zero")

        cost_of_units_sold = ZERO
        whole_units = int(abs(quantity))

        if quantity > 0:
            queue.extend([amount / quantity] * whole_units)
            remaining_quantity += quantity

        else:
            popped = min(whole_units, len(queue))
            for _ in range(popped):
                cost_of_units_sold += queue.popleft()

            remaining_quantity += quantity
            if remaining_quantity.quantize(UNITS_DP) < 0:
                logger.warning(
                    f"Sell of {abs(quantity)} units exceeds holdings by "
                    f"{abs(remaining_quantity)}; excess ignored"
                )
                remaining_quantity = ZERO

        # fractional-unit residue would otherwise leave stale lots behind
        if remaining_quantity.quantize(UNITS_DP) == 0:
            queue.clear()

    cost_of_remaining = sum(queue, ZERO)

    return PositionState(
        cumulative_units=abs(remaining_quantity.quantize(UNITS_DP)),
        cumulative_cost=abs(cost_of_remaining),
        cost_of_units_sold=abs(cost_of_units_sold),
    )
