from typing import Dict, FrozenSet

from ...domain.models.trade import Trade, TradeStatus
from ...errors import InvalidTransition


class TradeStateMachine:
    """Trade lifecycle with explicit transition rules; terminal states have no exits."""

    def __init__(self):
        self._transitions: Dict[TradeStatus, FrozenSet[TradeStatus]] = {
            TradeStatus.PREPARED: frozenset({TradeStatus.SUBMITTED, TradeStatus.FAILED}),
            TradeStatus.SUBMITTED: frozenset({
                TradeStatus.COMPLETED,
                TradeStatus.FINALIZED,
                TradeStatus.FAILED,
            }),
        }

    def can_transition(self, current: TradeStatus, to_state: TradeStatus) -> bool:
        return to_state in self._transitions.get(current, frozenset())

    def transition(self, trade: Trade, to_state: TradeStatus) -> Trade:
        """Move ``trade`` to ``to_state`` in place; a same-state move is a no-op."""
        if trade.status == to_state:
            return trade
        if not self.can_transition(trade.status, to_state):
            raise InvalidTransition(f"{trade.status.value} -> {to_state.value}")
        trade.status = to_state
        return trade
