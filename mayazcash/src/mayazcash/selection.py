"""
Greedy first-fit UTXO selection.

Candidates are taken in the order the caller provides them. The target grows
by the fee increase each added input causes. Selection never fails: if the
candidates do not cover the target they are all returned and the caller's
change check reports the shortfall.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from functools import reduce

from loguru import logger

from mayazcash.fees import calculate_fee
from mayazcash.models import UnspentOutput


@dataclass(frozen=True)
class SelectionState:
    """Accumulator threaded through the selection fold."""

    selected: tuple[UnspentOutput, ...] = field(default_factory=tuple)
    remaining: int = 0
    current_fee: int = 0

    @property
    def done(self) -> bool:
        return self.remaining == 0

    @property
    def total(self) -> int:
        return sum(utxo.satoshis for utxo in self.selected)


def select_step(
    state: SelectionState,
    utxo: UnspentOutput,
    fee_model: Callable[[int], int] = calculate_fee,
) -> SelectionState:
    if state.done:
        return state

    selected = state.selected + (utxo,)
    fee = fee_model(len(selected))
    remaining = state.remaining + fee - state.current_fee
    used = min(utxo.satoshis, remaining)

    return replace(state, selected=selected, remaining=remaining - used, current_fee=fee)


def select_utxos(
    utxos: Iterable[UnspentOutput],
    amount: int,
    fee_model: Callable[[int], int] = calculate_fee,
) -> list[UnspentOutput]:
    """
    Select inputs to cover ``amount`` plus the fee for the inputs selected.

    Args:
        utxos: Candidate outputs, in preference order
        amount: Amount to send in zatoshis
        fee_model: Maps an input count to the required fee

    Returns:
        Selected outputs in candidate order
    """
    if amount < 0:
        raise ValueError(f"Amount cannot be negative: {amount}")

    state = reduce(
        lambda acc, utxo: select_step(acc, utxo, fee_model),
        utxos,
        SelectionState(remaining=amount),
    )

    logger.debug(
        f"Selected {len(state.selected)} UTXO(s) totalling {state.total} zats "
        f"(fee {state.current_fee}, uncovered {state.remaining})"
    )
    return list(state.selected)
