"""
Static fee table for transparent spends.
"""

from __future__ import annotations

from mayazcash.constants import BASE_FEE, MIN_FEE_INPUTS


def calculate_fee(num_inputs: int) -> int:
    """
    Fee for a transaction spending ``num_inputs`` transparent inputs.

    Every input costs BASE_FEE, with a floor of MIN_FEE_INPUTS inputs so that
    small transactions are not under-priced.
    """
    if num_inputs < 0:
        raise ValueError(f"Input count cannot be negative: {num_inputs}")
    return max(num_inputs, MIN_FEE_INPUTS) * BASE_FEE
