"""Perfect-square predicate and sums of consecutive squares."""
from __future__ import annotations

import math

__all__ = ["is_perfect_square", "sum_of_squares", "is_square_sum"]


def is_perfect_square(n: int) -> bool:
    """
    Return True if n is the square of an integer.

    Uses the exact integer square root, so arbitrarily large values are
    handled without floating-point rounding.

    Examples:
        >>> is_perfect_square(25)
        True
        >>> is_perfect_square(26)
        False
    """
    if n < 0:
        return False
    root = math.isqrt(n)
    return root * root == n


def sum_of_squares(start: int, k: int) -> int:
    """
    Sum of k consecutive squares beginning at start.

    Computes start^2 + (start+1)^2 + ... + (start+k-1)^2 via the closed form
    k*s^2 + k(k-1)*s + k(k-1)(2k-1)/6.

    Args:
        start: First base of the run
        k: Number of consecutive squares (>= 1)

    Returns:
        The exact sum as an int

    Raises:
        ValueError: If k < 1

    Examples:
        >>> sum_of_squares(3, 2)
        25
        >>> sum_of_squares(1, 24)
        4900
    """
    if k < 1:
        raise ValueError(f"k must be >= 1, got {k}")
    return k * start * start + k * (k - 1) * start + k * (k - 1) * (2 * k - 1) // 6


def is_square_sum(start: int, k: int) -> bool:
    """True if the k consecutive squares starting at start sum to a square."""
    return is_perfect_square(sum_of_squares(start, k))
