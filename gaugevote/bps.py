"""Basic points: a share expressed in the range [0, 10000]."""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal
from fractions import Fraction
from typing import ClassVar

from gaugevote.errors import BPSConversionError, BPSLimitError, ContractError

_DECIMAL_PRECISION = 10**18
_UINT128_MAX = 2**128 - 1


@dataclass(frozen=True, order=True)
class BasicPoints:
    """A whole number of basic points, never above ``MAX``.

    Multiplying by an integer amount floors the result; multiplying by a
    fraction or decimal gives a ``Fraction`` truncated to 18 decimal places.
    """

    value: int = 0
    MAX: ClassVar[int] = 10_000

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"basic points must be an integer, got {self.value!r}")
        if self.value < 0:
            raise ValueError(f"basic points can not be negative: {self.value}")
        if self.value > self.MAX:
            raise BPSConversionError(self.value)

    def checked_add(self, rhs: BasicPoints) -> BasicPoints:
        """Return the sum, raising BPSLimitError if it exceeds ``MAX``."""
        total = self.value + rhs.value
        if total > self.MAX:
            raise BPSLimitError()
        return BasicPoints(total)

    @classmethod
    def from_ratio(cls, numerator: int, denominator: int) -> BasicPoints:
        """Express ``numerator / denominator`` in basic points, rounding down."""
        if denominator == 0:
            raise ContractError("Checked multiply ratio error!")
        result = numerator * cls.MAX // denominator
        if result > _UINT128_MAX:
            raise ContractError("Checked multiply ratio error!")
        return cls(result)

    def __int__(self) -> int:
        return self.value

    def __mul__(self, other):
        if isinstance(other, bool):
            return NotImplemented
        if isinstance(other, int):
            if other < 0:
                raise ValueError(f"amount can not be negative: {other}")
            return other * self.value // self.MAX
        if isinstance(other, (Fraction, Decimal)):
            exact = Fraction(other) * self.value / self.MAX
            return Fraction(math.floor(exact * _DECIMAL_PRECISION), _DECIMAL_PRECISION)
        return NotImplemented

    __rmul__ = __mul__