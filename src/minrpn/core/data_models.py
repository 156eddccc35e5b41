"""Core data models for the expression search."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union
import numpy as np

Number = Union[int, float]


class Operator(Enum):
    """Binary operators, valued by the character used to print them."""

    PLUS = '+'
    MINUS = '-'
    TIMES = '*'
    DIVIDE = '/'
    NONE = '='

    @property
    def symbol(self) -> str:
        return self.value

    @property
    def is_commutative(self) -> bool:
        return self in (Operator.PLUS, Operator.TIMES)

    @classmethod
    def from_symbol(cls, symbol: str) -> 'Operator':
        """Parse an operator symbol such as ``'+'``.

        Raises:
            ValueError: If the symbol is not one of ``+ - * /``
        """
        for op in cls:
            if op is not cls.NONE and op.value == symbol:
                return op
        raise ValueError(f"Unknown operator symbol: {symbol!r}")


@dataclass(frozen=True, eq=False)
class ExpressionNode:
    """A discovered value and how it was built.

    ``left`` and ``right`` are operand *values*, not nodes, so they can be
    looked up again in the open or closed set. Seed nodes carry their own
    value on both sides and ``Operator.NONE``.
    """
    value: Number
    left: Number
    right: Number
    cost: int  # number of seed occurrences (terms)
    operator: Operator = field(default=Operator.NONE)

    def __post_init__(self) -> None:
        if self.cost < 1:
            raise ValueError(f"Node cost must be at least 1, got {self.cost}")
        if self.operator is Operator.NONE and self.cost != 1:
            raise ValueError(f"Seed node must have cost 1, got {self.cost}")

    @classmethod
    def seed(cls, value: Number) -> 'ExpressionNode':
        return cls(value=value, left=value, right=value, cost=1, operator=Operator.NONE)

    @property
    def is_seed(self) -> bool:
        return self.operator is Operator.NONE

    def __eq__(self, other: object) -> bool:
        """Nodes are interchangeable lookup keys when their values match."""
        if not isinstance(other, ExpressionNode):
            return NotImplemented
        return self.value == other.value

    def __hash__(self) -> int:
        return hash(self.value)


class NumericDomain(Enum):
    """Arithmetic the search runs in: exact integers or IEEE doubles."""

    INTEGER = 'integer'
    FLOAT = 'float'

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(np.int64) if self is NumericDomain.INTEGER else np.dtype(np.float64)

    def coerce(self, raw) -> Number:
        """Convert a configured value into a native number of this domain.

        Raises:
            ValueError: If the value is not representable in the domain
        """
        if self is NumericDomain.INTEGER:
            as_float = float(raw)
            if not as_float.is_integer():
                raise ValueError(f"Integer domain requires integral values, got {raw!r}")
            info = np.iinfo(self.dtype)
            value = int(raw) if not isinstance(raw, str) else int(as_float)
            if value < info.min or value > info.max:
                raise ValueError(f"Value {raw!r} does not fit into {self.dtype}")
            return value
        value = np.float64(raw)
        if not np.isfinite(value):
            raise ValueError(f"Float domain requires finite values, got {raw!r}")
        return value.item()

    def default_min_relevant(self) -> Optional[Number]:
        """Lower relevance bound used when none is configured.

        Floats reject near-zero results, which otherwise breed endless
        degenerate quotients.
        """
        if self is NumericDomain.INTEGER:
            return None
        return 1e-9

    def divide(self, a: Number, b: Number) -> Optional[Number]:
        """Return ``a / b``, or None if the division is skipped."""
        if b == 0:
            return None
        if self is NumericDomain.INTEGER:
            if a % b != 0:
                return None
            return a // b
        return a / b

    def apply(self, op: Operator, a: Number, b: Number) -> Optional[Number]:
        if op is Operator.PLUS:
            return a + b
        if op is Operator.MINUS:
            return a - b
        if op is Operator.TIMES:
            return a * b
        if op is Operator.DIVIDE:
            return self.divide(a, b)
        raise ValueError(f"Cannot apply {op} to operands")
