"""Core data models shared by the search and rendering layers."""

from .data_models import ExpressionNode, NumericDomain, Operator

__all__ = [
    'ExpressionNode',
    'NumericDomain',
    'Operator'
]
