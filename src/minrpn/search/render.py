"""Rendering of discovered expressions.

Expressions are stored flat: every node names its operand *values*, which
are looked up again to walk the tree. Operands are always strictly cheaper
than the node they build, so the walk terminates.
"""

from typing import Any, Callable, Dict, List

from minrpn.core.data_models import ExpressionNode, Number, NumericDomain, Operator

Lookup = Callable[[Number], ExpressionNode]

RENDER_STYLES = ('infix', 'postfix')


def format_number(value: Number) -> str:
    """Print a value so that it parses back to the same number."""
    if isinstance(value, float):
        return repr(value)
    return str(value)


def render_infix(lookup: Lookup, value: Number) -> str:
    """Render ``value`` as a fully parenthesized infix expression, e.g. ``((69*420)-...)``."""
    node = lookup(value)
    if node.is_seed:
        return format_number(value)
    return (f"({render_infix(lookup, node.left)}"
            f"{node.operator.symbol}"
            f"{render_infix(lookup, node.right)})")


def _postfix_tokens(lookup: Lookup, value: Number, out: List[str]) -> None:
    node = lookup(value)
    if node.is_seed:
        out.append(format_number(value))
        return
    _postfix_tokens(lookup, node.left, out)
    _postfix_tokens(lookup, node.right, out)
    out.append(node.operator.symbol)


def render_postfix(lookup: Lookup, value: Number) -> str:
    """Render ``value`` in reverse Polish notation, tokens separated by spaces."""
    tokens: List[str] = []
    _postfix_tokens(lookup, value, tokens)
    return ' '.join(tokens)


def render(lookup: Lookup, value: Number, style: str = 'infix') -> str:
    """Render ``value`` in the requested style (``'infix'`` or ``'postfix'``)."""
    if style == 'infix':
        return render_infix(lookup, value)
    if style == 'postfix':
        return render_postfix(lookup, value)
    raise ValueError(f"Unknown render style: {style!r} (expected one of {RENDER_STYLES})")


def evaluate_postfix(expression: str, domain: NumericDomain = NumericDomain.INTEGER) -> Number:
    """Evaluate a postfix expression produced by ``render_postfix``.

    Raises:
        ValueError: On malformed input or a division the domain rejects
    """
    stack: List[Number] = []
    for token in expression.split():
        if token in ('+', '-', '*', '/'):
            if len(stack) < 2:
                raise ValueError(f"Operator {token!r} is missing operands in {expression!r}")
            right = stack.pop()
            left = stack.pop()
            result = domain.apply(Operator.from_symbol(token), left, right)
            if result is None:
                raise ValueError(f"Division {left} / {right} is not defined in the {domain.value} domain")
            stack.append(result)
        else:
            stack.append(domain.coerce(token))
    if len(stack) != 1:
        raise ValueError(f"Malformed postfix expression: {expression!r}")
    return stack[0]


def expression_to_dict(lookup: Lookup, value: Number) -> Dict[str, Any]:
    """Nested dictionary form of an expression, for JSON output."""
    node = lookup(value)
    if node.is_seed:
        return {'value': value, 'cost': node.cost}
    return {
        'value': value,
        'cost': node.cost,
        'operator': node.operator.symbol,
        'left': expression_to_dict(lookup, node.left),
        'right': expression_to_dict(lookup, node.right),
    }
