"""Search for the shortest expression that builds a target number.

This module implements the cost-ordered open/closed search, its two frontier
variants and the expression renderers.
"""

from .frontier import (Frontier, HeapFrontier, LevelFrontier, FrontierOrderError,
                       EmptyFrontierError, create_frontier)
from .session import SearchSession
from .driver import (ExpressionSearcher, SearchConfig, SearchResult, SearchState,
                     StopPolicy, EmptyFrontierPrecondition, create_searcher)
from .render import render, render_infix, render_postfix, evaluate_postfix

__all__ = [
    'Frontier',
    'HeapFrontier',
    'LevelFrontier',
    'FrontierOrderError',
    'EmptyFrontierError',
    'create_frontier',
    'SearchSession',
    'ExpressionSearcher',
    'SearchConfig',
    'SearchResult',
    'SearchState',
    'StopPolicy',
    'EmptyFrontierPrecondition',
    'create_searcher',
    'render',
    'render_infix',
    'render_postfix',
    'evaluate_postfix'
]
