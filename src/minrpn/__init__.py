"""minrpn - find the shortest arithmetic expression for a target number.

Builds expressions from a handful of seed constants and the four basic
operators, using a cost-ordered best-first search over discovered values.
"""

__version__ = "0.1.0"
