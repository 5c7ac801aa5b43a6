'''
Weighted random selection from a fixed set of items.

Build a ``Selector`` once from ``Entry(item, weight)`` values, then call
``pick()`` as many times as needed; each pick is a binary search over
precomputed running totals.
'''

from .selector import Entry, Selector, weighted_choice
from .selector import InvalidWeight, EmptyOrZeroTotal, MAX_TOTAL

__all__ = [
	'Entry', 'Selector', 'weighted_choice',
	'InvalidWeight', 'EmptyOrZeroTotal', 'MAX_TOTAL',
]
