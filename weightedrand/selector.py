import random
import logging
import numbers
import operator
import numpy as np
from bisect import bisect_left
from collections import namedtuple
from fractions import Fraction

from .util import debug, partial_sums
from .util import is_numpy_rng, randint_inclusive, randints_inclusive
from .validate import validate_equal, validate_nondecreasing, validate_nonnegative, validate_sequence

__all__ = [
	'Entry', 'Selector', 'weighted_choice',
	'InvalidWeight', 'EmptyOrZeroTotal', 'MAX_TOTAL',
]

# Totals are kept small enough to live in an int64 array.
MAX_TOTAL = 2**63 - 1

class InvalidWeight(ValueError):
	''' A weight that is negative or not an integer, or a total that is too large. '''
	pass

class EmptyOrZeroTotal(ValueError):
	''' Selection was attempted with nothing to select from. '''
	pass

def checked_weight(weight, item=None):
	# (bool is an Integral, but True/False as a weight is surely a mistake)
	if isinstance(weight, bool) or not isinstance(weight, numbers.Integral):
		raise InvalidWeight("Non-integral weight {!r} for {!r}".format(weight, item))
	weight = int(weight)
	if weight < 0:
		raise InvalidWeight("Negative weight {!s} for {!r}".format(weight, item))
	return weight

class Entry(namedtuple('Entry', ['item', 'weight'])):
	'''
	An item paired with a non-negative integer weight.

	A weight of zero is allowed; such an entry can never be picked.
	'''
	__slots__ = ()
	def __new__(cls, item, weight):
		return super().__new__(cls, item, checked_weight(weight, item))

	# _replace goes through here too
	@classmethod
	def _make(cls, iterable):
		return cls(*iterable)

def as_entry(x):
	# always rebuilt, so that every weight is checked again
	(item, weight) = x
	return Entry(item, weight)

class Selector:
	'''
	Precomputed table for repeated weighted random selection.

	Entries are sorted by weight and paired with their running totals.
	A draw ``r`` from ``[1, total]`` then lands in the bucket of the first
	entry whose running total is ``>= r``, found by binary search.
	Construction is O(n log n) and each pick is O(log n).

	The table never changes after construction. ``pick`` only reads it,
	so a Selector may be shared between threads as long as the random
	source may be.

	``rng`` is the default source of randomness for ``pick``.  It can be
	anything with a ``randint(a, b)`` that includes both ends (e.g. the
	``random`` module or a ``random.Random``), or a numpy ``Generator``,
	``RandomState``, or the ``numpy.random`` module.
	'''
	def __init__(self, entries=(), rng=random):
		entries = sorted(map(as_entry, entries), key=operator.attrgetter('weight'))
		try:
			totals = list(partial_sums((e.weight for e in entries), bound=MAX_TOTAL))
		except OverflowError:
			raise InvalidWeight('total weight exceeds {!s}'.format(MAX_TOTAL)) from None

		self.__entries = tuple(entries)
		self.__totals = tuple(totals)
		self.__total = totals[-1] if totals else 0
		self.__totals_array = np.array(totals, dtype=np.int64)
		self.__rng = rng

		logging.debug('Selector: %d entries, total weight %d', len(entries), self.__total)

	@classmethod
	@debug('Selector.', member=True)
	def from_pairs(cls, pairs, rng=random):
		''' Build from an iterable of ``(item, weight)``. '''
		return cls((Entry(item, weight) for (item, weight) in pairs), rng=rng)

	@classmethod
	@debug('Selector.', member=True)
	def from_dict(cls, weights, rng=random):
		''' Build from a mapping of ``{item: weight}``. '''
		return cls.from_pairs(weights.items(), rng=rng)

	@property
	def entries(self):
		''' Entries in ascending order of weight. '''
		return self.__entries

	@property
	def totals(self):
		''' Running totals, index-aligned with ``entries``. '''
		return self.__totals

	@property
	def total(self):
		return self.__total

	def __len__(self): return len(self.__entries)
	def __iter__(self): return iter(self.__entries)

	def __repr__(self):
		return '{!s}({!r}, total={!r})'.format(type(self).__name__, list(self.__entries), self.__total)

	def __require_total(self):
		if self.__total == 0:
			if self.__entries:
				raise EmptyOrZeroTotal("Cannot choose from total weight of zero!")
			raise EmptyOrZeroTotal("Cannot choose from an empty Selector!")

	def pick(self, rng=None):
		'''
		Return a single weighted random item.

		``rng`` overrides the Selector's random source for this call.
		'''
		self.__require_total()
		rng = self.__rng if rng is None else rng
		r = randint_inclusive(rng, 1, self.__total)
		return self.__entries[bisect_left(self.__totals, r)].item

	def pick_many(self, howmany, rng=None):
		'''
		Return a list of ``howmany`` independent weighted random items.

		With a numpy random source, the draws and the search are vectorized.
		'''
		if howmany < 0:
			raise ValueError('negative count: {!r}'.format(howmany))
		if howmany == 0:
			return []
		self.__require_total()

		rng = self.__rng if rng is None else rng
		draws = randints_inclusive(rng, 1, self.__total, howmany)
		if is_numpy_rng(rng):
			indices = np.searchsorted(self.__totals_array, draws, side='left')
		else:
			indices = [bisect_left(self.__totals, r) for r in draws]
		entries = self.__entries
		return [entries[i].item for i in indices]

	def index(self, r):
		'''
		Index of the entry selected by the draw ``r``, for ``1 <= r <= total``.

		This is the smallest index whose running total is not less than ``r``.
		'''
		self.__require_total()
		if isinstance(r, bool) or not isinstance(r, numbers.Integral):
			raise ValueError('non-integral draw {!r}'.format(r))
		if not 1 <= r <= self.__total:
			raise ValueError('draw {!r} outside of [1, {!r}]'.format(r, self.__total))
		return bisect_left(self.__totals, r)

	def search(self, r):
		''' The item selected by the draw ``r``. (deterministic) '''
		return self.__entries[self.index(r)].item

	def probability(self, index):
		''' Exact probability of picking the entry at ``index``. '''
		self.__require_total()
		return Fraction(self.__entries[index].weight, self.__total)

	def validate(self):
		'''
		Perform an expensive self-integrity check.

		Raises an exception or returns True (for use in assert).
		'''
		weights = [e.weight for e in self.__entries]
		validate_nonnegative(weights, name='weights')
		validate_nondecreasing(weights, name='weights')
		validate_sequence(self.__totals, partial_sums(weights), 'stored', 'computed', item='total')
		validate_nondecreasing(self.__totals, name='totals')
		validate_equal(self.__total, self.__totals[-1] if self.__totals else 0)
		validate_sequence(self.__totals_array.tolist(), self.__totals, 'array', 'tuple', item='total')
		return True

# weighted_choice :: [(value, weight)] -> value
def weighted_choice(choices, howmany=None, rng=random):
	'''
	A one-off weighted random choice from ``(value, weight)`` pairs.

	Build a ``Selector`` instead when choosing from the same
	pairs many times.
	'''
	selector = Selector.from_pairs(choices, rng=rng)
	if howmany is None: return selector.pick()
	else: return selector.pick_many(howmany)

#-----------------------------

import unittest
from collections import Counter

class ScriptedRng:
	''' Returns preset values from ``randint``, recording the requested bounds. '''
	def __init__(self, *values):
		self.values = list(values)
		self.calls = []

	def randint(self, a, b):
		self.calls.append((a, b))
		return self.values.pop(0)

class EntryTests(unittest.TestCase):

	def test_fields(self):
		e = Entry('a', 3)
		self.assertEqual(e.item, 'a')
		self.assertEqual(e.weight, 3)
		self.assertEqual(tuple(e), ('a', 3))

	def test_zero_weight(self):
		self.assertEqual(Entry('a', 0).weight, 0)

	def test_numpy_weight(self):
		e = Entry('a', np.int64(5))
		self.assertEqual(e.weight, 5)
		assert type(e.weight) is int

	def test_invalid(self):
		self.assertRaises(InvalidWeight, Entry, 'a', -5)
		self.assertRaises(InvalidWeight, Entry, 'a', 1.5)
		self.assertRaises(InvalidWeight, Entry, 'a', 2.0)
		self.assertRaises(InvalidWeight, Entry, 'a', '3')
		self.assertRaises(InvalidWeight, Entry, 'a', True)
		self.assertRaises(InvalidWeight, Entry, 'a', None)
		# is still a ValueError for callers that don't care
		self.assertRaises(ValueError, Entry, 'a', -1)

	def test_make_and_replace_are_checked(self):
		self.assertEqual(Entry._make(['a', 2]), Entry('a', 2))
		self.assertEqual(Entry('a', 3)._replace(weight=4).weight, 4)
		self.assertRaises(InvalidWeight, Entry._make, ['a', -5])
		self.assertRaises(InvalidWeight, Entry('a', 3)._replace, weight=-5)
		self.assertRaises(InvalidWeight, Entry('a', 3)._replace, weight=0.5)

	def test_immutable(self):
		e = Entry('a', 3)
		with self.assertRaises(AttributeError):
			e.weight = 4

class SelectorTests(unittest.TestCase):

	def setUp(self):
		self.abc = Selector([Entry('A', 1), Entry('B', 1), Entry('C', 98)])

	def test_construction_invariant(self):
		rng = random.Random(7)
		for n in range(0, 40):
			weights = [rng.randint(0, 20) for _ in range(n)]
			s = Selector.from_pairs(enumerate(weights))
			totals = list(s.totals)
			self.assertEqual(len(totals), n)
			self.assertListEqual(totals, sorted(totals))
			self.assertEqual(s.total, sum(weights))
			self.assertEqual(s.total, totals[-1] if totals else 0)
			assert s.validate()

	def test_sorted_by_weight(self):
		s = Selector.from_pairs([('x', 5), ('y', 0), ('z', 2)])
		self.assertListEqual([e.item for e in s.entries], ['y', 'z', 'x'])
		self.assertTupleEqual(s.totals, (0, 2, 7))
		self.assertListEqual(list(s), list(s.entries))
		self.assertEqual(len(s), 3)

	def test_does_not_alias_input(self):
		entries = [Entry('b', 2), Entry('a', 1)]
		s = Selector(entries)
		entries.append(Entry('c', 100))
		self.assertEqual(len(s), 2)
		self.assertEqual(s.total, 3)

	def test_pairs_are_coerced(self):
		s = Selector([('a', 1), Entry('b', 2)])
		assert all(isinstance(e, Entry) for e in s.entries)
		self.assertRaises(InvalidWeight, Selector, [('A', -5)])

	def test_empty(self):
		s = Selector()
		self.assertEqual(s.total, 0)
		self.assertEqual(len(s), 0)
		self.assertTupleEqual(s.totals, ())
		assert s.validate()
		self.assertRaises(EmptyOrZeroTotal, s.pick)
		self.assertRaises(EmptyOrZeroTotal, s.pick_many, 3)
		self.assertRaises(EmptyOrZeroTotal, s.search, 1)
		self.assertListEqual(s.pick_many(0), [])

	def test_all_zero(self):
		s = Selector([Entry('A', 0), Entry('B', 0)])
		self.assertEqual(s.total, 0)
		self.assertRaises(EmptyOrZeroTotal, s.pick)
		self.assertRaises(EmptyOrZeroTotal, s.pick, rng=ScriptedRng(1))
		self.assertRaises(EmptyOrZeroTotal, s.probability, 0)

	def test_overflow(self):
		s = Selector([Entry('a', MAX_TOTAL - 1), Entry('b', 1)])
		self.assertEqual(s.total, MAX_TOTAL)
		assert s.validate()
		self.assertEqual(s.search(MAX_TOTAL), 'a')
		self.assertRaises(InvalidWeight, Selector, [Entry('a', MAX_TOTAL), Entry('b', 1)])

	def test_boundary_draws(self):
		s = self.abc
		self.assertEqual(s.total, 100)
		first = s.search(1)
		assert first in ('A', 'B')
		self.assertEqual(s.search(2), ({'A','B'} - {first}).pop())
		self.assertEqual(s.search(3), 'C')
		self.assertEqual(s.search(100), 'C')
		self.assertEqual(s.index(1), 0)
		self.assertEqual(s.index(100), 2)

	def test_search_range(self):
		self.assertRaises(ValueError, self.abc.search, 1.5)
		self.assertRaises(ValueError, self.abc.search, 100.0)
		self.assertRaises(ValueError, self.abc.search, True)
		self.assertEqual(self.abc.search(np.int64(100)), 'C')
		self.assertRaises(ValueError, self.abc.search, 0)
		self.assertRaises(ValueError, self.abc.search, 101)
		self.assertRaises(ValueError, self.abc.search, -3)

	def test_search_is_deterministic(self):
		s = Selector.from_pairs([('x', 3), ('y', 1), ('z', 4), ('w', 1)])
		first = [s.search(r) for r in range(1, s.total + 1)]
		for _ in range(3):
			self.assertListEqual([s.search(r) for r in range(1, s.total + 1)], first)

	def test_bucket_sizes_match_weights(self):
		# every draw value maps to exactly one bucket, and each bucket
		# is exactly as wide as its weight
		weights = {'p': 0, 'q': 3, 'r': 1, 's': 7, 't': 0, 'u': 2}
		s = Selector.from_dict(weights)
		counts = Counter(s.search(r) for r in range(1, s.total + 1))
		self.assertDictEqual(dict(counts), {k:w for (k,w) in weights.items() if w})

	def test_pick_uses_draw(self):
		rng = ScriptedRng(1, 100, 50)
		s = Selector(self.abc.entries, rng=rng)
		assert s.pick() in ('A', 'B')
		self.assertEqual(s.pick(), 'C')
		self.assertEqual(s.pick(), 'C')
		self.assertListEqual(rng.calls, [(1, 100)] * 3)

	def test_pick_rng_override(self):
		default = ScriptedRng()
		override = ScriptedRng(100)
		s = Selector(self.abc.entries, rng=default)
		self.assertEqual(s.pick(rng=override), 'C')
		self.assertListEqual(default.calls, [])
		self.assertListEqual(override.calls, [(1, 100)])

	def test_pick_does_not_mutate(self):
		before = (self.abc.entries, self.abc.totals, self.abc.total)
		self.abc.pick_many(100, rng=random.Random(3))
		self.abc.pick(rng=random.Random(3))
		self.assertTupleEqual((self.abc.entries, self.abc.totals, self.abc.total), before)

	def test_zero_weight_never_picked(self):
		s = Selector.from_pairs([('never', 0), ('a', 1), ('b', 2), ('also never', 0)])
		picks = set(s.pick_many(5000, rng=random.Random(11)))
		self.assertSetEqual(picks, set('ab'))
		picks = set(s.pick_many(5000, rng=np.random.default_rng(11)))
		self.assertSetEqual(picks, set('ab'))

	def test_distribution_scenario(self):
		rng = random.Random(12345)
		counts = Counter(self.abc.pick(rng=rng) for _ in range(10000))
		self.assertAlmostEqual(counts['C'], 9800, delta=150)
		self.assertAlmostEqual(counts['A'], 100, delta=50)
		self.assertAlmostEqual(counts['B'], 100, delta=50)
		self.assertEqual(sum(counts.values()), 10000)

	def test_distribution_convergence(self):
		weights = {'a': 1, 'b': 5, 'c': 10, 'd': 34}
		s = Selector.from_dict(weights)
		n = 100000
		for rng in [random.Random(5), np.random.default_rng(5), np.random.RandomState(5)]:
			counts = Counter(s.pick_many(n, rng=rng))
			for (item, weight) in weights.items():
				self.assertAlmostEqual(counts[item] / n, weight / s.total, delta=0.01)

	def test_pick_many(self):
		self.assertRaises(ValueError, self.abc.pick_many, -1)
		self.assertListEqual(self.abc.pick_many(0), [])
		picks = self.abc.pick_many(20, rng=ScriptedRng(*([1, 100] * 10)))
		self.assertEqual(len(picks), 20)
		self.assertListEqual(picks[1::2], ['C'] * 10)
		assert all(p in ('A', 'B') for p in picks[::2])

	def test_probability(self):
		s = Selector.from_pairs([('x', 1), ('y', 3)])
		self.assertEqual(s.probability(0), Fraction(1, 4))
		self.assertEqual(s.probability(1), Fraction(3, 4))
		self.assertEqual(sum(s.probability(i) for i in range(len(s))), 1)

	def test_repr(self):
		s = Selector.from_pairs([('x', 1)])
		self.assertEqual(repr(s), "Selector([Entry(item='x', weight=1)], total=1)")

	def test_entries_are_rechecked(self):
		# a tuple built behind Entry's back still gets its weight checked
		unchecked = tuple.__new__(Entry, ('A', -5))
		self.assertEqual(unchecked.weight, -5)
		self.assertRaises(InvalidWeight, Selector, [unchecked, Entry('B', 10)])
		unchecked = tuple.__new__(Entry, ('A', 2.5))
		self.assertRaises(InvalidWeight, Selector, [unchecked])

	def test_validate_catches_negative_weight(self):
		s = Selector.from_pairs([('x', 1), ('y', 3)])
		s._Selector__entries = (tuple.__new__(Entry, ('x', -1)), Entry('y', 3))
		self.assertRaises(AssertionError, s.validate)

	def test_validate_catches_corruption(self):
		s = Selector.from_pairs([('x', 1), ('y', 3), ('z', 4)])
		s._Selector__totals = (1, 5, 8)
		self.assertRaises(AssertionError, s.validate)

class WeightedChoiceTests(unittest.TestCase):

	def test_single(self):
		self.assertEqual(weighted_choice([('a', 0), ('b', 4)]), 'b')
		self.assertEqual(weighted_choice([('a', 1), ('b', 4)], rng=ScriptedRng(1)), 'a')

	def test_many(self):
		picks = weighted_choice([('a', 0), ('b', 4)], howmany=5)
		self.assertListEqual(picks, ['b'] * 5)

	def test_errors(self):
		self.assertRaises(EmptyOrZeroTotal, weighted_choice, [])
		self.assertRaises(EmptyOrZeroTotal, weighted_choice, [('a', 0)])
		self.assertRaises(InvalidWeight, weighted_choice, [('a', -1), ('b', 2)])
