import logging
import operator
import numpy as np
from termcolor import colored

class debug():
	'''
	Decorator that logs each call (with arguments) at DEBUG level.

	With ``member=True`` the first argument (``self``) is left out of the log.
	'''
	def __init__(self, prefix='', member=False):
		self.prefix = prefix
		self.is_member = member

	def __call__(self, func):
		from functools import wraps
		@wraps(func)
		def wrapped(*args, **kw):
			args2show = args[1 if self.is_member else 0:]
			logging.debug(
				colored(self.prefix, 'green') +
				format_func_call(colored(func.__name__, 'yellow'), args2show, kw))
			return func(*args, **kw)
		return wrapped

def format_func_call(name, args, kw):
	argstrs = [repr(x) for x in args]
	kwstrs = ['{!s}={!r}'.format(k,v) for (k,v) in kw.items()]

	pat = '{}%s{}%s' % (colored('(', 'yellow'), colored(')', 'yellow'))
	sep = colored(', ', 'yellow')
	return pat.format(name, (sep.join(argstrs + kwstrs)))

def scan(function, iterable, initializer=None):
	'''
	Like ``reduce``, but yields partial results for each element.

	Arguments have same meaning as they do for ``reduce``.
	'''
	iterable = iter(iterable)
	if initializer is None:
		a = next(iterable)
		yield a
	else: a = initializer

	for x in iterable:
		a = function(a, x)
		yield a

def partial_sums(iterable, zero=0, bound=None):
	'''
	Running sums of ``iterable`` (not including the initial ``zero``).

	If ``bound`` is given, raises ``OverflowError`` as soon as a sum
	exceeds it. Nothing past the offending element is consumed.
	'''
	if bound is None:
		return scan(operator.add, iterable, initializer=zero)

	def add(a, b):
		s = a + b
		if s > bound:
			raise OverflowError('running sum {!r} exceeds {!r}'.format(s, bound))
		return s
	return scan(add, iterable, initializer=zero)

#-----------------------------
# random sources
#
# Anything with a stdlib-style ``randint(a, b)`` (inclusive on both ends)
# works, which covers the ``random`` module and ``random.Random``.
# numpy sources are special-cased, since their ``randint`` excludes ``b``.

def is_numpy_rng(rng):
	return rng is np.random or isinstance(rng, (np.random.Generator, np.random.RandomState))

def randint_inclusive(rng, low, high):
	''' One uniform integer from ``[low, high]``. '''
	if isinstance(rng, np.random.Generator):
		return int(rng.integers(low, high, endpoint=True))
	if rng is np.random or isinstance(rng, np.random.RandomState):
		# shifted by one so that ``high`` itself never needs to be exceeded
		return int(rng.randint(low - 1, high)) + 1
	return rng.randint(low, high)

def randints_inclusive(rng, low, high, size):
	''' ``size`` uniform integers from ``[low, high]``, as an int64 array for
	numpy sources and a list otherwise. '''
	if isinstance(rng, np.random.Generator):
		return rng.integers(low, high, size=size, endpoint=True, dtype=np.int64)
	if rng is np.random or isinstance(rng, np.random.RandomState):
		return rng.randint(low - 1, high, size=size, dtype=np.int64) + 1
	return [rng.randint(low, high) for _ in range(size)]

import random
import unittest
class PartialSumsTests(unittest.TestCase):

	def test_sums(self):
		self.assertListEqual(list(partial_sums([])), [])
		self.assertListEqual(list(partial_sums([1,2,3])), [1,3,6])
		self.assertListEqual(list(partial_sums([0,0,5], zero=10)), [10,10,15])

	def test_bound(self):
		self.assertListEqual(list(partial_sums([1,2,3], bound=6)), [1,3,6])
		self.assertRaises(OverflowError, list, partial_sums([1,2,3], bound=5))

	def test_bound_is_lazy(self):
		def gen():
			yield 4
			yield 4
			raise AssertionError('consumed past the overflow')
		it = partial_sums(gen(), bound=5)
		self.assertEqual(next(it), 4)
		self.assertRaises(OverflowError, next, it)

class RandintTests(unittest.TestCase):

	SOURCES = [
		lambda: random.Random(1),
		lambda: np.random.default_rng(1),
		lambda: np.random.RandomState(1),
	]

	def test_inclusive_range(self):
		for make in self.SOURCES:
			rng = make()
			seen = set(randint_inclusive(rng, 1, 3) for _ in range(300))
			self.assertSetEqual(seen, set([1,2,3]))

	def test_single_value(self):
		for make in self.SOURCES:
			rng = make()
			self.assertEqual(randint_inclusive(rng, 7, 7), 7)
			self.assertListEqual(list(randints_inclusive(rng, 7, 7, 4)), [7]*4)

	def test_many(self):
		for make in self.SOURCES:
			rng = make()
			xs = list(randints_inclusive(rng, 1, 3, 300))
			self.assertEqual(len(xs), 300)
			self.assertSetEqual(set(int(x) for x in xs), set([1,2,3]))

	def test_large_bound(self):
		high = 2**63 - 1
		for make in self.SOURCES:
			x = randint_inclusive(make(), 1, high)
			assert 1 <= x <= high

	def test_is_numpy_rng(self):
		assert is_numpy_rng(np.random)
		assert is_numpy_rng(np.random.default_rng())
		assert is_numpy_rng(np.random.RandomState())
		assert not is_numpy_rng(random)
		assert not is_numpy_rng(random.Random())
