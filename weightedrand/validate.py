
from tabulate import tabulate

'''
Collects common patterns in validation functions.

Some of these offer very similar functionality to the ``assertSomething``
methods provided on ``unittest.TestCase``, but those methods were not
designed with large objects in mind. (these will just print out a single
mismatch rather they trying to string-diff the whole thing)
'''

# For small values only (those which can be easily printed)
def validate_equal(a, b):
	if a != b:
		raise AssertionError('{!r} != {!r}'.format(a, b))

def validate_nonnegative(seq, name='sequence'):
	for (i, x) in enumerate(seq):
		if x < 0:
			raise AssertionError('negative value in {!s} at index {!s}: {!r}'.format(name, i, x))

def validate_nondecreasing(seq, name='sequence'):
	seq = list(seq)
	for i in range(1, len(seq)):
		if seq[i] < seq[i-1]:
			head = '{!s} decreases at index {!s}'.format(name, i)
			rows = [['', i-1, repr(seq[i-1])], ['', i, repr(seq[i])]]
			raise AssertionError('%s\n%s' % (head, tabulate(rows, tablefmt='plain')))

def validate_sequence(s1, s2, name1='left', name2='right', item='item'):
	s1, s2 = list(s1), list(s2)
	if len(s1) != len(s2):
		raise AssertionError('length mismatch: {!s} has {!s}, {!s} has {!s}'
			.format(name1, len(s1), name2, len(s2)))

	for (i, (a, b)) in enumerate(zip(s1, s2)):
		if a != b:
			# (note: the blank tabulate entries are to make a small indent)
			head = '{!s} mismatch at index {!s}'.format(item, i)
			table = tabulate([['', name1, repr(a)], ['', name2, repr(b)]], tablefmt='plain')
			raise AssertionError('%s\n%s' % (head,table))

import unittest
class ValidateTests(unittest.TestCase):

	def test_equal(self):
		validate_equal(3, 3)
		self.assertRaises(AssertionError, validate_equal, 3, 4)

	def test_nonnegative(self):
		validate_nonnegative([])
		validate_nonnegative([0,3,1])
		with self.assertRaises(AssertionError) as cm:
			validate_nonnegative([2,-5], name='weights')
		assert 'negative value in weights at index 1' in str(cm.exception)

	def test_nondecreasing(self):
		validate_nondecreasing([])
		validate_nondecreasing([0,0,1,5,5])
		with self.assertRaises(AssertionError) as cm:
			validate_nondecreasing([1,3,2], name='totals')
		assert 'totals decreases at index 2' in str(cm.exception)

	def test_sequence(self):
		validate_sequence([1,2,3], (1,2,3))
		self.assertRaises(AssertionError, validate_sequence, [1,2], [1,2,3])
		with self.assertRaises(AssertionError) as cm:
			validate_sequence([1,2,3], [1,5,3], 'stored', 'computed', item='total')
		msg = str(cm.exception)
		assert 'total mismatch at index 1' in msg
		assert 'stored' in msg and 'computed' in msg
