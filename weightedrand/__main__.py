#!/usr/bin/env python3

import sys
import random
import argparse
from collections import Counter
from functools import partial

from tabulate import tabulate

from .selector import Selector, InvalidWeight
from . import config

PROG = 'weightedrand'

def main(argv=None):
	import logging

	parser = argparse.ArgumentParser('python -m ' + PROG,
		description='Draw from a weighted selector and tally the results.')

	parser.add_argument('CONFIG', nargs='+',
		type=argparse.FileType('r'),
		help='paths to config files')

	parser.add_argument('-n', '--draws',
		type=nonnegative_int, default=10000,
		help='number of items to draw')

	parser.add_argument('-s', '--seed',
		type=int, default=None,
		help='seed for the random source (overrides the config)')

	parser.add_argument('-D', '--debug',
		action='store_true',
		help='display debug logs')

	args = parser.parse_args(argv)

	logging.basicConfig()
	if args.debug:
		logging.getLogger().setLevel(10)

	try:
		cfg = config.from_dict(config.load_all(args.CONFIG))
	except RuntimeError as e:
		die('{}', e)

	seed = cfg['seed'] if args.seed is None else args.seed
	rng = random.Random(seed)

	try:
		selector = Selector(cfg['entries'], rng=rng)
	except InvalidWeight as e:
		die('{}', e)
	if args.draws and not selector.total:
		die('cannot draw: total weight is zero')

	counts = Counter(selector.pick_many(args.draws))
	print(tally_table(selector, counts, args.draws))

def tally_table(selector, counts, ndraws):
	''' Expected versus observed shares for each entry, heaviest first. '''
	rows = []
	for (i, entry) in reversed(list(enumerate(selector.entries))):
		expected = float(selector.probability(i)) if selector.total else 0.
		observed = counts[entry.item]
		rows.append([
			entry.item, entry.weight, expected, observed,
			observed / ndraws if ndraws else 0.,
		])
	headers = ['item', 'weight', 'expected', 'count', 'observed']
	return tabulate(rows, headers=headers, floatfmt='.4f')

#-----------------------------
# argparse argument types

def int_with_min(min, errmsg, s):
	x = int(s)
	if x < min:
		raise argparse.ArgumentTypeError('%s: %d' % (errmsg, x))
	return x
nonnegative_int = partial(int_with_min, 0, 'Not a non-negative integer')

#-----------------------------

def say_err(msg, *args, **kw): print('%s: %s' % (PROG, msg.format(*args, **kw)), file=sys.stderr)

def die(msg, *args, **kw):
	say_err('FATAL: ' + msg, *args, **kw)
	say_err('Aborting.')
	sys.exit(1)

#-----------------------------

import io
import unittest
from contextlib import redirect_stdout, redirect_stderr

class MainTests(unittest.TestCase):

	def setUp(self):
		import tempfile, os
		self.dir = tempfile.TemporaryDirectory()
		self.path = partial(os.path.join, self.dir.name)

	def tearDown(self):
		self.dir.cleanup()

	def write(self, name, text):
		with open(self.path(name), 'w') as f:
			f.write(text)
		return self.path(name)

	def run_main(self, *argv):
		out, err = io.StringIO(), io.StringIO()
		with redirect_stdout(out), redirect_stderr(err):
			try: main(list(argv))
			except SystemExit as e: code = e.code
			else: code = 0
		return (code, out.getvalue(), err.getvalue())

	def test_tally(self):
		path = self.write('a.yaml', 'choices: {heads: 3, tails: 1, edge: 0}\nseed: 4\n')
		(code, out, _) = self.run_main(path, '-n', '2000')
		self.assertEqual(code, 0)
		lines = out.splitlines()
		self.assertEqual(lines[0].split(), ['item', 'weight', 'expected', 'count', 'observed'])
		self.assertEqual(lines[2].split()[:3], ['heads', '3', '0.7500'])
		self.assertEqual(lines[3].split()[:3], ['tails', '1', '0.2500'])
		self.assertEqual(lines[4].split(), ['edge', '0', '0.0000', '0', '0.0000'])
		self.assertEqual(int(lines[2].split()[3]) + int(lines[3].split()[3]), 2000)

	def test_seed_is_reproducible(self):
		path = self.write('a.yaml', 'choices: {a: 1, b: 1, c: 1}\n')
		(_, out1, _) = self.run_main(path, '-s', '9', '-n', '50')
		(_, out2, _) = self.run_main(path, '-s', '9', '-n', '50')
		self.assertEqual(out1, out2)

	def test_zero_total(self):
		path = self.write('a.yaml', 'choices: {a: 0}\n')
		(code, _, err) = self.run_main(path)
		self.assertEqual(code, 1)
		self.assertIn('total weight is zero', err)

	def test_bad_config(self):
		path = self.write('a.yaml', 'choices: {a: -2}\n')
		(code, _, err) = self.run_main(path)
		self.assertEqual(code, 1)
		self.assertIn('Negative weight', err)

	def test_total_overflow(self):
		path = self.write('a.yaml', 'choices: {a: 9223372036854775807, b: 1}\n')
		(code, out, err) = self.run_main(path, '-n', '1')
		self.assertEqual(code, 1)
		self.assertEqual(out, '')
		self.assertIn('weightedrand: FATAL: total weight exceeds', err)

if __name__ == '__main__':
	main()
