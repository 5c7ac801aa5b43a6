
from .selector import Entry, InvalidWeight

import logging
import yaml

'''
Reads selector definitions from YAML documents.

A document looks like::

    choices:
      heads: 3
      tails: 1
    seed: 42

``choices`` may also be a list of ``[item, weight]`` pairs, or a list of
``{item: ..., weight: ...}`` mappings.  ``seed`` is optional.
'''

def from_dict(d):
	if not isinstance(d, dict):
		error('document is not a YAML mapping')

	out = {
		'entries': consume__choices(d),
		'seed': consume__seed(d),
	}
	if d:
		error('unrecognized section: %r' % d.popitem()[0])
	return out

def consume__choices(config):
	''' Eats 'choices' section and returns a list of Entries '''
	choices = pop_required(config, 'choices')

	if isinstance(choices, dict):
		pairs = list(choices.items())
	elif isinstance(choices, list):
		pairs = [read_pair(x, where='choices[%d]' % i) for (i,x) in enumerate(choices)]
	else:
		error('must be a mapping or a list', where='choices')

	return [build_entry(item, weight) for (item, weight) in pairs]

def read_pair(x, where):
	if isinstance(x, list):
		if len(x) != 2:
			error('expected [item, weight], got %d values' % len(x), where)
		return tuple(x)
	if isinstance(x, dict):
		x = dict(x)
		item = pop_required(x, 'item', where)
		weight = pop_required(x, 'weight', where)
		if x:
			error('unrecognized key: %r' % x.popitem()[0], where)
		return (item, weight)
	error('expected [item, weight] or a mapping', where)

def build_entry(item, weight):
	where = 'choices:%s' % (item,)
	try: hash(item)
	except TypeError: error('item is not hashable', where)

	try: return Entry(item, weight)
	except InvalidWeight as e: error(str(e), where)

def consume__seed(config):
	''' Eats optional 'seed' section. '''
	seed = config.pop('seed', None)
	if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
		error('must be an integer', where='seed')
	return seed

#----------------------------------------------------------
# helpers

def error(msg='', where=''):
	s = 'config: ' + where + (': ' if where else '') + msg
	raise RuntimeError(s)

def pop_required(d, key, where=''):
	try: return d.pop(key)
	except KeyError:
		error('missing required key: ' + repr(key), where)

def merge(left, right, path=()):
	# recursively merge dictionaries
	if dict == type(left) == type(right):
		out = {}
		for key in set(left) | set(right):
			if key in left and key in right:
				out[key] = merge(left[key], right[key], path + (key,))
			elif key in left:  out[key] = left[key]
			elif key in right: out[key] = right[key]
			else: assert False, 'huh?'
		return out
	# prefer the newer value, but be vocal.
	else:
		if left != right:
			pathstr = ':'.join(map(repr,path)) or 'root'
			logging.warning('config key overriden at %s\n  old: %r\n  new: %r', pathstr, left, right)
		return right

def load_all(files):
	from functools import reduce

	dicts = list(map(yaml.safe_load, files))

	# empty file in yaml is None
	if any(d is None for d in dicts):
		logging.debug('empty config file')
	dicts = [x for x in dicts if x is not None]

	if not all(isinstance(d, dict) for d in dicts):
		error('config must be a YAML mapping')

	return reduce(merge, dicts, {})

#----------------------------------------------------------

import io
import unittest
class ConfigTests(unittest.TestCase):

	def load(self, *texts):
		return load_all([io.StringIO(t) for t in texts])

	def test_mapping_form(self):
		cfg = from_dict(self.load('choices: {heads: 3, tails: 1}\nseed: 42\n'))
		self.assertListEqual(sorted(cfg['entries']), [Entry('heads', 3), Entry('tails', 1)])
		self.assertEqual(cfg['seed'], 42)

	def test_list_forms(self):
		cfg = from_dict(self.load(
			'choices:\n'
			'  - [a, 1]\n'
			'  - {item: b, weight: 0}\n'
		))
		self.assertListEqual(cfg['entries'], [Entry('a', 1), Entry('b', 0)])
		self.assertIsNone(cfg['seed'])

	def test_merge(self):
		cfg = from_dict(self.load(
			'choices: {a: 1, b: 2}\n',
			'',
			'choices: {b: 5, c: 0}\nseed: 1\n',
		))
		self.assertDictEqual(dict(cfg['entries']), {'a': 1, 'b': 5, 'c': 0})
		self.assertEqual(cfg['seed'], 1)

	def test_errors(self):
		def check(text, fragment):
			with self.assertRaises(RuntimeError) as cm:
				from_dict(self.load(text))
			self.assertIn(fragment, str(cm.exception))

		check('seed: 3\n', "missing required key: 'choices'")
		check('choices: {a: 1}\nfoo: 2\n', 'unrecognized section')
		check('choices: {a: -5}\n', 'Negative weight')
		check('choices: {a: 1.5}\n', 'Non-integral weight')
		check('choices: 3\n', 'must be a mapping or a list')
		check('choices: [[a, 1, 2]]\n', 'choices[0]')
		check('choices: [{item: a}]\n', "missing required key: 'weight'")
		check('choices: [{item: a, weight: 1, x: 2}]\n', 'unrecognized key')
		check('choices: [[[x], 1]]\n', 'not hashable')
		check('choices: {a: 1}\nseed: yes\n', 'seed: must be an integer')

	def test_not_a_mapping(self):
		self.assertRaises(RuntimeError, self.load, '- 1\n- 2\n')
		self.assertRaises(RuntimeError, from_dict, [1, 2])
