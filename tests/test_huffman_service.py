import logging
import math
import os
import random
import sys
from concurrent.futures import ThreadPoolExecutor
from types import MappingProxyType

import pytest

# Add the project root to path
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if PROJECT_ROOT not in sys.path:
	sys.path.insert(0, PROJECT_ROOT)

from huffman_core import CodeModel, WeightedAlphabet, build_model  # noqa: E402
from huffman_errors import MalformedBitstring, UnencodableInput  # noqa: E402
from huffman_service import HuffmanService, decode_bitstring, encode_bitstring  # noqa: E402


def _get_service(weights=None):
	if weights is None:
		weights = {'a': 15, 'b': 7, 'c': 6, 'd': 6, 'e': 5}
	return HuffmanService(weights)


def test_roundtrip_simple_text():
	svc = _get_service()
	text = 'abacabadeeab'
	bits = svc.encode_bitstring(text)
	assert set(bits) <= {'0', '1'}
	assert svc.decode_bitstring(bits) == text


def test_encoding_is_concatenation_of_codes():
	svc = _get_service()
	table = svc.encode_table()
	assert svc.encode_bitstring('bad') == table['b'] + table['a'] + table['d']


def test_empty_input():
	svc = _get_service()
	assert svc.encode_bitstring('') == ''
	assert svc.decode_bitstring('') == ''


def test_tables_match_model():
	svc = _get_service({'a': 2, 'b': 1, 'c': 1})
	assert svc.encode_table() is svc.model.encode
	assert svc.decode_table() is svc.model.decode
	for symbol, code in svc.encode_table().items():
		assert svc.decode_table()[code] == symbol


def test_service_accepts_a_prebuilt_model():
	model = build_model({'x': 3, 'y': 1})
	svc = HuffmanService(model)
	assert svc.model is model


def test_greedy_prefers_longest_symbol():
	svc = _get_service({'e': 5, 'r': 3, 'er': 4})
	table = svc.encode_table()
	assert svc.encode_bitstring('err') == table['er'] + table['r']
	assert svc.encode_bitstring('e') == table['e']
	assert svc.decode_bitstring(svc.encode_bitstring('reerer')) == 'reerer'


def test_greedy_does_not_backtrack():
	# 'ab' is taken first, leaving 'c' which has no code of its own
	svc = _get_service({'ab': 3, 'a': 2, 'bc': 2})
	with pytest.raises(UnencodableInput) as excinfo:
		svc.encode_bitstring('abc')
	assert excinfo.value.position == 2


def test_unknown_symbol_is_unencodable():
	svc = _get_service()
	with pytest.raises(UnencodableInput) as excinfo:
		svc.encode_bitstring('abx')
	assert excinfo.value.position == 2


def test_non_binary_characters_are_malformed():
	svc = _get_service()
	with pytest.raises(MalformedBitstring) as excinfo:
		svc.decode_bitstring('012')
	assert excinfo.value.position == 2


def test_truncated_bitstring_is_malformed():
	svc = _get_service()
	bits = svc.encode_bitstring('bcde')
	with pytest.raises(MalformedBitstring):
		svc.decode_bitstring(bits[:-1])


def test_unassigned_code_is_malformed():
	# '11' is left unassigned, so the scan runs past the longest code
	model = CodeModel(
		encode=MappingProxyType({'a': '0', 'b': '10'}),
		decode=MappingProxyType({'0': 'a', '10': 'b'}),
		max_symbol_length=1,
		max_code_length=2,
	)
	svc = HuffmanService(model)
	assert svc.decode_bitstring('010') == 'ab'
	with pytest.raises(MalformedBitstring) as excinfo:
		svc.decode_bitstring('0110')
	assert excinfo.value.position == 1


def test_single_symbol_alphabet_encodes_to_nothing(caplog):
	svc = _get_service({'a': 3})
	with caplog.at_level(logging.WARNING, logger='huffman_service'):
		assert svc.encode_bitstring('aaa') == ''
	assert 'zero bits' in caplog.text
	assert svc.decode_bitstring('') == ''


def test_single_symbol_alphabet_rejects_bits():
	svc = _get_service({'a': 3})
	with pytest.raises(MalformedBitstring):
		svc.decode_bitstring('0')


def test_single_symbol_alphabet_still_rejects_unknown_text():
	svc = _get_service({'a': 3})
	with pytest.raises(UnencodableInput):
		svc.encode_bitstring('ab')


def test_module_level_functions_take_a_model():
	model = build_model({'the ': 10, 't': 2, 'h': 2, 'e': 3, ' ': 4, 'c': 1, 'a': 1})
	text = 'the cat the hat'
	bits = encode_bitstring(model, text)
	assert decode_bitstring(model, bits) == text


def test_compression_does_not_exceed_fixed_width():
	text = (
		'it was the best of times it was the worst of times it was the age of '
		'wisdom it was the age of foolishness'
	)
	alphabet = WeightedAlphabet.from_text(text)
	svc = HuffmanService(alphabet)
	bits = svc.encode_bitstring(text)
	fixed_width = math.ceil(math.log2(len(alphabet)))
	assert len(bits) <= fixed_width * len(text)
	assert svc.decode_bitstring(bits) == text


def test_concurrent_readers_share_one_model():
	svc = _get_service()
	texts = [''.join(random.Random(seed).choices('abcde', k=200)) for seed in range(16)]
	with ThreadPoolExecutor(max_workers=4) as pool:
		decoded = list(pool.map(lambda t: svc.decode_bitstring(svc.encode_bitstring(t)), texts))
	assert decoded == texts


@pytest.mark.timeout(120)
def test_roundtrip_random_multichar_alphabet():
	rng = random.Random(1234)
	symbols = ['a', 'b', 'c', 'ab', 'bc', 'abc', 'the', ' ', 'x']
	weights = {symbol: rng.randint(0, 50) for symbol in symbols}
	svc = _get_service(weights)

	text = ''.join(rng.choice(symbols) for _ in range(20000))
	bits = svc.encode_bitstring(text)
	assert svc.decode_bitstring(bits) == text
