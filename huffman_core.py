# filename: huffman_core.py

import heapq
import logging
from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from huffman_errors import InvalidInput, UnencodableInput

logger = logging.getLogger(__name__)


def longest_match(text, index, candidates, max_length):
    # Greedy maximal munch: longest key of `candidates` starting at `index`, 0 if none
    for length in range(min(max_length, len(text) - index), 0, -1):
        if text[index:index + length] in candidates:
            return length
    return 0


class WeightedAlphabet(Mapping):
    """Read-only mapping of symbol (non-empty str) to occurrence weight (int >= 0)."""

    def __init__(self, weights):
        if not isinstance(weights, Mapping):
            raise InvalidInput(f"alphabet must be a mapping, got {type(weights).__name__}")
        if not weights:
            raise InvalidInput("alphabet is empty")
        checked = {}
        for symbol, weight in weights.items():
            _check_entry(symbol, weight)
            checked[symbol] = weight
        self._weights = checked

    @classmethod
    def from_pairs(cls, pairs):
        weights = {}
        for entry in pairs:
            try:
                symbol, weight = entry
            except (TypeError, ValueError):
                raise InvalidInput(f"expected a (symbol, weight) pair, got {entry!r}") from None
            _check_symbol(symbol)
            if symbol in weights:
                raise InvalidInput(f"duplicate symbol {symbol!r}")
            weights[symbol] = weight
        return cls(weights)

    @classmethod
    def from_lists(cls, symbols, weights):
        symbols, weights = list(symbols), list(weights)
        if len(symbols) != len(weights):
            raise InvalidInput(
                f"{len(symbols)} symbols but {len(weights)} weights"
            )
        return cls.from_pairs(zip(symbols, weights))

    @classmethod
    def from_text(cls, text, symbols=None):
        # Frequency analysis of the input text
        if symbols is None:
            return cls(Counter(text))

        symbols = list(symbols)
        for symbol in symbols:
            _check_symbol(symbol)
        counts = Counter({symbol: 0 for symbol in symbols})
        known = frozenset(symbols)
        max_length = max((len(s) for s in symbols), default=0)
        index = 0
        while index < len(text):
            length = longest_match(text, index, known, max_length)
            if not length:
                raise UnencodableInput(
                    f"no symbol matches text at position {index}", position=index
                )
            counts[text[index:index + length]] += 1
            index += length
        return cls(counts)

    def __getitem__(self, symbol):
        return self._weights[symbol]

    def __iter__(self):
        return iter(self._weights)

    def __len__(self):
        return len(self._weights)

    def __repr__(self):
        return f"{type(self).__name__}({self._weights!r})"

    @property
    def max_symbol_length(self):
        return max(len(symbol) for symbol in self._weights)

    @property
    def total_weight(self):
        return sum(self._weights.values())


def _check_symbol(symbol):
    if not isinstance(symbol, str):
        raise InvalidInput(f"symbol must be a string, got {symbol!r}")
    if not symbol:
        raise InvalidInput("symbol must not be the empty string")


def _check_entry(symbol, weight):
    _check_symbol(symbol)
    if isinstance(weight, bool) or not isinstance(weight, int):
        raise InvalidInput(f"weight of {symbol!r} must be an integer, got {weight!r}")
    if weight < 0:
        raise InvalidInput(f"weight of {symbol!r} must not be negative, got {weight}")


class TreeNode:
    def __init__(self, weight, symbol=None, zero=None, one=None):
        self.weight = weight
        self.symbol = symbol
        self.zero = zero
        self.one = one

    @property
    def is_leaf(self):
        return self.zero is None and self.one is None

    def __lt__(self, other):
        return self.weight < other.weight


@dataclass(frozen=True)
class CodeModel:
    """Encode and decode tables derived from one Huffman tree.

    ``encode`` maps symbol -> bitstring of '0'/'1' characters and ``decode``
    is its inverse. Both are read-only views, so a model can be shared
    between threads once built.
    """

    encode: Mapping
    decode: Mapping
    max_symbol_length: int
    max_code_length: int

    def lookup_code(self, symbol):
        # A single-symbol model assigns "", so presence is reported separately
        if symbol in self.encode:
            return True, self.encode[symbol]
        return False, None

    def lookup_symbol(self, bits):
        if bits in self.decode:
            return True, self.decode[bits]
        return False, None

    def average_code_length(self, alphabet):
        total = sum(alphabet[symbol] for symbol in self.encode)
        if total == 0:
            return sum(len(code) for code in self.encode.values()) / len(self.encode)
        return sum(alphabet[s] * len(code) for s, code in self.encode.items()) / total


def build_tree(alphabet):
    # Build a priority queue for leaf nodes
    priority_queue = [TreeNode(weight, symbol=symbol) for symbol, weight in alphabet.items()]
    heapq.heapify(priority_queue)

    # Iteratively merge the two lightest nodes; first out takes bit 0
    while len(priority_queue) > 1:
        zero = heapq.heappop(priority_queue)
        one = heapq.heappop(priority_queue)
        merged = TreeNode(zero.weight + one.weight, zero=zero, one=one)
        heapq.heappush(priority_queue, merged)

    return priority_queue[0]


def generate_codes(root):
    codes = {}
    stack = [(root, "")]
    while stack:
        node, code = stack.pop()
        if node.is_leaf:
            codes[node.symbol] = code
            continue
        stack.append((node.one, code + "1"))
        stack.append((node.zero, code + "0"))
    return codes


def _as_alphabet(alphabet):
    if isinstance(alphabet, WeightedAlphabet):
        return alphabet
    if isinstance(alphabet, Mapping):
        return WeightedAlphabet(alphabet)
    if isinstance(alphabet, (str, bytes)) or not hasattr(alphabet, "__iter__"):
        raise InvalidInput(f"cannot build an alphabet from {type(alphabet).__name__}")
    return WeightedAlphabet.from_pairs(alphabet)


def build_model(alphabet):
    alphabet = _as_alphabet(alphabet)
    encode = generate_codes(build_tree(alphabet))
    decode = {code: symbol for symbol, code in encode.items()}
    model = CodeModel(
        encode=MappingProxyType(encode),
        decode=MappingProxyType(decode),
        max_symbol_length=alphabet.max_symbol_length,
        max_code_length=max(len(code) for code in encode.values()),
    )
    logger.debug(
        "built huffman model: %d symbols, max code length %d",
        len(encode), model.max_code_length,
    )
    return model
