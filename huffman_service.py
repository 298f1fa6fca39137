# filename: huffman_service.py

import logging

from huffman_core import CodeModel, build_model, longest_match
from huffman_errors import MalformedBitstring, UnencodableInput

logger = logging.getLogger(__name__)

BITS = frozenset("01")


def encode_bitstring(model, text):
    """Encode ``text`` to a string of '0'/'1' using longest-match-first tokenization.

    At every position the longest symbol of the alphabet that matches is
    taken, without lookahead or backtracking, so with overlapping symbols
    ("e" and "er") the result is greedy rather than optimal.
    """
    if text and model.max_code_length == 0:
        logger.warning(
            "single-symbol code assigns zero bits; %d characters encode to an empty bitstring",
            len(text),
        )

    pieces = []
    index = 0
    while index < len(text):
        length = longest_match(text, index, model.encode, model.max_symbol_length)
        if not length:
            raise UnencodableInput(
                f"no symbol matches text at position {index}: {text[index:index + 10]!r}",
                position=index,
            )
        pieces.append(model.encode[text[index:index + length]])
        index += length
    return "".join(pieces)


def decode_bitstring(model, bits):
    """Decode a '0'/'1' string produced by :func:`encode_bitstring`.

    The code is prefix-free, so the shortest prefix found in the decode
    table is the only candidate. A scan that passes ``max_code_length``
    without a hit means the input is corrupt or truncated.
    """
    if not BITS.issuperset(bits):
        position = next(i for i, bit in enumerate(bits) if bit not in BITS)
        raise MalformedBitstring(
            f"unexpected character {bits[position]!r} at position {position}",
            position=position,
        )

    decoded = []
    index = 0
    while index < len(bits):
        for length in range(1, model.max_code_length + 1):
            if index + length > len(bits):
                raise MalformedBitstring(
                    f"bitstring ends inside a code at position {index}", position=index
                )
            found, symbol = model.lookup_symbol(bits[index:index + length])
            if found:
                break
        else:
            raise MalformedBitstring(
                f"no code of up to {model.max_code_length} bits matches at position {index}",
                position=index,
            )
        decoded.append(symbol)
        index += length
    return "".join(decoded)


class HuffmanService:
    def __init__(self, alphabet):
        if isinstance(alphabet, CodeModel):
            self.model = alphabet
        else:
            self.model = build_model(alphabet)

    def encode_table(self):
        return self.model.encode

    def decode_table(self):
        return self.model.decode

    def encode_bitstring(self, text):
        return encode_bitstring(self.model, text)

    def decode_bitstring(self, bits):
        return decode_bitstring(self.model, bits)
