# Copyright (c) 2017, 2020 Pieter Wuille
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in
# all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN
# THE SOFTWARE.

"""Bech32/Bech32m codec for segwit addresses (BIP173, BIP350).

Unlike the reference code, failures raise SegwitAddrError with a reason,
so callers can surface why an address was rejected.
"""

from enum import Enum
from typing import List, NamedTuple, Sequence, Tuple

from .util import BitcoinException


CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
_CHARSET_INVERSE = {c: i for i, c in enumerate(CHARSET)}

_GENERATOR = (0x3b6a57b2, 0x26508e6d, 0x1ea119fa, 0x3d4233dd, 0x2a1462b3)
_MAX_LENGTH = 90


class SegwitAddrError(BitcoinException): pass


class Encoding(Enum):
    BECH32 = 1
    BECH32M = 0x2bc830a3

    @property
    def const(self) -> int:
        return self.value


class DecodedBech32(NamedTuple):
    encoding: Encoding
    hrp: str
    data: Sequence[int]  # 5-bit ints, checksum stripped


def _polymod(values: Sequence[int]) -> int:
    chk = 1
    for value in values:
        top = chk >> 25
        chk = (chk & 0x1ffffff) << 5 ^ value
        for i, gen in enumerate(_GENERATOR):
            if (top >> i) & 1:
                chk ^= gen
    return chk


def _hrp_expand(hrp: str) -> List[int]:
    return [ord(c) >> 5 for c in hrp] + [0] + [ord(c) & 31 for c in hrp]


def _create_checksum(encoding: Encoding, hrp: str, data: Sequence[int]) -> List[int]:
    mod = _polymod(_hrp_expand(hrp) + list(data) + [0] * 6) ^ encoding.const
    return [(mod >> (5 * (5 - i))) & 31 for i in range(6)]


def bech32_encode(encoding: Encoding, hrp: str, data: Sequence[int]) -> str:
    combined = list(data) + _create_checksum(encoding, hrp, data)
    return hrp + '1' + ''.join(CHARSET[d] for d in combined)


def bech32_decode(bech: str) -> DecodedBech32:
    if bech.lower() != bech and bech.upper() != bech:
        raise SegwitAddrError('mixed case in bech32 string')
    if len(bech) > _MAX_LENGTH:
        raise SegwitAddrError('bech32 string too long')
    bech = bech.lower()
    pos = bech.rfind('1')
    if pos < 1 or pos + 7 > len(bech):
        raise SegwitAddrError('bech32 separator missing or misplaced')
    hrp = bech[:pos]
    if any(not (33 <= ord(c) <= 126) for c in hrp):
        raise SegwitAddrError('invalid character in human readable part')
    try:
        data = [_CHARSET_INVERSE[c] for c in bech[pos+1:]]
    except KeyError as e:
        raise SegwitAddrError(f'invalid bech32 character: {e.args[0]!r}') from None
    check = _polymod(_hrp_expand(hrp) + data)
    for encoding in Encoding:
        if check == encoding.const:
            return DecodedBech32(encoding=encoding, hrp=hrp, data=data[:-6])
    raise SegwitAddrError('invalid bech32 checksum')


def convertbits(data: Sequence[int], frombits: int, tobits: int, pad: bool = True) -> List[int]:
    """General power-of-2 base conversion."""
    acc = 0
    bits = 0
    ret = []
    maxv = (1 << tobits) - 1
    max_acc = (1 << (frombits + tobits - 1)) - 1
    for value in data:
        if value < 0 or (value >> frombits):
            raise SegwitAddrError('value out of range for base conversion')
        acc = ((acc << frombits) | value) & max_acc
        bits += frombits
        while bits >= tobits:
            bits -= tobits
            ret.append((acc >> bits) & maxv)
    if pad:
        if bits:
            ret.append((acc << (tobits - bits)) & maxv)
    elif bits >= frombits or ((acc << (tobits - bits)) & maxv):
        raise SegwitAddrError('invalid padding in base conversion')
    return ret


def decode_segwit_address(hrp: str, addr: str) -> Tuple[int, bytes]:
    """Returns (witness version, witness program)."""
    decoded = bech32_decode(addr)
    if decoded.hrp != hrp:
        raise SegwitAddrError(f'unexpected human readable part: {decoded.hrp!r} (expected {hrp!r})')
    if not decoded.data:
        raise SegwitAddrError('empty data section')
    witver = decoded.data[0]
    witprog = bytes(convertbits(decoded.data[1:], 5, 8, pad=False))
    if witver > 16:
        raise SegwitAddrError(f'invalid witness version: {witver}')
    if not (2 <= len(witprog) <= 40):
        raise SegwitAddrError(f'invalid witness program length: {len(witprog)}')
    if witver == 0 and len(witprog) not in (20, 32):
        raise SegwitAddrError(f'invalid witness v0 program length: {len(witprog)}')
    expected = Encoding.BECH32 if witver == 0 else Encoding.BECH32M
    if decoded.encoding != expected:
        raise SegwitAddrError(f'witness version {witver} must use {expected.name.lower()}')
    return witver, witprog


def encode_segwit_address(hrp: str, witver: int, witprog: bytes) -> str:
    encoding = Encoding.BECH32 if witver == 0 else Encoding.BECH32M
    addr = bech32_encode(encoding, hrp, [witver] + convertbits(witprog, 8, 5))
    decode_segwit_address(hrp, addr)  # sanity check; raises on bad witver/witprog
    return addr
