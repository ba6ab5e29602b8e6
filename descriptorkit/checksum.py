# Copyright (c) 2017 Andrew Chow
# Copyright (c) 2023 The Electrum developers
# Distributed under the MIT software license, see the accompanying
# file LICENCE or http://www.opensource.org/licenses/mit-license.php
#
# Descriptor checksums (BIP-0380).
# See https://github.com/bitcoin/bitcoin/blob/master/src/script/descriptor.cpp

from typing import List, Optional, Tuple

from .util import ChecksumError


CHECKSUM_LENGTH = 8
CHECKSUM_SEPARATOR = "#"

# A character's position in INPUT_CHARSET is split in two: the low 5 bits are
# a symbol on their own, the high bits (a class in 0..2) are packed three at a
# time into an extra symbol. Case errors in the first group of 32 characters
# therefore only change the class symbol.
INPUT_CHARSET = "0123456789()[],'/*abcdefgh@:$%{}IJKLMNOPQRSTUVWXYZ&+-.;<=>?!^_|~ijklmnopqrstuvwxyzABCDEFGH`#\"\\ "
_INPUT_CHARSET_INV = {c: i for (i, c) in enumerate(INPUT_CHARSET)}
CHECKSUM_CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
_CHECKSUM_CHARSET_INV = {c: i for (i, c) in enumerate(CHECKSUM_CHARSET)}

_GENERATOR = (0xf5dee51989, 0xa9fdca3312, 0x1bab10e32d, 0x3706b1677a, 0x644d626ffd)

assert len(INPUT_CHARSET) == 95
assert len(CHECKSUM_CHARSET) == 32


def _polymod(c: int, val: int) -> int:
    """One step of the GF(32) BCH code used for descriptor checksums.
    `c` holds the 40-bit remainder so far, `val` is the next 5-bit symbol.
    """
    c0 = c >> 35
    c = ((c & 0x7ffffffff) << 5) ^ val
    for i, gen in enumerate(_GENERATOR):
        if (c0 >> i) & 1:
            c ^= gen
    return c


def _expand(desc: str) -> List[int]:
    """Maps descriptor text to the symbol stream the checksum is computed over."""
    symbols = []
    cls = 0
    clscount = 0
    for idx, ch in enumerate(desc):
        pos = _INPUT_CHARSET_INV.get(ch)
        if pos is None:
            raise ChecksumError(f"invalid character {ch!r} at position {idx}: "
                                f"not covered by the descriptor checksum")
        symbols.append(pos & 31)
        cls = cls * 3 + (pos >> 5)
        clscount += 1
        if clscount == 3:
            symbols.append(cls)
            cls = 0
            clscount = 0
    if clscount > 0:
        symbols.append(cls)
    return symbols


def descriptor_checksum(desc: str) -> str:
    """
    Compute the checksum for a descriptor

    :param desc: The descriptor string to compute a checksum for (without '#')
    :return: A checksum
    :raises: ChecksumError: if ``desc`` contains characters outside INPUT_CHARSET
    """
    c = 1
    for symbol in _expand(desc):
        c = _polymod(c, symbol)
    for _ in range(CHECKSUM_LENGTH):
        c = _polymod(c, 0)
    c ^= 1
    return ''.join(CHECKSUM_CHARSET[(c >> (5 * (7 - j))) & 31] for j in range(CHECKSUM_LENGTH))


def add_checksum(desc: str) -> str:
    """
    Compute and attach the checksum for a descriptor

    :param desc: The descriptor string to add a checksum to
    :return: Descriptor with checksum
    """
    return desc + CHECKSUM_SEPARATOR + descriptor_checksum(desc)


def split_checksum(text: str) -> Tuple[str, Optional[str]]:
    """Splits `text` at the first '#'. Returns (descriptor, checksum or None)."""
    i = text.find(CHECKSUM_SEPARATOR)
    if i == -1:
        return text, None
    return text[:i], text[i + 1:]


def check_checksum_format(checksum: str) -> None:
    if len(checksum) != CHECKSUM_LENGTH:
        raise ChecksumError(f"checksum must be {CHECKSUM_LENGTH} characters long, "
                            f"got {len(checksum)}: {checksum!r}")
    for ch in checksum:
        if ch not in _CHECKSUM_CHARSET_INV:
            raise ChecksumError(f"invalid checksum character {ch!r}. "
                                f"expected one of {CHECKSUM_CHARSET!r}")


def verify_checksum(desc: str, checksum: str) -> bool:
    """Returns whether `checksum` matches `desc`.
    Raises ChecksumError if the checksum itself is malformed, or if `desc`
    cannot be checksummed at all.
    """
    check_checksum_format(checksum)
    return descriptor_checksum(desc) == checksum
