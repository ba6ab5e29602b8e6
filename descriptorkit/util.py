# descriptorkit - output script descriptor toolkit
# Copyright (C) 2011 Thomas Voegtlin
#
# Permission is hereby granted, free of charge, to any person
# obtaining a copy of this software and associated documentation files
# (the "Software"), to deal in the Software without restriction,
# including without limitation the rights to use, copy, modify, merge,
# publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so,
# subject to the following conditions:
#
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS
# BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN
# ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN
# CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.
from typing import Any, Optional


def inv_dict(d):
    return {v: k for k, v in d.items()}


class DescriptorException(Exception):
    """Base class of everything the descriptor core raises."""


class BitcoinException(DescriptorException): pass


# --- syntax

class DescriptorSyntaxError(DescriptorException):
    """Malformed descriptor text. `offset` is the byte offset of the problem."""

    def __init__(self, message: str, *, offset: Optional[int] = None):
        DescriptorException.__init__(self, message)
        self.message = message
        self.offset = offset

    def __str__(self):
        if self.offset is None:
            return self.message
        return f"{self.message} (at offset {self.offset})"


class UnexpectedToken(DescriptorSyntaxError): pass
class UnbalancedParentheses(DescriptorSyntaxError): pass
class UnknownFunction(DescriptorSyntaxError): pass
class NestingTooDeep(DescriptorSyntaxError): pass


# --- checksum

class ChecksumError(DescriptorException):
    """Malformed checksum, or a character the checksum cannot cover."""


class ChecksumMismatch(ChecksumError):

    def __init__(self, expected: str, got: str, *, offset: Optional[int] = None):
        ChecksumError.__init__(self, f"checksum mismatch: expected {expected}, got {got}")
        self.expected = expected
        self.got = got
        self.offset = offset


# --- semantics

class SemanticError(DescriptorException):
    """Well-formed text describing an invalid script (nesting, threshold, placement)."""


# --- keys

class KeyEncodingError(DescriptorException):
    """Bad base58, hex, WIF or extended key payload."""


class InvalidKeyEncoding(KeyEncodingError):

    def __init__(self, message: str, *, offset: Optional[int] = None):
        KeyEncodingError.__init__(self, message)
        self.message = message
        self.offset = offset

    def __str__(self):
        if self.offset is None:
            return self.message
        return f"{self.message} (at offset {self.offset})"


# --- derivation

class DerivationError(DescriptorException):
    """Key derivation failed: hardened step from a public key, bad index, ..."""


class InvalidChildKey(DerivationError):
    """The derived child key is invalid (tweak >= n, or zero/infinity result).
    Callers may retry with the next index; this layer never does.
    """


def assert_bytes(*args):
    for x in args:
        assert isinstance(x, (bytes, bytearray)), f"expected bytes, got {type(x)}"


def to_bytes(something, encoding='utf8') -> bytes:
    """
    cast string to bytes() like object
    """
    if isinstance(something, bytes):
        return something
    if isinstance(something, str):
        return something.encode(encoding)
    elif isinstance(something, bytearray):
        return bytes(something)
    else:
        raise TypeError("Not a string or bytes like object")


bfh = bytes.fromhex


def is_hex_str(text: Any) -> bool:
    if not isinstance(text, str): return False
    try:
        b = bytes.fromhex(text)
    except ValueError:
        return False
    # forbid whitespaces in text:
    if len(text) != 2 * len(b):
        return False
    return True
