# -*- coding: utf-8 -*-
#
# descriptorkit - output script descriptor toolkit
# Copyright (C) 2018 The Electrum developers
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

from typing import Union, Tuple

from ecdsa.ecdsa import curve_secp256k1, generator_secp256k1
from ecdsa.curves import SECP256k1
from ecdsa.ellipticcurve import Point, PointJacobi, INFINITY

from .util import assert_bytes


CURVE_ORDER = SECP256k1.order
_FIELD_SIZE = curve_secp256k1.p()


class InvalidECPointException(Exception):
    """e.g. not on curve, or infinity"""


def string_to_number(b: bytes) -> int:
    return int.from_bytes(b, byteorder='big', signed=False)


def point_to_ser(point: Tuple[int, int], compressed=True) -> bytes:
    x, y = point
    if compressed:
        return bytes([2 + (y & 1)]) + x.to_bytes(32, 'big')
    return b'\x04' + x.to_bytes(32, 'big') + y.to_bytes(32, 'big')


def _y_from_x(x: int, *, odd: bool) -> int:
    y2 = (pow(x, 3, _FIELD_SIZE) + curve_secp256k1.a() * x + curve_secp256k1.b()) % _FIELD_SIZE
    # p = 3 mod 4, so a square root is a single exponentiation
    y = pow(y2, (_FIELD_SIZE + 1) // 4, _FIELD_SIZE)
    if (y * y) % _FIELD_SIZE != y2:
        raise InvalidECPointException('x coordinate has no point on the curve')
    if odd != bool(y & 1):
        y = _FIELD_SIZE - y
    return y


def ser_to_point(ser: bytes) -> Tuple[int, int]:
    assert_bytes(ser)
    if len(ser) == 33 and ser[0] in (0x02, 0x03):
        x = string_to_number(ser[1:])
        if x >= _FIELD_SIZE:
            raise InvalidECPointException('x coordinate out of range')
        return x, _y_from_x(x, odd=ser[0] == 0x03)
    if len(ser) == 65 and ser[0] == 0x04:
        x, y = string_to_number(ser[1:33]), string_to_number(ser[33:])
        if x >= _FIELD_SIZE or y >= _FIELD_SIZE or not curve_secp256k1.contains_point(x, y):
            raise InvalidECPointException('point not on curve')
        return x, y
    raise InvalidECPointException(f'unexpected pubkey encoding: len={len(ser)}, first byte={ser[:1].hex()}')


def _to_jacobian(point: Tuple[int, int]) -> PointJacobi:
    x, y = point
    return PointJacobi.from_affine(Point(curve_secp256k1, x, y, CURVE_ORDER))


def is_secret_within_curve_range(secret: Union[int, bytes]) -> bool:
    if isinstance(secret, bytes):
        secret = string_to_number(secret)
    return 0 < secret < CURVE_ORDER


class ECPubkey(object):

    def __init__(self, b: bytes):
        self._x, self._y = ser_to_point(b)

    @classmethod
    def from_point(cls, point) -> 'ECPubkey':
        if point == INFINITY:
            raise InvalidECPointException('point at infinity')
        return ECPubkey(point_to_ser((point.x(), point.y()), compressed=False))

    def point(self) -> Tuple[int, int]:
        return self._x, self._y

    def get_public_key_bytes(self, compressed=True) -> bytes:
        return point_to_ser(self.point(), compressed)

    def get_public_key_hex(self, compressed=True) -> str:
        return self.get_public_key_bytes(compressed).hex()

    def __add__(self, other):
        if not isinstance(other, ECPubkey):
            raise TypeError('addition not defined for ECPubkey and {}'.format(type(other)))
        return self.from_point(_to_jacobian(self.point()) + _to_jacobian(other.point()))

    def __eq__(self, other):
        if not isinstance(other, ECPubkey):
            return False
        return self.point() == other.point()

    def __ne__(self, other):
        return not (self == other)

    def __hash__(self):
        return hash(self.point())


class ECPrivkey(ECPubkey):

    def __init__(self, privkey_bytes: bytes):
        assert_bytes(privkey_bytes)
        if len(privkey_bytes) != 32:
            raise InvalidECPointException('unexpected size for secret. should be 32 bytes, not {}'.format(len(privkey_bytes)))
        secret = string_to_number(privkey_bytes)
        if not is_secret_within_curve_range(secret):
            raise InvalidECPointException('Invalid secret scalar (not within curve order)')
        self.secret_scalar = secret
        point = generator_secp256k1 * secret
        super().__init__(point_to_ser((point.x(), point.y()), compressed=False))

    def get_secret_bytes(self) -> bytes:
        return self.secret_scalar.to_bytes(32, 'big')
