# -*- coding: utf-8 -*-
#
# descriptorkit - output script descriptor toolkit
# Copyright (C) 2011 thomasv@gitorious
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

from typing import Tuple, Optional, Union, Sequence
from enum import IntEnum

from .util import bfh, BitcoinException, assert_bytes, to_bytes, inv_dict, is_hex_str
from . import segwit_addr
from . import constants
from .crypto import sha256d


class opcodes(IntEnum):
    # only what output script templates need
    OP_0 = 0x00
    OP_FALSE = OP_0
    OP_PUSHDATA1 = 0x4c
    OP_PUSHDATA2 = 0x4d
    OP_PUSHDATA4 = 0x4e
    OP_1NEGATE = 0x4f
    OP_1 = 0x51
    OP_TRUE = OP_1
    OP_16 = 0x60

    OP_DUP = 0x76
    OP_EQUAL = 0x87
    OP_EQUALVERIFY = 0x88
    OP_HASH160 = 0xa9
    OP_CHECKSIG = 0xac
    OP_CHECKMULTISIG = 0xae

    def hex(self) -> str:
        return bytes([self]).hex()


def script_num_to_bytes(i: int) -> bytes:
    """See CScriptNum in Bitcoin Core.
    Encodes an integer as bytes, to be used in script.
    """
    if i == 0:
        return b""

    result = bytearray()
    neg = i < 0
    absvalue = abs(i)
    while absvalue > 0:
        result.append(absvalue & 0xff)
        absvalue >>= 8

    if result[-1] & 0x80:
        result.append(0x80 if neg else 0x00)
    elif neg:
        result[-1] |= 0x80

    return bytes(result)


def _op_push(i: int) -> bytes:
    if i < opcodes.OP_PUSHDATA1:
        return int.to_bytes(i, length=1, byteorder="little", signed=False)
    elif i <= 0xff:
        return bytes([opcodes.OP_PUSHDATA1]) + int.to_bytes(i, length=1, byteorder="little", signed=False)
    elif i <= 0xffff:
        return bytes([opcodes.OP_PUSHDATA2]) + int.to_bytes(i, length=2, byteorder="little", signed=False)
    else:
        return bytes([opcodes.OP_PUSHDATA4]) + int.to_bytes(i, length=4, byteorder="little", signed=False)


def push_script(data: bytes) -> bytes:
    """Returns pushed data to the script, automatically
    choosing canonical opcodes depending on the length of the data.
    """
    data_len = len(data)

    # "small integer" opcodes
    if data_len == 0 or data_len == 1 and data[0] == 0:
        return bytes([opcodes.OP_0])
    elif data_len == 1 and data[0] <= 16:
        return bytes([opcodes.OP_1 - 1 + data[0]])
    elif data_len == 1 and data[0] == 0x81:
        return bytes([opcodes.OP_1NEGATE])

    return _op_push(data_len) + data


def add_number_to_script(i: int) -> bytes:
    return push_script(script_num_to_bytes(i))


def construct_script(items: Sequence[Union[str, int, bytes, opcodes]]) -> bytes:
    """Constructs bitcoin script from given items."""
    script = bytearray()
    for item in items:
        if isinstance(item, opcodes):
            script += bytes([item])
        elif type(item) is int:
            script += add_number_to_script(item)
        elif isinstance(item, (bytes, bytearray)):
            script += push_script(item)
        elif isinstance(item, str):
            assert is_hex_str(item)
            script += push_script(bfh(item))
        else:
            raise TypeError(f'unexpected item for script: {item!r}')
    return bytes(script)


def pubkeyhash_to_p2pkh_script(pubkey_hash160: bytes) -> bytes:
    return construct_script([
        opcodes.OP_DUP,
        opcodes.OP_HASH160,
        pubkey_hash160,
        opcodes.OP_EQUALVERIFY,
        opcodes.OP_CHECKSIG
    ])


def scripthash_to_p2sh_script(script_hash160: bytes) -> bytes:
    return construct_script([opcodes.OP_HASH160, script_hash160, opcodes.OP_EQUAL])


############ base58 #####################

__b58chars = b'123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz'
assert len(__b58chars) == 58
__b58chars_inv = inv_dict(dict(enumerate(__b58chars)))


class BaseDecodeError(BitcoinException): pass


class InvalidChecksum(BaseDecodeError):
    pass


def base_encode(v: bytes) -> str:
    """ encode v, which is a string of bytes, to base58."""
    assert_bytes(v)
    origlen = len(v)
    v = v.lstrip(b'\x00')
    newlen = len(v)

    num = int.from_bytes(v, byteorder='big')
    string = b""
    while num:
        num, idx = divmod(num, 58)
        string = __b58chars[idx:idx + 1] + string

    result = __b58chars[0:1] * (origlen - newlen) + string
    return result.decode('ascii')


def base_decode(v: Union[bytes, str]) -> bytes:
    """ decode base58 v into a string of bytes."""
    try:
        v = to_bytes(v, 'ascii')
    except UnicodeEncodeError:
        raise BaseDecodeError('non-ascii character in base58 string') from None
    origlen = len(v)
    v = v.lstrip(__b58chars[0:1])
    newlen = len(v)

    num = 0
    for char in v:
        try:
            num = num * 58 + __b58chars_inv[char]
        except KeyError:
            raise BaseDecodeError('Forbidden character {!r} for base58'.format(chr(char))) from None

    return num.to_bytes(origlen - newlen + (num.bit_length() + 7) // 8, 'big')


def EncodeBase58Check(vchIn: bytes) -> str:
    hash = sha256d(vchIn)
    return base_encode(vchIn + hash[0:4])


def DecodeBase58Check(psz: Union[bytes, str]) -> bytes:
    vchRet = base_decode(psz)
    if len(vchRet) < 4:
        raise BaseDecodeError('base58check payload too short')
    payload = vchRet[0:-4]
    csum_found = vchRet[-4:]
    csum_calculated = sha256d(payload)[0:4]
    if csum_calculated != csum_found:
        raise InvalidChecksum(f'calculated {csum_calculated.hex()}, found {csum_found.hex()}')
    else:
        return payload


############ WIF #####################

def serialize_privkey(secret: bytes, compressed: bool, *, net=None) -> str:
    if net is None: net = constants.net
    assert_bytes(secret)
    assert len(secret) == 32
    suffix = b'\01' if compressed else b''
    return EncodeBase58Check(bytes([net.WIF_PREFIX]) + secret + suffix)


def deserialize_privkey(key: str, *, net=None) -> Tuple[bytes, bool]:
    """Returns (secret bytes, compressed) for a WIF string.
    The secret is not range-checked here.
    """
    if net is None: net = constants.net
    vch = DecodeBase58Check(key)
    if len(vch) not in (33, 34):
        raise BitcoinException('invalid vch len for WIF key: {}'.format(len(vch)))
    if vch[0] != net.WIF_PREFIX:
        raise BitcoinException('invalid prefix ({}) for WIF key on {}'.format(vch[0], net.NET_NAME))
    compressed = False
    if len(vch) == 34:
        if vch[33] == 0x01:
            compressed = True
        else:
            raise BitcoinException(f'invalid WIF key. length suggests compressed pubkey, '
                                   f'but last byte is {vch[33]} != 0x01')
    return vch[1:33], compressed


############ addresses #####################

def hash160_to_b58_address(h160: bytes, addrtype: int) -> str:
    return EncodeBase58Check(bytes([addrtype]) + h160)


def b58_address_to_hash160(addr: str) -> Tuple[int, bytes]:
    _bytes = DecodeBase58Check(addr)
    if len(_bytes) != 21:
        raise BitcoinException(f'expected 21 payload bytes in base58 address. got: {len(_bytes)}')
    return _bytes[0], _bytes[1:21]


def hash160_to_p2pkh(h160: bytes, *, net=None) -> str:
    if net is None: net = constants.net
    return hash160_to_b58_address(h160, net.ADDRTYPE_P2PKH)

def hash160_to_p2sh(h160: bytes, *, net=None) -> str:
    if net is None: net = constants.net
    return hash160_to_b58_address(h160, net.ADDRTYPE_P2SH)

def hash_to_segwit_addr(h: bytes, witver: int, *, net=None) -> str:
    if net is None: net = constants.net
    return segwit_addr.encode_segwit_address(net.SEGWIT_HRP, witver, h)


def address_to_script(addr: str, *, net=None) -> bytes:
    """Raises BitcoinException if addr is not a valid address on net."""
    if net is None: net = constants.net
    if addr.lower().startswith(net.SEGWIT_HRP + '1'):
        witver, witprog = segwit_addr.decode_segwit_address(net.SEGWIT_HRP, addr)
        return construct_script([witver, witprog])
    addrtype, hash_160_ = b58_address_to_hash160(addr)
    if addrtype == net.ADDRTYPE_P2PKH:
        return pubkeyhash_to_p2pkh_script(hash_160_)
    elif addrtype == net.ADDRTYPE_P2SH:
        return scripthash_to_p2sh_script(hash_160_)
    raise BitcoinException(f'unknown address type: {addrtype}')


def is_address(addr: str, *, net=None) -> bool:
    try:
        address_to_script(addr, net=net)
    except BitcoinException:
        return False
    return True


def is_segwit_address(addr: str, *, net=None) -> bool:
    try:
        script = address_to_script(addr, net=net)
    except BitcoinException:
        return False
    return _witness_program(script) is not None


def _witness_program(script: bytes) -> Optional[Tuple[int, bytes]]:
    if not (4 <= len(script) <= 42):
        return None
    if script[0] != opcodes.OP_0 and not (opcodes.OP_1 <= script[0] <= opcodes.OP_16):
        return None
    if script[1] + 2 != len(script):
        return None
    witver = 0 if script[0] == opcodes.OP_0 else script[0] - opcodes.OP_1 + 1
    return witver, script[2:]


def script_to_address(script: bytes, *, net=None) -> Optional[str]:
    """Returns the address paying to script, or None if the script has no
    address form (e.g. bare pubkey or bare multisig).
    """
    if len(script) == 25 and script[:3] == bytes([opcodes.OP_DUP, opcodes.OP_HASH160, 20]) \
            and script[23:] == bytes([opcodes.OP_EQUALVERIFY, opcodes.OP_CHECKSIG]):
        return hash160_to_p2pkh(script[3:23], net=net)
    if len(script) == 23 and script[:2] == bytes([opcodes.OP_HASH160, 20]) \
            and script[22] == opcodes.OP_EQUAL:
        return hash160_to_p2sh(script[2:22], net=net)
    witness = _witness_program(script)
    if witness is not None:
        witver, witprog = witness
        try:
            return hash_to_segwit_addr(witprog, witver, net=net)
        except segwit_addr.SegwitAddrError:
            return None
    return None
