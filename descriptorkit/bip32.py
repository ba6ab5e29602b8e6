# Copyright (C) 2018 The Electrum developers
# Distributed under the MIT software license, see the accompanying
# file LICENCE or http://www.opensource.org/licenses/mit-license.php

import hashlib
import struct
from typing import List, Tuple, NamedTuple, Union, Iterable, Sequence

from .util import DerivationError, InvalidChildKey, KeyEncodingError
from . import constants
from . import ecc
from .crypto import hash_160, hmac_oneshot
from .bitcoin import EncodeBase58Check, DecodeBase58Check, BaseDecodeError
from .logging import get_logger


_logger = get_logger(__name__)
BIP32_PRIME = 0x80000000
UINT32_MAX = (1 << 32) - 1

BIP32_HARDENED_CHAR = "h"  # default "hardened" char we put in str paths
BIP32_HARDENED_CHARS = ("'", "h", "H")  # accepted when parsing str paths


def CKD_priv(parent_privkey: bytes, parent_chaincode: bytes, child_index: int) -> Tuple[bytes, bytes]:
    """Child private key derivation function (from master private key)
    If n is hardened (i.e. the 32nd bit is set), the resulting private key's
    corresponding public key can NOT be determined without the master private key.
    However, if n is not hardened, the resulting private key's corresponding
    public key can be determined without the master private key.

    Raises InvalidChildKey if the child is not a valid key. The caller
    decides whether to move on to the next index.
    """
    _check_child_index(child_index)
    is_hardened_child = bool(child_index & BIP32_PRIME)
    return _CKD_priv(parent_privkey=parent_privkey,
                     parent_chaincode=parent_chaincode,
                     child_index=int.to_bytes(child_index, length=4, byteorder="big", signed=False),
                     is_hardened_child=is_hardened_child)


def _CKD_priv(parent_privkey: bytes, parent_chaincode: bytes,
              child_index: bytes, is_hardened_child: bool) -> Tuple[bytes, bytes]:
    try:
        keypair = ecc.ECPrivkey(parent_privkey)
    except ecc.InvalidECPointException as e:
        raise DerivationError('Impossible xprv (not within curve order)') from e
    parent_pubkey = keypair.get_public_key_bytes(compressed=True)
    if is_hardened_child:
        data = bytes([0]) + parent_privkey + child_index
    else:
        data = parent_pubkey + child_index
    I = hmac_oneshot(parent_chaincode, data, hashlib.sha512)
    I_left = ecc.string_to_number(I[0:32])
    child_privkey = (I_left + ecc.string_to_number(parent_privkey)) % ecc.CURVE_ORDER
    if I_left >= ecc.CURVE_ORDER or child_privkey == 0:
        raise InvalidChildKey(f'invalid child key at index {child_index.hex()}')
    child_privkey = int.to_bytes(child_privkey, length=32, byteorder='big', signed=False)
    child_chaincode = I[32:]
    return child_privkey, child_chaincode


def CKD_pub(parent_pubkey: bytes, parent_chaincode: bytes, child_index: int) -> Tuple[bytes, bytes]:
    """Child public key derivation function (from public key only)
    This function allows us to find the nth public key, as long as n is
    not hardened. If n is hardened, we need the master private key to find it.
    """
    _check_child_index(child_index)
    if child_index & BIP32_PRIME:
        raise DerivationError('not possible to derive hardened child from parent pubkey')
    return _CKD_pub(parent_pubkey=parent_pubkey,
                    parent_chaincode=parent_chaincode,
                    child_index=int.to_bytes(child_index, length=4, byteorder="big", signed=False))


def _CKD_pub(parent_pubkey: bytes, parent_chaincode: bytes, child_index: bytes) -> Tuple[bytes, bytes]:
    I = hmac_oneshot(parent_chaincode, parent_pubkey + child_index, hashlib.sha512)
    I_left = ecc.string_to_number(I[0:32])
    if I_left >= ecc.CURVE_ORDER:
        raise InvalidChildKey(f'invalid child key at index {child_index.hex()}')
    try:
        pubkey = ecc.ECPubkey(parent_pubkey)
        # I_L == 0 leaves the parent point unchanged
        if I_left != 0:
            pubkey = ecc.ECPrivkey(I[0:32]) + pubkey
    except ecc.InvalidECPointException as e:
        raise InvalidChildKey(f'invalid child key at index {child_index.hex()}') from e
    child_pubkey = pubkey.get_public_key_bytes(compressed=True)
    child_chaincode = I[32:]
    return child_pubkey, child_chaincode


def _check_child_index(child_index: int) -> None:
    if not isinstance(child_index, int):
        raise DerivationError(f"bip32 child index must be int, not {type(child_index)}")
    if not (0 <= child_index <= UINT32_MAX):
        raise DerivationError(f"bip32 child index out of range: {child_index}")


def xprv_header(xtype: str, *, net=None) -> bytes:
    if net is None:
        net = constants.net
    return net.XPRV_HEADERS[xtype].to_bytes(length=4, byteorder="big")


def xpub_header(xtype: str, *, net=None) -> bytes:
    if net is None:
        net = constants.net
    return net.XPUB_HEADERS[xtype].to_bytes(length=4, byteorder="big")


class InvalidMasterKeyVersionBytes(KeyEncodingError): pass


class BIP32Node(NamedTuple):
    xtype: str
    eckey: Union[ecc.ECPubkey, ecc.ECPrivkey]
    chaincode: bytes
    depth: int = 0
    fingerprint: bytes = b'\x00'*4  # as in serialized format, this is the *parent's* fingerprint
    child_number: bytes = b'\x00'*4

    @classmethod
    def from_xkey(cls, xkey: str, *, net=None) -> 'BIP32Node':
        """Decodes a base58check xpub/xprv. Raises KeyEncodingError."""
        if net is None:
            net = constants.net
        try:
            xkey = DecodeBase58Check(xkey)
        except BaseDecodeError as e:
            raise KeyEncodingError(f'Invalid extended key encoding: {e}') from e
        if len(xkey) != 78:
            raise KeyEncodingError('Invalid length for extended key: {}'
                                   .format(len(xkey)))
        depth = xkey[4]
        fingerprint = xkey[5:9]
        child_number = xkey[9:13]
        chaincode = xkey[13:13 + 32]
        header = int.from_bytes(xkey[0:4], byteorder='big')
        if header in net.XPRV_HEADERS_INV:
            headers_inv = net.XPRV_HEADERS_INV
            is_private = True
        elif header in net.XPUB_HEADERS_INV:
            headers_inv = net.XPUB_HEADERS_INV
            is_private = False
        else:
            raise InvalidMasterKeyVersionBytes(f'Invalid extended key format: {hex(header)}')
        xtype = headers_inv[header]
        if depth == 0 and fingerprint != bytes(4):
            raise KeyEncodingError('Invalid extended key: zero depth with non-zero parent fingerprint')
        if depth == 0 and child_number != bytes(4):
            raise KeyEncodingError('Invalid extended key: zero depth with non-zero child number')
        try:
            if is_private:
                if xkey[13 + 32] != 0:
                    raise KeyEncodingError('Invalid extended private key: missing 0x00 prefix byte')
                eckey = ecc.ECPrivkey(xkey[13 + 33:])
            else:
                if xkey[13 + 32] not in (0x02, 0x03):
                    raise KeyEncodingError('Invalid extended public key: not a compressed point')
                eckey = ecc.ECPubkey(xkey[13 + 32:])
        except ecc.InvalidECPointException as e:
            raise KeyEncodingError(f'Invalid extended key material: {e}') from e
        return BIP32Node(xtype=xtype,
                         eckey=eckey,
                         chaincode=chaincode,
                         depth=depth,
                         fingerprint=fingerprint,
                         child_number=child_number)

    def to_xprv(self, *, net=None) -> str:
        payload = self.to_xprv_bytes(net=net)
        return EncodeBase58Check(payload)

    def to_xprv_bytes(self, *, net=None) -> bytes:
        if not self.is_private():
            raise DerivationError("cannot serialize as xprv; private key missing")
        payload = (xprv_header(self.xtype, net=net) +
                   bytes([self.depth]) +
                   self.fingerprint +
                   self.child_number +
                   self.chaincode +
                   bytes([0]) +
                   self.eckey.get_secret_bytes())
        assert len(payload) == 78, f"unexpected xprv payload len {len(payload)}"
        return payload

    def to_xpub(self, *, net=None) -> str:
        payload = self.to_xpub_bytes(net=net)
        return EncodeBase58Check(payload)

    def to_xpub_bytes(self, *, net=None) -> bytes:
        payload = (xpub_header(self.xtype, net=net) +
                   bytes([self.depth]) +
                   self.fingerprint +
                   self.child_number +
                   self.chaincode +
                   self.eckey.get_public_key_bytes(compressed=True))
        assert len(payload) == 78, f"unexpected xpub payload len {len(payload)}"
        return payload

    def to_xkey(self, *, net=None) -> str:
        if self.is_private():
            return self.to_xprv(net=net)
        else:
            return self.to_xpub(net=net)

    def convert_to_public(self) -> 'BIP32Node':
        if not self.is_private():
            return self
        pubkey = ecc.ECPubkey(self.eckey.get_public_key_bytes())
        return self._replace(eckey=pubkey)

    def is_private(self) -> bool:
        return isinstance(self.eckey, ecc.ECPrivkey)

    def subkey_at_private_derivation(self, path: Union[str, Iterable[int]]) -> 'BIP32Node':
        if path is None:
            raise DerivationError("derivation path must not be None")
        if isinstance(path, str):
            path = convert_bip32_strpath_to_intpath(path)
        if not self.is_private():
            raise DerivationError("cannot do bip32 private derivation; private key missing")
        path = list(path)
        if not path:
            return self
        depth = self.depth
        chaincode = self.chaincode
        privkey = self.eckey.get_secret_bytes()
        for child_index in path:
            parent_privkey = privkey
            privkey, chaincode = CKD_priv(privkey, chaincode, child_index)
            depth += 1
        if depth > 255:
            raise DerivationError(f"bip32 depth too large: {depth}")
        parent_pubkey = ecc.ECPrivkey(parent_privkey).get_public_key_bytes(compressed=True)
        fingerprint = hash_160(parent_pubkey)[0:4]
        child_number = child_index.to_bytes(length=4, byteorder="big")
        return BIP32Node(xtype=self.xtype,
                         eckey=ecc.ECPrivkey(privkey),
                         chaincode=chaincode,
                         depth=depth,
                         fingerprint=fingerprint,
                         child_number=child_number)

    def subkey_at_public_derivation(self, path: Union[str, Iterable[int]]) -> 'BIP32Node':
        if path is None:
            raise DerivationError("derivation path must not be None")
        if isinstance(path, str):
            path = convert_bip32_strpath_to_intpath(path)
        path = list(path)
        if not path:
            return self.convert_to_public()
        depth = self.depth
        chaincode = self.chaincode
        pubkey = self.eckey.get_public_key_bytes(compressed=True)
        for child_index in path:
            parent_pubkey = pubkey
            pubkey, chaincode = CKD_pub(pubkey, chaincode, child_index)
            depth += 1
        if depth > 255:
            raise DerivationError(f"bip32 depth too large: {depth}")
        fingerprint = hash_160(parent_pubkey)[0:4]
        child_number = child_index.to_bytes(length=4, byteorder="big")
        return BIP32Node(xtype=self.xtype,
                         eckey=ecc.ECPubkey(pubkey),
                         chaincode=chaincode,
                         depth=depth,
                         fingerprint=fingerprint,
                         child_number=child_number)

    def derive(self, path: Union[str, Iterable[int]]) -> 'BIP32Node':
        """Derives the node at `path` below this one.
        Private nodes derive privately (and stay private), public nodes publicly;
        a hardened step below a public node raises DerivationError.
        """
        if self.is_private():
            node = self.subkey_at_private_derivation(path)
        else:
            node = self.subkey_at_public_derivation(path)
        _logger.debug(f"derived child at depth {node.depth}")
        return node

    def calc_fingerprint_of_this_node(self) -> bytes:
        """Returns the fingerprint of this node.
        Note that self.fingerprint is of the *parent*.
        """
        return hash_160(self.eckey.get_public_key_bytes(compressed=True))[0:4]


def is_xpub(text):
    try:
        node = BIP32Node.from_xkey(text)
        return not node.is_private()
    except KeyEncodingError:
        return False


def is_xprv(text):
    try:
        node = BIP32Node.from_xkey(text)
        return node.is_private()
    except KeyEncodingError:
        return False


def convert_bip32_strpath_to_intpath(n: str) -> List[int]:
    """Convert bip32 path str to list of uint32 integers with prime flags
    m/0/1'/1h/2H -> [0, 0x80000001, 0x80000001, 0x80000002]

    A leading "m" or "/" is optional. Raises DerivationError.
    """
    if not n:
        return []
    if n.endswith("/"):
        n = n[:-1]
    n = n.split('/')
    # cut leading "m" if present, but do not require it
    if n[0] == "m":
        n = n[1:]
    path = []
    for x in n:
        if x == '':
            # gracefully allow repeating "/" chars in path.
            # makes concatenating paths easier
            continue
        prime = 0
        if x[-1] in BIP32_HARDENED_CHARS:
            x = x[:-1]
            prime = BIP32_PRIME
        if not x.isdigit() or not x.isascii():
            raise DerivationError(f"failed to parse bip32 path: invalid child index {x!r}")
        if len(x) > 10:
            raise DerivationError(f"bip32 path child index too large: {len(x)} digits")
        x_int = int(x)
        if x_int >= BIP32_PRIME:
            raise DerivationError(f"bip32 path child index too large: {x_int} >= {BIP32_PRIME}")
        path.append(x_int | prime)
    return path


def convert_bip32_intpath_to_strpath(path: Sequence[int], *, hardened_char=BIP32_HARDENED_CHAR) -> str:
    assert isinstance(hardened_char, str), hardened_char
    assert len(hardened_char) == 1, hardened_char
    s = "m/"
    for child_index in path:
        if not isinstance(child_index, int):
            raise TypeError(f"bip32 path child index must be int: {child_index}")
        if not (0 <= child_index <= UINT32_MAX):
            raise ValueError(f"bip32 path child index out of range: {child_index}")
        prime = ""
        if child_index & BIP32_PRIME:
            prime = hardened_char
            child_index = child_index ^ BIP32_PRIME
        s += str(child_index) + prime + '/'
    # cut trailing "/"
    s = s[:-1]
    return s


class KeyOriginInfo:
    """
    Object representing the origin of a key.

    from https://github.com/bitcoin-core/HWI/blob/5f300d3dee7b317a6194680ad293eaa0962a3cc7/hwilib/key.py
    # Copyright (c) 2020 The HWI developers
    # Distributed under the MIT software license.
    """
    def __init__(self, fingerprint: bytes, path: Sequence[int]) -> None:
        """
        :param fingerprint: The 4 byte BIP 32 fingerprint of a parent key from which this key is derived from
        :param path: The derivation path to reach this key from the key at ``fingerprint``
        """
        if len(fingerprint) != 4:
            raise ValueError(f"fingerprint must be 4 bytes, got {len(fingerprint)}")
        self.fingerprint: bytes = bytes(fingerprint)
        self.path: Tuple[int, ...] = tuple(path)

    def __eq__(self, other) -> bool:
        if not isinstance(other, KeyOriginInfo):
            return False
        return self.fingerprint == other.fingerprint and self.path == other.path

    def __hash__(self):
        return hash((self.fingerprint, self.path))

    def __repr__(self):
        return f"<KeyOriginInfo {self.to_string()}>"

    def _path_string(self, *, hardened_char: str) -> str:
        strpath = self.get_derivation_path(hardened_char=hardened_char)
        if len(strpath) >= 2:
            assert strpath.startswith("m/")
        return strpath[1:]  # cut leading "m"

    def to_string(self, *, hardened_char: str = BIP32_HARDENED_CHAR) -> str:
        """
        Return the KeyOriginInfo as a string in the form <fingerprint>/<index>/<index>/...
        This is the same way that KeyOriginInfo is shown in descriptors
        """
        s = self.fingerprint.hex()
        s += self._path_string(hardened_char=hardened_char)
        return s

    def get_derivation_path(self, *, hardened_char: str = BIP32_HARDENED_CHAR) -> str:
        """
        Return the string for just the path
        """
        return convert_bip32_intpath_to_strpath(self.path, hardened_char=hardened_char)

    def get_full_int_list(self) -> List[int]:
        """
        Return a list of ints representing this KeyOriginInfo.
        The first int is the fingerprint, followed by the path
        """
        xfp = [struct.unpack("<I", self.fingerprint)[0]]
        xfp.extend(self.path)
        return xfp
