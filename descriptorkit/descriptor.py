# Copyright (c) 2017 Andrew Chow
# Copyright (c) 2023 The Electrum developers
# Distributed under the MIT software license, see the accompanying
# file LICENCE or http://www.opensource.org/licenses/mit-license.php
#
# forked from https://github.com/bitcoin-core/HWI/blob/5f300d3dee7b317a6194680ad293eaa0962a3cc7/hwilib/descriptor.py
#
# Output Script Descriptors
# See https://github.com/bitcoin/bitcoin/blob/master/doc/descriptors.md
# and BIP-0380 .. BIP-0385, BIP-0389 (multipath)
#
# This module holds the parsed tree, the semantic checks that run on it
# after parsing, and the script builder. The text grammar lives in
# descriptor_parser.py.

import copy
import enum
from enum import Enum
from typing import (
    Iterator,
    List,
    Optional,
    Sequence,
    Set,
    Tuple,
)

import attr

from .bip32 import (BIP32Node, KeyOriginInfo, BIP32_PRIME, BIP32_HARDENED_CHAR,
                    convert_bip32_intpath_to_strpath)
from . import bitcoin
from .bitcoin import construct_script, opcodes, DecodeBase58Check, deserialize_privkey
from .checksum import add_checksum
from .crypto import hash_160, sha256
from . import ecc
from .logging import get_logger
from .util import (BitcoinException, DerivationError, KeyEncodingError, SemanticError,
                   is_hex_str)


_logger = get_logger(__name__)

MAX_MULTISIG_KEYS = 20


class ExpandedScripts:

    def __init__(
        self,
        *,
        output_script: bytes,  # "scriptPubKey"
        redeem_script: Optional[bytes] = None,
        witness_script: Optional[bytes] = None,
    ):
        self.output_script = output_script
        self.redeem_script = redeem_script
        self.witness_script = witness_script

    def address(self, *, net=None) -> Optional[str]:
        return bitcoin.script_to_address(self.output_script, net=net)

    def __repr__(self):
        return (f"<ExpandedScripts output_script={self.output_script.hex()} "
                f"redeem_script={self.redeem_script.hex() if self.redeem_script else None} "
                f"witness_script={self.witness_script.hex() if self.witness_script else None}>")


class StepType(Enum):
    INDEX = enum.auto()      # fixed child index, e.g. "/7" or "/7h"
    WILDCARD = enum.auto()   # "/*" or "/*h", ranged descriptor
    MULTIPATH = enum.auto()  # "/<0;1>", one index per sibling descriptor


@attr.s(frozen=True, slots=True)
class DerivationStep:
    """One element of a key's derivation path suffix.
    `indices` hold child numbers with BIP32_PRIME set for hardened steps.
    """
    kind = attr.ib(type=StepType)
    indices = attr.ib(type=tuple, default=(), converter=tuple)
    wildcard_hardened = attr.ib(type=bool, default=False)

    @classmethod
    def fixed(cls, child_index: int) -> 'DerivationStep':
        return cls(StepType.INDEX, (child_index,))

    @classmethod
    def wildcard(cls, *, hardened: bool = False) -> 'DerivationStep':
        return cls(StepType.WILDCARD, (), wildcard_hardened=hardened)

    @classmethod
    def multipath(cls, indices: Sequence[int]) -> 'DerivationStep':
        if len(indices) < 2:
            raise ValueError("multipath step needs at least two indices")
        if len(set(indices)) != len(indices):
            raise ValueError("multipath step indices must be distinct")
        return cls(StepType.MULTIPATH, tuple(indices))

    def is_hardened(self) -> bool:
        if self.kind == StepType.WILDCARD:
            return self.wildcard_hardened
        return any(idx & BIP32_PRIME for idx in self.indices)

    def resolve(self, *, pos: Optional[int] = None, multipath_index: Optional[int] = None) -> int:
        """Returns the concrete child index this step stands for."""
        if self.kind == StepType.INDEX:
            return self.indices[0]
        if self.kind == StepType.WILDCARD:
            if pos is None:
                raise DerivationError("pos must be set for ranged descriptor")
            if not (0 <= pos < BIP32_PRIME):
                raise DerivationError(f"pos out of range: {pos}")
            return pos | BIP32_PRIME if self.wildcard_hardened else pos
        if multipath_index is None:
            raise DerivationError("multipath_index must be set for multipath descriptor")
        if not (0 <= multipath_index < len(self.indices)):
            raise DerivationError(f"multipath_index out of range: {multipath_index} "
                                  f"(have {len(self.indices)} paths)")
        return self.indices[multipath_index]

    def to_string(self, *, hardened_char: str = BIP32_HARDENED_CHAR) -> str:
        if self.kind == StepType.WILDCARD:
            return "*" + (hardened_char if self.wildcard_hardened else "")
        items = [convert_bip32_intpath_to_strpath([idx], hardened_char=hardened_char)[2:]
                 for idx in self.indices]
        if self.kind == StepType.INDEX:
            return items[0]
        return "<" + ";".join(items) + ">"


class KeyType(Enum):
    RAW_PUBKEY = enum.auto()  # hex, 33 or 65 bytes
    WIF = enum.auto()
    XPUB = enum.auto()
    XPRV = enum.auto()


class PubkeyProvider(object):
    """
    A public key expression in a descriptor.
    Can contain the key origin info, the pubkey itself, and subsequent derivation paths for derivation from the pubkey
    The pubkey can be a hex pubkey, a WIF private key, or an extended key.
    """
    def __init__(
        self,
        origin: Optional['KeyOriginInfo'],
        pubkey: str,
        deriv_path: Sequence['DerivationStep'] = (),
        *,
        hardened_char: str = BIP32_HARDENED_CHAR,
    ) -> None:
        """
        :param origin: The key origin if one is available
        :param pubkey: The key. Either a hex pubkey, a WIF string or a serialized extended key
        :param deriv_path: Derivation path suffix if the key is an extended key
        :param hardened_char: The marker used when serializing hardened steps

        :raises: KeyEncodingError: if ``pubkey`` cannot be decoded
        """
        self.origin = origin
        self.deriv_path = tuple(deriv_path)  # type: Tuple[DerivationStep, ...]
        self.hardened_char = hardened_char
        self.extkey = None  # type: Optional[BIP32Node]
        self.privkey = None  # type: Optional[ecc.ECPrivkey]
        self.compressed = True
        self._pubkey_bytes = None  # type: Optional[bytes]
        if is_hex_str(pubkey):
            self.key_type = KeyType.RAW_PUBKEY
            self.pubkey = pubkey.lower()
            self._pubkey_bytes = _decode_hex_pubkey(self.pubkey)
            self.compressed = len(self._pubkey_bytes) == 33
        else:
            self.pubkey = pubkey
            self._decode_base58_key(pubkey)
        self._check_deriv_path()

    def _decode_base58_key(self, s: str) -> None:
        try:
            payload = DecodeBase58Check(s)
        except BitcoinException as e:
            raise KeyEncodingError(f"key is neither hex nor valid base58check: {e}") from e
        if len(payload) == 78:
            self.extkey = BIP32Node.from_xkey(s)
            self.key_type = KeyType.XPRV if self.extkey.is_private() else KeyType.XPUB
        elif len(payload) in (33, 34):
            try:
                secret, self.compressed = deserialize_privkey(s)
                self.privkey = ecc.ECPrivkey(secret)
            except (BitcoinException, ecc.InvalidECPointException) as e:
                raise KeyEncodingError(f"invalid WIF private key: {e}") from e
            self.key_type = KeyType.WIF
        else:
            raise KeyEncodingError(f"unexpected base58 payload length for a key: {len(payload)}")

    def _check_deriv_path(self) -> None:
        if not self.deriv_path:
            return
        if self.extkey is None:
            raise ValueError("deriv_path suffix present for non-extended key")
        kinds = [step.kind for step in self.deriv_path]
        if kinds.count(StepType.WILDCARD) > 1:
            raise ValueError("only one wildcard(*) is allowed in a descriptor")
        if StepType.WILDCARD in kinds and kinds[-1] != StepType.WILDCARD:
            raise ValueError("wildcard in descriptor only allowed in last position")
        if kinds.count(StepType.MULTIPATH) > 1:
            raise ValueError("only one multipath step is allowed per key")

    def to_string(self) -> str:
        """
        Serialize the pubkey expression to a string to be used in a descriptor

        :return: The pubkey expression as a string
        """
        s = ""
        if self.origin:
            s += "[{}]".format(self.origin.to_string(hardened_char=self.hardened_char))
        s += self.pubkey
        for step in self.deriv_path:
            s += "/" + step.to_string(hardened_char=self.hardened_char)
        return s

    def __eq__(self, other) -> bool:
        if not isinstance(other, PubkeyProvider):
            return False
        return (self.key_type == other.key_type
                and self.pubkey == other.pubkey
                and self.origin == other.origin
                and self.deriv_path == other.deriv_path)

    def __repr__(self):
        return f"<PubkeyProvider {self.key_type.name} {self.pubkey[:12]}...>"

    def get_der_suffix_int_list(
        self,
        *,
        pos: Optional[int] = None,
        multipath_index: Optional[int] = None,
    ) -> List[int]:
        return [step.resolve(pos=pos, multipath_index=multipath_index) for step in self.deriv_path]

    def derive_extended_key(
        self,
        *,
        pos: Optional[int] = None,
        multipath_index: Optional[int] = None,
    ) -> BIP32Node:
        """Returns the extended key at the end of the derivation path suffix."""
        if self.extkey is None:
            raise DerivationError(f"not an extended key: {self.key_type.name}")
        path = self.get_der_suffix_int_list(pos=pos, multipath_index=multipath_index)
        return self.extkey.derive(path)

    def get_pubkey_bytes(
        self,
        *,
        pos: Optional[int] = None,
        multipath_index: Optional[int] = None,
    ) -> bytes:
        # note: if not ranged (or not multipath), the corresponding arg is ignored
        if self.key_type == KeyType.RAW_PUBKEY:
            return self._pubkey_bytes
        if self.key_type == KeyType.WIF:
            return self.privkey.get_public_key_bytes(compressed=self.compressed)
        child_key = self.derive_extended_key(pos=pos, multipath_index=multipath_index)
        return child_key.eckey.get_public_key_bytes(compressed=True)  # bip32 implies compressed pubkeys

    def get_full_derivation_int_list(
        self,
        *,
        pos: Optional[int] = None,
        multipath_index: Optional[int] = None,
    ) -> List[int]:
        """
        Returns the full derivation path as an integer list at the given position.
        Includes the origin and master key fingerprint as an int
        """
        path = self.origin.get_full_int_list() if self.origin is not None else []  # type: List[int]
        path.extend(self.get_der_suffix_int_list(pos=pos, multipath_index=multipath_index))
        return path

    def get_full_derivation_path(
        self,
        *,
        pos: Optional[int] = None,
        multipath_index: Optional[int] = None,
    ) -> str:
        """
        Returns the full derivation path at the given position, including the origin
        """
        path = list(self.origin.path) if self.origin is not None else []
        path.extend(self.get_der_suffix_int_list(pos=pos, multipath_index=multipath_index))
        return convert_bip32_intpath_to_strpath(path, hardened_char=self.hardened_char)

    def is_range(self) -> bool:
        return any(step.kind == StepType.WILDCARD for step in self.deriv_path)

    def is_multipath(self) -> bool:
        return self.get_multipath_count() is not None

    def get_multipath_count(self) -> Optional[int]:
        for step in self.deriv_path:
            if step.kind == StepType.MULTIPATH:
                return len(step.indices)
        return None

    def has_hardened_derivation(self) -> bool:
        return any(step.is_hardened() for step in self.deriv_path)

    def has_uncompressed_pubkey(self) -> bool:
        return not self.compressed

    def with_deriv_path(self, deriv_path: Sequence['DerivationStep']) -> 'PubkeyProvider':
        """Returns a copy of this key expression with a different path suffix."""
        provider = copy.copy(self)
        provider.deriv_path = tuple(deriv_path)
        provider._check_deriv_path()
        return provider

    def split_multipath(self) -> List['PubkeyProvider']:
        """Returns one provider per multipath alternative (or just [self])."""
        if not self.is_multipath():
            return [self]
        providers = []
        for i in range(self.get_multipath_count()):
            steps = [
                DerivationStep.fixed(step.resolve(multipath_index=i)) if step.kind == StepType.MULTIPATH else step
                for step in self.deriv_path]
            providers.append(self.with_deriv_path(steps))
        return providers


def _decode_hex_pubkey(pubkey_hex: str) -> bytes:
    raw = bytes.fromhex(pubkey_hex)
    if len(raw) not in (33, 65):
        raise KeyEncodingError(f"invalid public key length: {len(raw)} bytes")
    try:
        ecc.ECPubkey(raw)
    except ecc.InvalidECPointException as e:
        raise KeyEncodingError(f"invalid public key: {e}") from e
    return raw


class Descriptor(object):
    r"""
    An abstract class for Descriptors themselves.
    Descriptors can contain multiple :class:`PubkeyProvider`\ s and multiple ``Descriptor`` as subdescriptors.

    Note: a tree built by hand is not checked; see validate_descriptor().
    """
    def __init__(
        self,
        pubkeys: List['PubkeyProvider'],
        subdescriptors: List['Descriptor'],
        name: str
    ) -> None:
        r"""
        :param pubkeys: The :class:`PubkeyProvider`\ s that are part of this descriptor
        :param subdescriptor: The ``Descriptor``\ s that are part of this descriptor
        :param name: The name of the function for this descriptor
        """
        self.pubkeys = list(pubkeys)
        self.subdescriptors = list(subdescriptors)
        self.name = name

    def _args_to_string(self) -> str:
        return ",".join([p.to_string() for p in self.pubkeys]
                        + [d.to_string_no_checksum() for d in self.subdescriptors])

    def to_string_no_checksum(self) -> str:
        """
        Serializes the descriptor as a string without the descriptor checksum

        :return: The descriptor string
        """
        return "{}({})".format(self.name, self._args_to_string())

    def to_string(self) -> str:
        """
        Serializes the descriptor as a string with the checksum

        :return: The descriptor with a checksum
        """
        return add_checksum(self.to_string_no_checksum())

    def _eq_fields(self) -> tuple:
        return self.name, self.pubkeys, self.subdescriptors

    def __eq__(self, other) -> bool:
        if type(self) is not type(other):
            return False
        return self._eq_fields() == other._eq_fields()

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.to_string_no_checksum()[:60]}>"

    def expand(self, *, pos: Optional[int] = None, multipath_index: Optional[int] = None) -> "ExpandedScripts":
        """
        Returns the scripts for a descriptor at the given `pos` for ranged descriptors,
        and the given `multipath_index` for multipath descriptors.
        """
        raise NotImplementedError("The Descriptor base class does not implement this method")

    def expand_all(self, *, pos: Optional[int] = None, multipath_index: Optional[int] = None) -> List["ExpandedScripts"]:
        """Like expand(), but returns every output script the descriptor stands for.
        Only combo() has more than one.
        """
        return [self.expand(pos=pos, multipath_index=multipath_index)]

    def is_range(self) -> bool:
        for pubkey in self.pubkeys:
            if pubkey.is_range():
                return True
        for desc in self.subdescriptors:
            if desc.is_range():
                return True
        return False

    def is_multipath(self) -> bool:
        return any(p.is_multipath() for p in self.get_all_pubkey_providers())

    def get_multipath_count(self) -> Optional[int]:
        """Number of sibling descriptors this one expands to, or None if not multipath."""
        counts = [p.get_multipath_count() for p in self.get_all_pubkey_providers() if p.is_multipath()]
        return max(counts) if counts else None

    def is_segwit(self) -> bool:
        return any([desc.is_segwit() for desc in self.subdescriptors])

    def get_all_pubkey_providers(self) -> Iterator['PubkeyProvider']:
        """Yields the key expressions at any level in this descriptor, in text order."""
        yield from self.pubkeys
        for desc in self.subdescriptors:
            yield from desc.get_all_pubkey_providers()

    def get_all_pubkeys(self, *, pos: Optional[int] = None, multipath_index: Optional[int] = None) -> Set[bytes]:
        """Returns set of pubkeys that appear at any level in this descriptor."""
        return set(p.get_pubkey_bytes(pos=pos, multipath_index=multipath_index)
                   for p in self.get_all_pubkey_providers())

    def split_multipath(self) -> List['Descriptor']:
        """Returns one new descriptor per multipath alternative.
        A descriptor without multipath keys is returned as the single element.
        """
        count = self.get_multipath_count()
        if count is None:
            return [self]

        def pick(options: list, i: int):
            return options[i] if len(options) > 1 else options[0]

        split_pubkeys = [p.split_multipath() for p in self.pubkeys]
        split_subdescs = [d.split_multipath() for d in self.subdescriptors]
        result = []
        for i in range(count):
            desc = copy.copy(self)
            desc.pubkeys = [pick(options, i) for options in split_pubkeys]
            desc.subdescriptors = [pick(options, i) for options in split_subdescs]
            result.append(desc)
        return result


class PKDescriptor(Descriptor):
    """
    A descriptor for ``pk()`` descriptors
    """
    def __init__(
        self,
        pubkey: 'PubkeyProvider'
    ) -> None:
        """
        :param pubkey: The :class:`PubkeyProvider` for this descriptor
        """
        super().__init__([pubkey], [], "pk")

    def expand(self, *, pos=None, multipath_index=None) -> "ExpandedScripts":
        pubkey = self.pubkeys[0].get_pubkey_bytes(pos=pos, multipath_index=multipath_index)
        script = construct_script([pubkey, opcodes.OP_CHECKSIG])
        return ExpandedScripts(output_script=script)


class PKHDescriptor(Descriptor):
    """
    A descriptor for ``pkh()`` descriptors
    """
    def __init__(
        self,
        pubkey: 'PubkeyProvider'
    ) -> None:
        """
        :param pubkey: The :class:`PubkeyProvider` for this descriptor
        """
        super().__init__([pubkey], [], "pkh")

    def expand(self, *, pos=None, multipath_index=None) -> "ExpandedScripts":
        pubkey = self.pubkeys[0].get_pubkey_bytes(pos=pos, multipath_index=multipath_index)
        pkh = hash_160(pubkey)
        script = bitcoin.pubkeyhash_to_p2pkh_script(pkh)
        return ExpandedScripts(output_script=script)


class WPKHDescriptor(Descriptor):
    """
    A descriptor for ``wpkh()`` descriptors
    """
    def __init__(
        self,
        pubkey: 'PubkeyProvider'
    ) -> None:
        """
        :param pubkey: The :class:`PubkeyProvider` for this descriptor
        """
        super().__init__([pubkey], [], "wpkh")

    def expand(self, *, pos=None, multipath_index=None) -> "ExpandedScripts":
        pkh = hash_160(self.pubkeys[0].get_pubkey_bytes(pos=pos, multipath_index=multipath_index))
        output_script = construct_script([0, pkh])
        return ExpandedScripts(output_script=output_script)

    def is_segwit(self) -> bool:
        return True


class MultisigDescriptor(Descriptor):
    """
    A descriptor for ``multi()`` and ``sortedmulti()`` descriptors
    """
    def __init__(
        self,
        pubkeys: List['PubkeyProvider'],
        thresh: int,
        is_sorted: bool
    ) -> None:
        r"""
        :param pubkeys: The :class:`PubkeyProvider`\ s for this descriptor
        :param thresh: The number of keys required to sign this multisig
        :param is_sorted: Whether this is a ``sortedmulti()`` descriptor
        """
        super().__init__(pubkeys, [], "sortedmulti" if is_sorted else "multi")
        self.thresh = thresh
        self.is_sorted = is_sorted

    def _eq_fields(self) -> tuple:
        return super()._eq_fields() + (self.thresh, self.is_sorted)

    def to_string_no_checksum(self) -> str:
        return "{}({},{})".format(self.name, self.thresh, ",".join([p.to_string() for p in self.pubkeys]))

    def expand(self, *, pos=None, multipath_index=None) -> "ExpandedScripts":
        der_pks = [p.get_pubkey_bytes(pos=pos, multipath_index=multipath_index) for p in self.pubkeys]
        if self.is_sorted:
            der_pks.sort()
        script = construct_script([self.thresh, *der_pks, len(der_pks), opcodes.OP_CHECKMULTISIG])
        return ExpandedScripts(output_script=script)


class SHDescriptor(Descriptor):
    """
    A descriptor for ``sh()`` descriptors
    """
    def __init__(
        self,
        subdescriptor: 'Descriptor'
    ) -> None:
        """
        :param subdescriptor: The :class:`Descriptor` that is a sub-descriptor for this descriptor
        """
        super().__init__([], [subdescriptor], "sh")

    def expand(self, *, pos=None, multipath_index=None) -> "ExpandedScripts":
        assert len(self.subdescriptors) == 1
        sub_scripts = self.subdescriptors[0].expand(pos=pos, multipath_index=multipath_index)
        redeem_script = sub_scripts.output_script
        witness_script = sub_scripts.witness_script
        script = bitcoin.scripthash_to_p2sh_script(hash_160(redeem_script))
        return ExpandedScripts(
            output_script=script,
            redeem_script=redeem_script,
            witness_script=witness_script,
        )


class WSHDescriptor(Descriptor):
    """
    A descriptor for ``wsh()`` descriptors
    """
    def __init__(
        self,
        subdescriptor: 'Descriptor'
    ) -> None:
        """
        :param subdescriptor: The :class:`Descriptor` that is a sub-descriptor for this descriptor
        """
        super().__init__([], [subdescriptor], "wsh")

    def expand(self, *, pos=None, multipath_index=None) -> "ExpandedScripts":
        assert len(self.subdescriptors) == 1
        sub_scripts = self.subdescriptors[0].expand(pos=pos, multipath_index=multipath_index)
        witness_script = sub_scripts.output_script
        output_script = construct_script([0, sha256(witness_script)])
        return ExpandedScripts(
            output_script=output_script,
            witness_script=witness_script,
        )

    def is_segwit(self) -> bool:
        return True


class AddrDescriptor(Descriptor):
    """
    A descriptor for ``addr()`` descriptors
    """
    def __init__(self, address: str) -> None:
        super().__init__([], [], "addr")
        self.address = address

    def _eq_fields(self) -> tuple:
        return super()._eq_fields() + (self.address,)

    def _args_to_string(self) -> str:
        return self.address

    def expand(self, *, pos=None, multipath_index=None) -> "ExpandedScripts":
        return ExpandedScripts(output_script=bitcoin.address_to_script(self.address))

    def is_segwit(self) -> bool:
        return bitcoin.is_segwit_address(self.address)


class RawDescriptor(Descriptor):
    """
    A descriptor for ``raw()`` descriptors
    """
    def __init__(self, script: bytes) -> None:
        super().__init__([], [], "raw")
        self.script = bytes(script)

    def _eq_fields(self) -> tuple:
        return super()._eq_fields() + (self.script,)

    def _args_to_string(self) -> str:
        return self.script.hex()

    def expand(self, *, pos=None, multipath_index=None) -> "ExpandedScripts":
        return ExpandedScripts(output_script=self.script)


class ComboDescriptor(Descriptor):
    """
    A descriptor for ``combo()`` descriptors: P2PK and P2PKH outputs, and
    for compressed keys also P2WPKH and P2SH-P2WPKH.
    """
    def __init__(
        self,
        pubkey: 'PubkeyProvider'
    ) -> None:
        super().__init__([pubkey], [], "combo")

    def get_component_descriptors(self) -> List['Descriptor']:
        pubkey = self.pubkeys[0]
        descs = [PKDescriptor(pubkey), PKHDescriptor(pubkey)]
        if not pubkey.has_uncompressed_pubkey():
            descs.append(WPKHDescriptor(pubkey))
            descs.append(SHDescriptor(WPKHDescriptor(pubkey)))
        return descs

    def expand(self, *, pos=None, multipath_index=None) -> "ExpandedScripts":
        raise ValueError("combo() stands for several output scripts; use expand_all()")

    def expand_all(self, *, pos=None, multipath_index=None) -> List["ExpandedScripts"]:
        return [desc.expand(pos=pos, multipath_index=multipath_index)
                for desc in self.get_component_descriptors()]


#####
# semantic checks


class _ScriptContext(Enum):
    """
    :meta private:
    Enum representing the level that we are at in a descriptor tree.
    Some expressions aren't allowed at certain levels, this helps us track those.
    """
    TOP = enum.auto()     # The top level, not within any descriptor
    P2SH = enum.auto()    # Within an sh() descriptor
    P2WSH = enum.auto()   # Within a wsh() descriptor


def validate_descriptor(desc: 'Descriptor') -> None:
    """Checks the nesting rules, multisig thresholds, top-level-only
    expressions and key constraints of a parsed tree.

    :raises: SemanticError: on the first violation found
    """
    _validate(desc, ctx=_ScriptContext.TOP)
    counts = set(p.get_multipath_count() for p in desc.get_all_pubkey_providers() if p.is_multipath())
    if len(counts) > 1:
        raise SemanticError(f"multipath key expressions have different numbers of paths: {sorted(counts)}")
    _logger.debug(f"validated {desc.name}() descriptor")


def _validate(desc: 'Descriptor', *, ctx: '_ScriptContext') -> None:
    if isinstance(desc, SHDescriptor):
        if ctx != _ScriptContext.TOP:
            raise SemanticError("Can only have sh() at top level")
        _validate(desc.subdescriptors[0], ctx=_ScriptContext.P2SH)
    elif isinstance(desc, WSHDescriptor):
        if ctx == _ScriptContext.P2WSH:
            raise SemanticError("Cannot have wsh() within wsh()")
        if ctx != _ScriptContext.TOP and ctx != _ScriptContext.P2SH:
            raise SemanticError("Can only have wsh() at top level or inside sh()")
        _validate(desc.subdescriptors[0], ctx=_ScriptContext.P2WSH)
    elif isinstance(desc, WPKHDescriptor):
        if ctx != _ScriptContext.TOP and ctx != _ScriptContext.P2SH:
            raise SemanticError("Can only have wpkh() at top level or inside sh()")
        _check_compressed(desc)
    elif isinstance(desc, (PKDescriptor, PKHDescriptor)):
        if ctx == _ScriptContext.P2WSH:
            _check_compressed(desc)
    elif isinstance(desc, MultisigDescriptor):
        nkeys = len(desc.pubkeys)
        if not (1 <= nkeys <= MAX_MULTISIG_KEYS):
            raise SemanticError(f"Cannot have {nkeys} keys in a multisig; "
                                f"must have between 1 and {MAX_MULTISIG_KEYS} keys, inclusive")
        if desc.thresh < 1:
            raise SemanticError(f"Multisig threshold cannot be {desc.thresh}, must be at least 1")
        if desc.thresh > nkeys:
            raise SemanticError(f"Multisig threshold cannot be larger than the number of keys; "
                                f"threshold is {desc.thresh} but only {nkeys} keys specified")
        if ctx == _ScriptContext.P2WSH:
            _check_compressed(desc)
    elif isinstance(desc, (AddrDescriptor, RawDescriptor, ComboDescriptor)):
        if ctx != _ScriptContext.TOP:
            raise SemanticError(f"Can only have {desc.name}() at top level")
    else:
        raise SemanticError(f"unknown script expression: {desc.name}()")


def _check_compressed(desc: 'Descriptor') -> None:
    for pubkey in desc.pubkeys:
        if pubkey.has_uncompressed_pubkey():
            raise SemanticError(f"uncompressed pubkeys are not allowed in segwit scripts: {pubkey.pubkey}")


#####


@attr.s(frozen=True)
class DescriptorDocument:
    """A parsed and validated descriptor, together with the checksum
    it was given with (if any). Never mutated; expanding for an index or
    splitting a multipath descriptor produces new objects.
    """
    descriptor = attr.ib(type=Descriptor)
    checksum = attr.ib(type=Optional[str], default=None)

    def is_range(self) -> bool:
        return self.descriptor.is_range()

    def is_multipath(self) -> bool:
        return self.descriptor.is_multipath()

    def get_multipath_count(self) -> int:
        return self.descriptor.get_multipath_count() or 1

    def to_string(self) -> str:
        return self.descriptor.to_string()

    def to_string_no_checksum(self) -> str:
        return self.descriptor.to_string_no_checksum()

    def expand(self, *, pos: Optional[int] = None, multipath_index: Optional[int] = None) -> ExpandedScripts:
        return self.descriptor.expand(pos=pos, multipath_index=multipath_index)

    def expand_all(self, *, pos: Optional[int] = None, multipath_index: Optional[int] = None) -> List[ExpandedScripts]:
        return self.descriptor.expand_all(pos=pos, multipath_index=multipath_index)

    def split_multipath(self) -> List['DescriptorDocument']:
        return [DescriptorDocument(descriptor=desc) for desc in self.descriptor.split_multipath()]
