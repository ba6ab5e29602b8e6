# Copyright (c) 2017 Andrew Chow
# Copyright (c) 2023 The Electrum developers
# Distributed under the MIT software license, see the accompanying
# file LICENCE or http://www.opensource.org/licenses/mit-license.php
#
# Recursive descent parser for output script descriptors.
#
#   Descriptor := Expr ('#' Checksum)?
#   Expr       := Function '(' ArgList ')'
#   KeyExpr    := Origin? KeyBody Path?
#   Origin     := '[' HexFingerprint ('/' PathStep)* ']'
#   PathStep   := Number Hardener? | '*' Hardener? | '<' Number (';' Number)+ '>' Hardener?
#   Hardener   := '\'' | 'h'
#
# All offsets reported in errors are byte offsets into the input text.

from typing import List, Optional, Tuple, Callable

from .bip32 import BIP32_PRIME, BIP32_HARDENED_CHAR, KeyOriginInfo
from . import bitcoin
from .checksum import INPUT_CHARSET, split_checksum, check_checksum_format, descriptor_checksum
from .descriptor import (
    AddrDescriptor,
    ComboDescriptor,
    Descriptor,
    DescriptorDocument,
    DerivationStep,
    MultisigDescriptor,
    PKDescriptor,
    PKHDescriptor,
    PubkeyProvider,
    RawDescriptor,
    SHDescriptor,
    StepType,
    WPKHDescriptor,
    WSHDescriptor,
    validate_descriptor,
)
from .logging import Logger
from .util import (BitcoinException, ChecksumMismatch, InvalidKeyEncoding, KeyEncodingError,
                   NestingTooDeep, UnbalancedParentheses, UnexpectedToken, UnknownFunction,
                   is_hex_str)


# sh(wsh(leaf)): at most two wrapper levels above a leaf expression
MAX_NESTING_DEPTH = 2

HARDENED_MARKERS = ("'", "h")

# 2**31 has ten decimal digits; longer runs are rejected before int()
MAX_NUMBER_DIGITS = 10

_WRAPPERS = {
    "sh": SHDescriptor,
    "wsh": WSHDescriptor,
}
_SINGLE_KEY = {
    "pk": PKDescriptor,
    "pkh": PKHDescriptor,
    "wpkh": WPKHDescriptor,
    "combo": ComboDescriptor,
}
_MULTISIG = ("multi", "sortedmulti")
SCRIPT_FUNCTIONS = tuple(_WRAPPERS) + tuple(_SINGLE_KEY) + _MULTISIG + ("addr", "raw")

_INPUT_CHARSET = frozenset(INPUT_CHARSET)


def _is_ascii_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def _is_ascii_alnum(ch: str) -> bool:
    return ch.isascii() and ch.isalnum()


def _is_function_name_char(ch: str) -> bool:
    return "a" <= ch <= "z"


def _check_charset(text: str) -> None:
    for idx, ch in enumerate(text):
        if ch not in _INPUT_CHARSET:
            offset = len(text[:idx].encode("utf-8"))
            raise UnexpectedToken(f"invalid character {ch!r} in descriptor", offset=offset)


class _DescriptorParser(Logger):
    """Single-use parser over one descriptor body (checksum already removed)."""

    def __init__(self, text: str):
        Logger.__init__(self)
        self.text = text
        self.pos = 0

    # --- low level

    def _peek(self) -> Optional[str]:
        if self.pos >= len(self.text):
            return None
        return self.text[self.pos]

    def _at_end(self) -> bool:
        return self.pos >= len(self.text)

    def _describe_current(self) -> str:
        ch = self._peek()
        return "end of input" if ch is None else repr(ch)

    def _expect(self, token: str) -> None:
        ch = self._peek()
        if ch == token:
            self.pos += 1
            return
        if token == ")" and ch is None:
            raise UnbalancedParentheses("missing ')'", offset=self.pos)
        raise UnexpectedToken(f"expected {token!r}, got {self._describe_current()}", offset=self.pos)

    def _read_while(self, pred: Callable[[str], bool]) -> str:
        start = self.pos
        while not self._at_end() and pred(self.text[self.pos]):
            self.pos += 1
        return self.text[start:self.pos]

    # --- script expressions

    def parse_descriptor_body(self) -> Descriptor:
        desc = self._parse_script_expr(depth=0)
        if not self._at_end():
            if self._peek() == ")":
                raise UnbalancedParentheses("unmatched ')'", offset=self.pos)
            raise UnexpectedToken(f"unexpected {self._describe_current()} after descriptor", offset=self.pos)
        return desc

    def _parse_script_expr(self, *, depth: int) -> Descriptor:
        start = self.pos
        name = self._read_while(_is_function_name_char)
        if not name:
            raise UnexpectedToken(f"expected script expression, got {self._describe_current()}", offset=start)
        if name not in SCRIPT_FUNCTIONS:
            raise UnknownFunction(f"unknown script expression {name!r}", offset=start)
        self._expect("(")
        if name in _WRAPPERS:
            if depth >= MAX_NESTING_DEPTH:
                raise NestingTooDeep(f"{name}() nested too deeply: at most {MAX_NESTING_DEPTH} "
                                     f"wrapper levels are allowed", offset=start)
            sub = self._parse_script_expr(depth=depth + 1)
            desc = _WRAPPERS[name](sub)
        elif name in _SINGLE_KEY:
            desc = _SINGLE_KEY[name](self._parse_key_expr())
        elif name in _MULTISIG:
            desc = self._parse_multisig_args(is_sorted=(name == "sortedmulti"))
        elif name == "addr":
            desc = self._parse_addr_arg()
        else:
            desc = self._parse_raw_arg()
        self._expect(")")
        return desc

    def _parse_multisig_args(self, *, is_sorted: bool) -> MultisigDescriptor:
        thresh_start = self.pos
        thresh_str = self._read_while(_is_ascii_digit)
        if not thresh_str:
            raise UnexpectedToken(f"expected multisig threshold, got {self._describe_current()}",
                                  offset=thresh_start)
        if len(thresh_str) > MAX_NUMBER_DIGITS:
            raise UnexpectedToken(f"multisig threshold too long: {len(thresh_str)} digits",
                                  offset=thresh_start)
        pubkeys = []  # type: List[PubkeyProvider]
        while self._peek() == ",":
            self.pos += 1
            pubkeys.append(self._parse_key_expr())
        if not pubkeys:
            raise UnexpectedToken(f"expected ',' followed by a key expression, got {self._describe_current()}",
                                  offset=self.pos)
        return MultisigDescriptor(pubkeys, int(thresh_str), is_sorted)

    def _parse_addr_arg(self) -> AddrDescriptor:
        start = self.pos
        addr = self._read_while(_is_ascii_alnum)
        if not addr:
            raise UnexpectedToken(f"expected address, got {self._describe_current()}", offset=start)
        try:
            bitcoin.address_to_script(addr)
        except BitcoinException as e:
            raise InvalidKeyEncoding(f"invalid address {addr!r}: {e}", offset=start) from e
        return AddrDescriptor(addr)

    def _parse_raw_arg(self) -> RawDescriptor:
        start = self.pos
        script_hex = self._read_while(_is_ascii_alnum)
        if not script_hex or not is_hex_str(script_hex):
            raise UnexpectedToken(f"raw() expects a non-empty hex script, got {script_hex!r}", offset=start)
        return RawDescriptor(bytes.fromhex(script_hex))

    # --- key expressions

    def parse_key_expr_only(self) -> PubkeyProvider:
        provider = self._parse_key_expr()
        if not self._at_end():
            raise UnexpectedToken(f"unexpected {self._describe_current()} after key expression", offset=self.pos)
        return provider

    def _parse_key_expr(self) -> PubkeyProvider:
        markers = []  # type: List[str]
        origin = None
        if self._peek() == "[":
            origin = self._parse_origin(markers)
        key_start = self.pos
        key_str = self._read_while(_is_ascii_alnum)
        if not key_str:
            raise UnexpectedToken(f"expected key, got {self._describe_current()}", offset=key_start)
        path_start = self.pos
        steps = self._parse_path(markers, allow_ranges=True)
        # the first hardened marker used in the expression is used when serializing it
        hardened_char = markers[0] if markers else BIP32_HARDENED_CHAR
        try:
            provider = PubkeyProvider(origin, key_str, hardened_char=hardened_char)
        except KeyEncodingError as e:
            raise InvalidKeyEncoding(str(e), offset=key_start) from e
        if steps:
            if provider.extkey is None:
                raise UnexpectedToken(f"derivation path not allowed after a {provider.key_type.name} key",
                                      offset=path_start)
            provider = provider.with_deriv_path(steps)
        return provider

    def _parse_origin(self, markers: List[str]) -> KeyOriginInfo:
        self._expect("[")
        fp_start = self.pos
        fingerprint = self._read_while(_is_ascii_alnum)
        if len(fingerprint) != 8 or not is_hex_str(fingerprint):
            raise UnexpectedToken(f"key origin fingerprint must be 8 hex characters, got {fingerprint!r}",
                                  offset=fp_start)
        steps = self._parse_path(markers, allow_ranges=False)
        self._expect("]")
        return KeyOriginInfo(bytes.fromhex(fingerprint), [step.indices[0] for step in steps])

    def _parse_path(self, markers: List[str], *, allow_ranges: bool) -> List[DerivationStep]:
        steps = []  # type: List[DerivationStep]
        step_offsets = []  # type: List[int]
        while self._peek() == "/":
            self.pos += 1
            step_start = self.pos
            ch = self._peek()
            if ch in ("*", "<") and not allow_ranges:
                raise UnexpectedToken(f"{ch!r} not allowed in key origin", offset=step_start)
            if ch == "*":
                self.pos += 1
                steps.append(DerivationStep.wildcard(hardened=self._parse_hardener(markers)))
            elif ch == "<":
                steps.append(self._parse_multipath_step(markers))
            else:
                steps.append(DerivationStep.fixed(self._parse_index(markers)))
            step_offsets.append(step_start)
        seen_multipath = False
        for i, (step, offset) in enumerate(zip(steps, step_offsets)):
            if step.kind == StepType.WILDCARD and i != len(steps) - 1:
                raise UnexpectedToken("wildcard in descriptor only allowed in last position", offset=offset)
            if step.kind == StepType.MULTIPATH:
                if seen_multipath:
                    raise UnexpectedToken("only one multipath step is allowed per key", offset=offset)
                seen_multipath = True
        return steps

    def _parse_multipath_step(self, markers: List[str]) -> DerivationStep:
        start = self.pos
        self._expect("<")
        indices = [self._parse_index(markers)]
        while self._peek() == ";":
            self.pos += 1
            indices.append(self._parse_index(markers))
        self._expect(">")
        if len(indices) < 2:
            raise UnexpectedToken("multipath step needs at least two indices", offset=start)
        if self._parse_hardener(markers):
            indices = [idx | BIP32_PRIME for idx in indices]
        if len(set(indices)) != len(indices):
            raise UnexpectedToken("duplicate index in multipath step", offset=start)
        return DerivationStep.multipath(indices)

    def _parse_index(self, markers: List[str]) -> int:
        start = self.pos
        digits = self._read_while(_is_ascii_digit)
        if not digits:
            raise UnexpectedToken(f"expected path index, got {self._describe_current()}", offset=start)
        if len(digits) > MAX_NUMBER_DIGITS:
            raise UnexpectedToken(f"path index out of range: {len(digits)} digits", offset=start)
        index = int(digits)
        if index >= BIP32_PRIME:
            raise UnexpectedToken(f"path index out of range: {digits}", offset=start)
        if self._parse_hardener(markers):
            index |= BIP32_PRIME
        return index

    def _parse_hardener(self, markers: List[str]) -> bool:
        ch = self._peek()
        if ch in HARDENED_MARKERS:
            self.pos += 1
            markers.append(ch)
            return True
        if ch == "H":
            raise UnexpectedToken("'H' is not a hardened marker; use 'h' or \"'\"", offset=self.pos)
        return False


def parse_descriptor(text: str, *, validate: bool = True) -> DescriptorDocument:
    """
    Parse a descriptor given as a string, with or without checksum.

    :param text: The descriptor text
    :param validate: Whether to run the semantic checks (nesting, thresholds, ...)
    :return: The parsed descriptor
    :raises: DescriptorSyntaxError, ChecksumError, KeyEncodingError, SemanticError
    """
    _check_charset(text)
    body, checksum = split_checksum(text)
    if checksum is not None:
        check_checksum_format(checksum)
        expected = descriptor_checksum(body)
        if expected != checksum:
            raise ChecksumMismatch(expected, checksum, offset=len(body) + 1)
    parser = _DescriptorParser(body)
    desc = parser.parse_descriptor_body()
    if validate:
        validate_descriptor(desc)
    parser.logger.debug(f"parsed {desc.name}() descriptor. range={desc.is_range()}, "
                        f"multipath={desc.get_multipath_count()}")
    return DescriptorDocument(descriptor=desc, checksum=checksum)


def parse_key_expression(text: str) -> PubkeyProvider:
    """Parse a standalone key expression, e.g. ``[d34db33f/44h/0h/0h]xpub.../1/*``."""
    _check_charset(text)
    return _DescriptorParser(text).parse_key_expr_only()


def split_descriptor_checksum(text: str) -> Tuple[str, Optional[str]]:
    """Validates the charset and splits off the checksum without parsing."""
    _check_charset(text)
    return split_checksum(text)
