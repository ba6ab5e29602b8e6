#!/usr/bin/env python
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

import argparse
import re
import sys
from typing import Dict, Iterable, List, Optional, Sequence

from . import constants
from .bip32 import BIP32Node
from .checksum import add_checksum
from .descriptor_parser import parse_descriptor, parse_key_expression, split_descriptor_checksum
from .logging import Logger, configure_logging
from .simple_config import SimpleConfig
from .util import ChecksumError, DescriptorException, DerivationError, SemanticError
from .version import DESCRIPTORKIT_VERSION


EXIT_OK = 0
EXIT_USAGE = 1
EXIT_SEMANTIC = 2
EXIT_DERIVATION = 3

STDIN_MARKER = '-'

known_commands = {}  # type: Dict[str, Command]


class UsageError(Exception):
    """Bad combination of command line arguments."""


class Command:
    def __init__(self, func, name):
        self.name = name
        self.func_name = func.__name__
        self.parse_docstring(func.__doc__)
        varnames = func.__code__.co_varnames[1:func.__code__.co_argcount]
        self.defaults = func.__defaults__
        if self.defaults:
            n = len(self.defaults)
            self.params = list(varnames[:-n])
            self.options = list(varnames[-n:])
        else:
            self.params = list(varnames)
            self.options = []
            self.defaults = []
        assert len(self.params) == 1, f"cmd: {self.name}: expected exactly one positional param"

    def parse_docstring(self, docstring):
        docstring = docstring or ''
        docstring = docstring.strip()
        self.description = docstring
        self.arg_descriptions = {}
        self.arg_types = {}
        for x in re.finditer(r'arg:(.*?):(.*?):(.*)$', docstring, flags=re.MULTILINE):
            self.arg_descriptions[x.group(2)] = x.group(3)
            self.arg_types[x.group(2)] = x.group(1)
            self.description = self.description.replace(x.group(), '')
        self.description = self.description.strip()
        self.short_description = self.description.split('.')[0]


def command(func):
    name = func.__name__.replace('_', '-')
    known_commands[name] = Command(func, name)
    return func


class Commands(Logger):

    def __init__(self, *, config: 'SimpleConfig'):
        Logger.__init__(self)
        self.config = config

    @command
    def derive_key(self, value, path=None) -> List[str]:
        """Derive a child extended key. Prints 'xpub:xprv'; the xprv part is
        empty when a public key is given. Paths accept h, H or ' as hardened
        marker, with or without a leading 'm/' or '/'.

        arg:str:value:Extended public or private key (xpub/xprv), or '-' to read from stdin
        arg:str:path:BIP32 derivation path, e.g. m/0h/1
        """
        node = BIP32Node.from_xkey(value)
        if path:
            node = node.derive(path)
        xprv = node.to_xprv() if node.is_private() else ''
        return [f"{node.to_xpub()}:{xprv}"]

    @command
    def key_expression(self, expr) -> List[str]:
        """Parse a key expression and echo it back unchanged.

        arg:str:expr:Key expression, e.g. [d34db33f/44h/0h/0h]xpub.../1/*, or '-' to read from stdin
        """
        parse_key_expression(expr)
        return [expr]

    @command
    def script_expression(self, expr, verify_checksum=False, compute_checksum=False) -> List[str]:
        """Parse and validate a script expression, and print it with its checksum.

        arg:str:expr:Descriptor, e.g. wpkh(xpub.../0/*), or '-' to read from stdin
        arg:bool:verify_checksum:Require a checksum and check it. Prints OK
        arg:bool:compute_checksum:Ignore any given checksum. Prints SCRIPT#CHECKSUM
        """
        if verify_checksum and compute_checksum:
            raise UsageError("--verify-checksum and --compute-checksum are mutually exclusive")
        if compute_checksum:
            body, _ = split_descriptor_checksum(expr)
            parse_descriptor(body)
            return [add_checksum(body)]
        doc = parse_descriptor(expr)
        if verify_checksum:
            if doc.checksum is None:
                raise ChecksumError("missing checksum")
            return ["OK"]
        return [doc.to_string()]

    @command
    def expand(self, desc, index=None, index_range=None, multipath_index=None) -> List[str]:
        """Derive output scripts. Prints one line per output:
        index, script hex and address ('-' where there is none).

        arg:str:desc:Descriptor, or '-' to read from stdin
        arg:int:index:Index to expand a ranged descriptor at
        arg:range:index_range:Expand a ranged descriptor at START..END (inclusive)
        arg:int:multipath_index:Which alternative of a multipath descriptor to expand
        """
        doc = parse_descriptor(desc)
        if index is not None and index_range is not None:
            raise UsageError("--index and --range are mutually exclusive")
        if doc.is_range():
            positions = self._get_positions(index, index_range)
        elif index is not None or index_range is not None:
            raise UsageError("descriptor is not ranged; --index/--range not allowed")
        else:
            positions = [None]
        if doc.is_multipath():
            if multipath_index is None:
                raise UsageError(f"descriptor is multipath ({doc.get_multipath_count()} paths); "
                                 f"--multipath-index required")
        elif multipath_index is not None:
            raise UsageError("descriptor is not multipath; --multipath-index not allowed")
        lines = []
        for pos in positions:
            for scripts in doc.expand_all(pos=pos, multipath_index=multipath_index):
                address = scripts.address() or '-'
                pos_str = '-' if pos is None else str(pos)
                lines.append(f"{pos_str} {scripts.output_script.hex()} {address}")
        self.logger.debug(f"expanded {len(lines)} outputs")
        return lines

    def _get_positions(self, index: Optional[int], index_range: Optional[Sequence[int]]) -> Iterable[int]:
        if index is not None:
            return [index]
        if index_range is None:
            raise UsageError("descriptor is ranged; --index or --range required")
        start, end = index_range
        if end < start:
            raise UsageError(f"invalid range: {start} > {end}")
        limit = self.config.DERIVE_RANGE_LIMIT
        if end - start + 1 > limit:
            raise UsageError(f"range too large: {end - start + 1} indices (limit is {limit})")
        return range(start, end + 1)


def exit_code_for_exception(e: Exception) -> int:
    if isinstance(e, SemanticError):
        return EXIT_SEMANTIC
    if isinstance(e, DerivationError):
        return EXIT_DERIVATION
    return EXIT_USAGE


class DescriptorArgumentParser(argparse.ArgumentParser):
    # argparse exits with 2 on usage errors; 2 is reserved for semantic errors here

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(EXIT_USAGE, f"Error: {message}\n")


arg_types = {
    'int': int,
    'str': str,
}


def add_global_options(parser, suppress=False):
    # a subcommand must not reset options given before it, hence SUPPRESS as default there
    default = argparse.SUPPRESS if suppress else None
    group = parser.add_argument_group('global options')
    group.add_argument(
        "-v", "--verbose", dest=SimpleConfig.VERBOSITY.key(), default=default,
        help=argparse.SUPPRESS if suppress else "Set verbosity (log levels), e.g. 'debug,bip32=warning'")
    group.add_argument(
        "--config", dest="config", default=default,
        help=argparse.SUPPRESS if suppress else "JSON config file")
    for chain in constants.NETS_LIST:
        if chain is constants.BitcoinMainnet:
            continue
        group.add_argument(
            f"--{chain.cli_flag()}", action="store_true", dest=chain.cli_flag(), default=default,
            help=argparse.SUPPRESS if suppress else f"Use {chain.NET_NAME} chain")


def get_parser():
    # create main parser
    parser = DescriptorArgumentParser(
        prog="descriptorkit",
        description="Parse, validate and evaluate output script descriptors.",
        epilog="Run 'descriptorkit <command> -h' to see the help for a command")
    parser.add_argument("--version", dest="cmd", action='store_const', const='version',
                        help="Return the version of descriptorkit.")
    add_global_options(parser)
    subparsers = parser.add_subparsers(dest='cmd', metavar='<command>')
    for cmdname in sorted(known_commands.keys()):
        cmd = known_commands[cmdname]
        p = subparsers.add_parser(
            cmdname,
            description=cmd.description,
            help=cmd.short_description,
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="Run 'descriptorkit -h' to see the list of global options",
        )
        for param in cmd.params:
            p.add_argument(param, help=cmd.arg_descriptions.get(param))
        for optname, default in zip(cmd.options, cmd.defaults):
            help = cmd.arg_descriptions.get(optname)
            type_descriptor = cmd.arg_types.get(optname)
            if type_descriptor == 'bool':
                p.add_argument('--' + optname.replace('_', '-'), dest=optname, action='store_true',
                               default=default, help=help)
            elif type_descriptor == 'range':
                p.add_argument('--range', dest=optname, nargs=2, type=int, metavar=('START', 'END'),
                               default=default, help=help)
            else:
                p.add_argument('--' + optname.replace('_', '-'), dest=optname, default=default,
                               type=arg_types.get(type_descriptor, str), help=help)
        add_global_options(p, suppress=True)
    return parser


def _read_stdin_values() -> Iterable[str]:
    for line in sys.stdin:
        line = line.strip()
        if line:
            yield line


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = get_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # --help exits with 0, usage errors with EXIT_USAGE
        return e.code if isinstance(e.code, int) else EXIT_USAGE
    if args.cmd is None:
        parser.print_help(sys.stderr)
        return EXIT_USAGE
    if args.cmd == 'version':
        print(DESCRIPTORKIT_VERSION)
        return EXIT_OK

    config_options = {k: v for k, v in vars(args).items() if v is not None}
    try:
        config = SimpleConfig(config_options)
        configure_logging(config)
        config.apply_network()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE

    cmd = known_commands[args.cmd]
    func = getattr(Commands(config=config), cmd.func_name)
    kwargs = {optname: getattr(args, optname) for optname in cmd.options}
    value = getattr(args, cmd.params[0])
    values = _read_stdin_values() if value == STDIN_MARKER else [value]
    for value in values:
        try:
            lines = func(value, **kwargs)
        except (DescriptorException, UsageError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return exit_code_for_exception(e)
        for line in lines:
            print(line)
    return EXIT_OK
