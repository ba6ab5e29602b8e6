from .version import DESCRIPTORKIT_VERSION
from .util import (DescriptorException, DescriptorSyntaxError, ChecksumError, SemanticError,
                   KeyEncodingError, DerivationError)
from .bip32 import BIP32Node, KeyOriginInfo
from .checksum import descriptor_checksum, add_checksum, verify_checksum
from .descriptor import Descriptor, DescriptorDocument, PubkeyProvider, ExpandedScripts, validate_descriptor
from .descriptor_parser import parse_descriptor, parse_key_expression
from .simple_config import SimpleConfig
from . import constants
from .logging import get_logger


__version__ = DESCRIPTORKIT_VERSION

_logger = get_logger(__name__)
