# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Package cipher_locket copies secrets from an externally encrypted YAML/JSON cipherstore
to stdout, or into the clipboard for a bounded time
"""

from .version import __version__

from .internal_types import SecretDict, PasteResult, DeliverFn
from .sentinel import Unknown, UnknownType

from .exceptions import (
    LocketError,
    ConfigUnreadableError,
    InvalidReadDirectiveError,
    DecryptFailureError,
    UnreadableStoreError,
    NoClipboardToolError,
    ClipboardToolError,
    InvalidDelayError,
  )

from .util import parse_delay, format_delay, find_trusted_cmd

from .config import LocketConfig, ConfigStore
from .cipherstore import Cipherstore, CipherstoreLoader
from .resolver import (
    ResolutionResult,
    NoMatch,
    Unique,
    Ambiguous,
    normalize_query,
    resolve,
  )
from .dispatcher import (
    LABEL_USERNAME,
    LABEL_PASSWORD,
    LABEL_SECRET,
    classify,
    dispatch,
  )
from .clipboard import (
    ClipboardPort,
    ToolClipboardPort,
    PbClipboardPort,
    XselClipboardPort,
    XclipClipboardPort,
    locate_clipboard_port,
  )
from .terminal import TerminalEcho, AcknowledgmentWaiter, WakeReason, process_terminal
from .interrupt import InterruptDispatcher, default_dispatcher
from .delivery import DeliveryState, ClipboardSession, ClipboardDeliveryController
