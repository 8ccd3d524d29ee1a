#
# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Type hints used internally by this package"""

from typing import Union, Callable, Mapping, Sequence

from .sentinel import UnknownType

SecretDict = Mapping[str, str]
"""A type hint for decrypted cipherstore content: key -> secret text"""

PasteResult = Union[str, UnknownType]
"""What a clipboard read returns: the exact clipboard text, or Unknown if it could not be read"""

DeliverFn = Callable[[str, str], None]
"""A callback that delivers (label, text) somewhere: stdout or the clipboard"""

DelaySpec = Union[int, str, None]
"""A clipboard delay as given by a user or config file, before validation"""

TrustedDirs = Sequence[str]
"""An ordered list of absolute directories that may contain external tools"""
