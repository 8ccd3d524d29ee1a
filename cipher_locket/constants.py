# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Constants used by cipher_locket"""

from typing import Tuple

LOCKET_DIR_NAME = ".locket"
LOCKET_CONFIG_FILENAME = "cfg"

LOCKET_DEFAULT_DELAY = 45
"""Seconds a secret is left in the clipboard when neither the command line nor the config says otherwise"""

LOCKET_TRUSTED_BIN_DIRS: Tuple[str, ...] = ( '/bin', '/usr/bin', '/usr/local/bin' )
# The only directories searched for external tools, in order. $PATH is never consulted.

LOCKET_CONFIG_TEMPLATE = """%YAML 1.1
---
#read: '</usr/bin/gpg -d <file>'
#read: '</usr/bin/openssl des3 -d -in <file>'
#edit: '/usr/bin/vim -n <file>'
"""
