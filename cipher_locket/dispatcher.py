# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Routing of a resolved cipherstore entry to a delivery callback.

   A key of the form "<username>@<site>" holds a password; the username is delivered first,
   then the password. Any other key holds a plain secret.
"""

from typing import Optional
from .internal_types import DeliverFn

import re

LABEL_USERNAME = 'username'
LABEL_PASSWORD = 'password'
LABEL_SECRET = 'secret'

_identity_pattern = re.compile(r'^([^@]+)@')

def classify(key: str) -> Optional[str]:
  """Returns the username part of an identity key ("alice@gmail" -> "alice"), or None."""
  m = _identity_pattern.match(key)
  if m is None:
    return None
  return m.group(1)

def dispatch(key: str, value: str, deliver_fn: DeliverFn) -> None:
  username = classify(key)
  if username is None:
    deliver_fn(LABEL_SECRET, value)
  else:
    deliver_fn(LABEL_USERNAME, username)
    deliver_fn(LABEL_PASSWORD, value)
