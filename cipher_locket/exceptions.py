#
# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Exceptions defined by this package"""

class LocketError(Exception):
  """Base class for all error exceptions defined by this package."""
  pass

class ConfigUnreadableError(LocketError):
  """Exception indicating that the configuration file exists but could not be parsed."""
  pass

class InvalidReadDirectiveError(LocketError):
  """Exception indicating that the configured "read" value is missing or is not a piped read ("<cmd" or "|cmd")."""
  pass

class DecryptFailureError(LocketError):
  """Exception indicating that the decrypt command could not be started or exited with an error."""
  pass

class UnreadableStoreError(LocketError):
  """Exception indicating that the decrypted output is neither a JSON object nor a YAML mapping."""
  pass

class NoClipboardToolError(LocketError):
  """Exception indicating that no clipboard tool was found in the trusted directories.

  This is the only non-fatal error: callers fall back to printing the secret.
  """
  pass

class ClipboardToolError(LocketError):
  """Exception indicating that a clipboard tool was found but failed."""
  pass

class InvalidDelayError(LocketError, ValueError):
  """Exception indicating that a clipboard delay is not a non-negative integer."""
  pass
