# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Miscellaneous utility functions"""

from typing import Type, Any, Optional, Dict, Mapping
from .internal_types import DelaySpec, TrustedDirs

import os
import re
import sys

from .constants import LOCKET_TRUSTED_BIN_DIRS
from .exceptions import InvalidDelayError

_delay_pattern = re.compile(r'^\d+$')

def full_name_of_type(t: Type) -> str:
  """Returns the fully qualified name of a type

  Args:
      t (Type): A type, which may be a builtin type or a class

  Returns:
      str: The fully qualified name of the type
  """
  module: str = t.__module__
  if module == 'builtins':
    result: str = t.__qualname__
  else:
    result = module + '.' + t.__qualname__
  return result

def full_type(o: Any) -> str:
  """Returns the fully qualified name of an object or value's type

  Args:
      o: any object or value

  Returns:
      str: The fully qualified name of the object or value's type
  """
  return full_name_of_type(o.__class__)

def parse_delay(delay: DelaySpec) -> int:
  """Validates a clipboard delay given as an int or a string of decimal digits.

  Args:
      delay (DelaySpec): The delay in seconds, as provided by a user or a config file.

  Raises:
      InvalidDelayError: If the delay is not a non-negative integer

  Returns:
      int: The delay in seconds
  """
  if isinstance(delay, bool):
    raise InvalidDelayError(f"Invalid delay value ({delay})")
  if isinstance(delay, int):
    if delay < 0:
      raise InvalidDelayError(f"Invalid delay value ({delay})")
    return delay
  if isinstance(delay, str) and _delay_pattern.match(delay):
    return int(delay)
  raise InvalidDelayError(f"Invalid delay value ({delay})")

def format_delay(delay: int) -> str:
  """Formats a delay in seconds as minutes:seconds; e.g., 75 -> '1:15'"""
  return f"{delay // 60}:{delay % 60:02d}"

def find_trusted_cmd(name: str, trusted_dirs: TrustedDirs=LOCKET_TRUSTED_BIN_DIRS) -> Optional[str]:
  """Locates an executable by searching only a fixed list of trusted directories.

  $PATH is deliberately ignored so that a look-alike earlier on the search path is never run.

  Args:
      name (str): The bare command name, e.g. "xsel"
      trusted_dirs (TrustedDirs, optional): Directories to search, in order.

  Returns:
      Optional[str]: The absolute pathname of the first regular, executable match, or None.
  """
  for bin_dir in trusted_dirs:
    candidate = os.path.join(bin_dir, name)
    if os.path.isfile(candidate) and os.access(candidate, os.X_OK):
      return candidate
  return None

def trusted_env(
      trusted_dirs: TrustedDirs=LOCKET_TRUSTED_BIN_DIRS,
      base_env: Optional[Mapping[str, str]]=None
    ) -> Dict[str, str]:
  """Returns a copy of an environment with PATH replaced by the trusted directories.

  The current process environment is never modified.
  """
  if base_env is None:
    base_env = os.environ
  env = dict(base_env)
  env['PATH'] = os.pathsep.join(trusted_dirs)
  return env

def user_data_dir() -> Optional[str]:
  """Returns the per-user data directory, or None if no home directory can be determined."""
  home = os.path.expanduser('~')
  if home.startswith('~'):
    return None
  if sys.platform == 'darwin':
    return os.path.join(home, 'Library', 'Application Support')
  if os.name == 'nt':
    return os.environ.get('LOCALAPPDATA', home)
  xdg_data_home = os.environ.get('XDG_DATA_HOME', '')
  if os.path.isabs(xdg_data_home):
    return xdg_data_home
  return os.path.join(home, '.local', 'share')
