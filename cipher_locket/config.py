# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Configuration support.

The user configuration is a small YAML document:

   %YAML 1.1
   ---
   read: '</usr/local/bin/gpg --no-tty --decrypt --quiet ~/.locket.gpg'
   edit: '/usr/bin/vim -n ~/.locket.gpg'
   delay: 30

A missing file is an empty configuration, not an error. A file that exists but
cannot be parsed is fatal.
"""

from typing import Optional, Dict, Any, TextIO, Mapping

import os
import yaml

from .constants import LOCKET_DIR_NAME, LOCKET_CONFIG_FILENAME
from .exceptions import ConfigUnreadableError
from .internal_types import DelaySpec
from .util import full_type, user_data_dir

class LocketConfig:
  """An immutable, loaded configuration.

  Recognized properties are exposed by name; unrecognized ones are kept in `extra`
  and otherwise ignored.
  """
  KNOWN_KEYS = ( 'read', 'edit', 'delay' )

  _read: Optional[str] = None
  _edit: Optional[str] = None
  _delay: DelaySpec = None
  _extra: Dict[str, Any]
  _config_file: Optional[str] = None

  def __init__(
        self,
        read: Optional[str]=None,
        edit: Optional[str]=None,
        delay: DelaySpec=None,
        extra: Optional[Mapping[str, Any]]=None,
        config_file: Optional[str]=None
      ):
    self._read = read
    self._edit = edit
    if isinstance(delay, str) and delay == '':
      delay = None
    self._delay = delay
    self._extra = {} if extra is None else dict(extra)
    self._config_file = config_file

  @classmethod
  def from_json_data(cls, data: Mapping[str, Any], config_file: Optional[str]=None) -> 'LocketConfig':
    extra = { k: v for k, v in data.items() if not k in cls.KNOWN_KEYS }
    read = data.get('read', None)
    edit = data.get('edit', None)
    if not read is None and not isinstance(read, str):
      raise ConfigUnreadableError(f"{config_file}: expected str for 'read', got {full_type(read)}")
    if not edit is None and not isinstance(edit, str):
      raise ConfigUnreadableError(f"{config_file}: expected str for 'edit', got {full_type(edit)}")
    return cls(read=read, edit=edit, delay=data.get('delay', None), extra=extra, config_file=config_file)

  @property
  def read(self) -> Optional[str]:
    """The piped read directive, e.g. "</usr/bin/gpg -d ~/.locket.gpg" """
    return self._read

  @property
  def edit(self) -> Optional[str]:
    """The shell command that edits the encrypted store"""
    return self._edit

  @property
  def delay(self) -> DelaySpec:
    """The default clipboard delay, unvalidated. None if not configured."""
    return self._delay

  @property
  def extra(self) -> Dict[str, Any]:
    return dict(self._extra)

  @property
  def config_file(self) -> Optional[str]:
    return self._config_file

  @property
  def is_empty(self) -> bool:
    return self._read is None and self._edit is None and self._delay is None and len(self._extra) == 0

  def __repr__(self) -> str:
    return f"<LocketConfig {self._config_file!r} read={self._read!r} edit={self._edit!r} delay={self._delay!r}>"

class ConfigStore:
  """Locates, loads and caches the user configuration.

  Nothing is read until load() is called; reload() re-reads the file after it has been
  edited (e.g., by "locket setup").
  """
  _config_file: Optional[str] = None
  _config: Optional[LocketConfig] = None

  def __init__(self, config_file: Optional[str]=None):
    """Create a configuration store

    Args:
        config_file (Optional[str], optional): An explicit configuration file that overrides
            the per-user default location. Defaults to None.
    """
    self._config_file = self.resolve_path(config_file)

  @classmethod
  def resolve_path(cls, explicit_override: Optional[str]=None) -> Optional[str]:
    """Determines the configuration file pathname.

    Args:
        explicit_override (Optional[str], optional): A pathname that wins over the default. Defaults to None.

    Returns:
        Optional[str]: The absolute pathname, or None if no home directory can be determined.
    """
    if not explicit_override is None:
      return os.path.abspath(os.path.expanduser(explicit_override))
    data_dir = user_data_dir()
    if data_dir is None:
      return None
    return os.path.join(data_dir, LOCKET_DIR_NAME, LOCKET_CONFIG_FILENAME)

  @property
  def config_file(self) -> Optional[str]:
    return self._config_file

  @property
  def config(self) -> LocketConfig:
    if self._config is None:
      raise RuntimeError("ConfigStore: configuration has not been loaded")
    return self._config

  def read_text(self) -> Optional[str]:
    """Returns the raw configuration text, or None if there is no readable configuration file.

    Raises:
        ConfigUnreadableError: The file exists but is not UTF-8 text
    """
    config_file = self.config_file
    if config_file is None:
      return None
    if not os.path.isfile(config_file) or not os.access(config_file, os.R_OK):
      return None
    try:
      with open(config_file, encoding='utf-8') as f:
        return f.read()
    except UnicodeDecodeError as ex:
      raise ConfigUnreadableError(f"Configuration {config_file} is not UTF-8 text: {ex}") from ex

  def file_size(self) -> int:
    """The size of the configuration file in bytes, or -1 if it does not exist."""
    config_file = self.config_file
    if config_file is None or not os.path.isfile(config_file):
      return -1
    return os.path.getsize(config_file)

  def loads(self, text: str) -> LocketConfig:
    """Parses configuration text without touching the cached configuration.

    Raises:
        ConfigUnreadableError: The text is not YAML, or is not a YAML mapping
    """
    try:
      data = yaml.safe_load(text)
    except yaml.YAMLError as ex:
      raise ConfigUnreadableError(f"Unable to parse configuration {self.config_file}: {ex}") from ex
    if data is None:
      data = {}
    if not isinstance(data, dict):
      raise ConfigUnreadableError(f"Configuration {self.config_file}: expected a YAML mapping, got {full_type(data)}")
    return LocketConfig.from_json_data(data, config_file=self.config_file)

  def load_stream(self, stream: TextIO) -> LocketConfig:
    self._config = self.loads(stream.read())
    return self._config

  def load(self) -> LocketConfig:
    """Loads (or loads again) the configuration file into the cache.

    Returns:
        LocketConfig: The loaded configuration; empty if the file is absent or unreadable.
    """
    text = self.read_text()
    if text is None:
      self._config = LocketConfig(config_file=self.config_file)
    else:
      self._config = self.loads(text)
    return self._config

  def reload(self) -> LocketConfig:
    return self.load()
