# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Cipherstore, the decrypted key/value secret document, and the loader that produces it.

   The cipherstore is kept encrypted on disk and decrypted by an external command named in the
   configuration's "read" property. Only piped reads are supported:

       read: '</usr/local/bin/gpg -q --no-tty -d ~/.locket.gpg'

   The command's standard output is either a JSON object or a YAML mapping of key -> secret:

       %YAML 1.1
       ---
       # A GMail identity
       alice@gmail: p455w0rd
       # Some frequently used credit card information
       cc4123: |
           4123412341234123
           01/23
           123

   Decrypted content is held in memory only; it is never written back or cached.
"""

from typing import Iterator, Optional, Dict, Any, Mapping
from .internal_types import SecretDict, TrustedDirs

import json
import re
import subprocess
import yaml

from .constants import LOCKET_TRUSTED_BIN_DIRS
from .exceptions import InvalidReadDirectiveError, DecryptFailureError, UnreadableStoreError
from .util import full_type, trusted_env

_piped_read_pattern = re.compile(r'^\s*[|<]')
_json_shape_pattern = re.compile(r'^\s*\{')

_YAML_NULL_TAG = "tag:yaml.org,2002:null"

class TextScalarLoader(yaml.SafeLoader):
  """A SafeLoader that keeps plain scalars as written: 0123, yes, 12:30 and 2020-01-01 all
  load as str. Only null (empty, "~", "null") is still resolved.
  """

TextScalarLoader.yaml_implicit_resolvers = {
    first: [ (tag, regexp) for tag, regexp in resolvers if tag == _YAML_NULL_TAG ]
      for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
  }

class Cipherstore(Mapping[str, str]):
  """A read-only mapping of key -> secret text."""
  _secrets: Dict[str, str]
  _store_name: Optional[str] = None

  def __init__(self, secrets: Optional[SecretDict]=None, store_name: Optional[str]=None):
    self._secrets = {} if secrets is None else dict(secrets)
    self._store_name = store_name

  @property
  def store_name(self) -> str:
    """The name of the store; the read command it was decrypted with, if known."""
    name = self._store_name
    if name is None:
      name = f"Cipherstore({id(self)})"
    return name

  def __str__(self) -> str:
    name = self._store_name
    if name is None:
      result = f"<Cipherstore {id(self)}>"
    else:
      result = f"<Cipherstore {json.dumps(name)}>"
    return result

  def __repr__(self) -> str:
    # Never include secrets
    return f"<Cipherstore@{id(self)} keys={len(self._secrets)}>"

  def __getitem__(self, key: str) -> str:
    return self._secrets[key]

  def __len__(self) -> int:
    return len(self._secrets)

  def __iter__(self) -> Iterator[str]:
    return iter(self._secrets)

  def __contains__(self, key: object) -> bool:
    return key in self._secrets

def _secret_text(key: str, value: Any) -> str:
  if isinstance(value, str):
    return value
  if isinstance(value, bool):
    return 'true' if value else 'false'
  if value is None:
    return ''
  if isinstance(value, (int, float)):
    return str(value)
  raise UnreadableStoreError(f"Unable to read store: value for key {json.dumps(key)} is a {full_type(value)}, not text")

class CipherstoreLoader:
  """Runs the configured decrypt command and parses its output into a Cipherstore."""
  _trusted_dirs: TrustedDirs
  _encoding: str

  def __init__(self, trusted_dirs: TrustedDirs=LOCKET_TRUSTED_BIN_DIRS, encoding: str='utf-8'):
    """Create a loader

    Args:
        trusted_dirs (TrustedDirs, optional): The directories that make up PATH for the
            decrypt command. Defaults to /bin, /usr/bin, /usr/local/bin.
        encoding (str, optional): The encoding of the decrypted document. Defaults to 'utf-8'.
    """
    self._trusted_dirs = tuple(trusted_dirs)
    self._encoding = encoding

  @classmethod
  def pipe_command(cls, read_command: Optional[str]) -> str:
    """Extracts the shell command from a piped read directive ("<cmd" or "|cmd").

    Raises:
        InvalidReadDirectiveError: The directive is missing or is not a piped read
    """
    if read_command is None:
      raise InvalidReadDirectiveError("Missing (read) in cfg")
    if not isinstance(read_command, str) or not _piped_read_pattern.match(read_command):
      raise InvalidReadDirectiveError(f"Invalid read ({read_command})")
    pipe = _piped_read_pattern.sub('', read_command, count=1)
    if pipe.strip() == '':
      raise InvalidReadDirectiveError(f"Invalid read ({read_command}): no command")
    return pipe

  def run_decrypt(self, pipe: str) -> bytes:
    """Runs the decrypt command and returns its standard output.

    Standard input and standard error are inherited so that the decrypt tool can prompt
    for a passphrase.

    Raises:
        DecryptFailureError: The command could not be started or exited with non-zero status
    """
    try:
      proc = subprocess.run(
          pipe,
          shell=True,
          stdout=subprocess.PIPE,
          env=trusted_env(self._trusted_dirs),
        )
    except OSError as ex:
      raise DecryptFailureError(f"Unable to run decrypt command: {ex}") from ex
    if proc.returncode != 0:
      raise DecryptFailureError(f"Decrypt command exited with return code {proc.returncode}")
    return proc.stdout

  @classmethod
  def parse(cls, plaintext: str, store_name: Optional[str]=None) -> Cipherstore:
    """Parses a plaintext store document. JSON if it starts with '{', otherwise YAML.

    Raises:
        UnreadableStoreError: The text is neither a JSON object nor a YAML mapping
    """
    data: Any
    try:
      if _json_shape_pattern.match(plaintext):
        data = json.loads(plaintext)
      else:
        # Tolerate documents with no final newline
        data = yaml.load(plaintext + "\n", Loader=TextScalarLoader)
    except (json.JSONDecodeError, yaml.YAMLError) as ex:
      raise UnreadableStoreError(f"Unable to read store: {ex}") from ex
    if not isinstance(data, dict):
      raise UnreadableStoreError(f"Unable to read store: expected a mapping, got {full_type(data)}")
    secrets: Dict[str, str] = {}
    for k, v in data.items():
      key = k if isinstance(k, str) else str(k)
      secrets[key] = _secret_text(key, v)
    return Cipherstore(secrets, store_name=store_name)

  def decrypt_and_parse(self, read_command: Optional[str]) -> Cipherstore:
    """Decrypts the cipherstore with a piped read directive and parses the result.

    Args:
        read_command (Optional[str]): The "read" configuration value, e.g. "<gpg -d ~/.locket.gpg"

    Raises:
        InvalidReadDirectiveError: read_command is not a piped read
        DecryptFailureError: The decrypt command could not be run or failed
        UnreadableStoreError: The decrypted output could not be parsed

    Returns:
        Cipherstore: The decrypted store
    """
    pipe = self.pipe_command(read_command)
    raw = self.run_decrypt(pipe)
    try:
      plaintext = raw.decode(self._encoding)
    except UnicodeDecodeError as ex:
      raise UnreadableStoreError(f"Unable to read store: output is not {self._encoding} text") from ex
    return self.parse(plaintext, store_name=pipe.strip())
