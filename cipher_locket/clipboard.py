# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Access to the system clipboard through external tools.

   Tools are probed in a fixed order (pbcopy/pbpaste, xsel, xclip) and are looked up only in a
   fixed set of trusted directories; $PATH is never searched. The first tool found is used for
   the rest of the session.
"""

from typing import Optional, Sequence, Tuple, Type
from .internal_types import PasteResult, TrustedDirs

import subprocess

from .constants import LOCKET_TRUSTED_BIN_DIRS
from .exceptions import ClipboardToolError
from .sentinel import Unknown
from .util import find_trusted_cmd, trusted_env

class ClipboardPort:
  """Abstract clipboard: put text in, read text back."""

  @property
  def name(self) -> str:
    return type(self).__name__

  def copy(self, text: str) -> None:
    """Replaces the clipboard contents with text.

    Raises:
        ClipboardToolError: The clipboard could not be written
    """
    raise NotImplementedError()

  def paste(self) -> PasteResult:
    """Returns the exact clipboard contents, or Unknown if they could not be read."""
    raise NotImplementedError()

  def wipe(self) -> None:
    self.copy('')

  def __str__(self) -> str:
    return f"<{self.name}>"

class ToolClipboardPort(ClipboardPort):
  """A clipboard reached through a copy tool (text on stdin) and a paste tool (text on stdout)."""
  COPY_TOOL: str = ''
  COPY_ARGS: Tuple[str, ...] = ()
  PASTE_TOOL: str = ''
  PASTE_ARGS: Tuple[str, ...] = ()
  TOOL_TIMEOUT: float = 5.0

  _copy_cmd: str
  _paste_cmd: Optional[str] = None
  _trusted_dirs: TrustedDirs
  _encoding: str

  def __init__(
        self,
        copy_cmd: str,
        paste_cmd: Optional[str]=None,
        trusted_dirs: TrustedDirs=LOCKET_TRUSTED_BIN_DIRS,
        encoding: str='utf-8'
      ):
    self._copy_cmd = copy_cmd
    self._paste_cmd = paste_cmd
    self._trusted_dirs = tuple(trusted_dirs)
    self._encoding = encoding

  @classmethod
  def probe(cls, trusted_dirs: TrustedDirs=LOCKET_TRUSTED_BIN_DIRS) -> Optional['ToolClipboardPort']:
    """Returns a port if this variant's copy tool is installed in a trusted directory, else None."""
    copy_cmd = find_trusted_cmd(cls.COPY_TOOL, trusted_dirs)
    if copy_cmd is None:
      return None
    paste_cmd = find_trusted_cmd(cls.PASTE_TOOL, trusted_dirs)
    return cls(copy_cmd, paste_cmd, trusted_dirs=trusted_dirs)

  @property
  def name(self) -> str:
    return self.COPY_TOOL

  @property
  def copy_cmd(self) -> str:
    return self._copy_cmd

  @property
  def paste_cmd(self) -> Optional[str]:
    return self._paste_cmd

  def copy(self, text: str) -> None:
    cmd = [ self._copy_cmd ] + list(self.COPY_ARGS)
    try:
      # X11 tools fork to serve the selection; their stdout must not be a pipe we wait on
      proc = subprocess.run(
          cmd,
          input=text.encode(self._encoding),
          stdout=subprocess.DEVNULL,
          stderr=subprocess.DEVNULL,
          env=trusted_env(self._trusted_dirs),
          timeout=self.TOOL_TIMEOUT,
        )
    except (OSError, subprocess.TimeoutExpired) as ex:
      raise ClipboardToolError(f"{self.name}: unable to copy to clipboard: {ex}") from ex
    if proc.returncode != 0:
      raise ClipboardToolError(f"{self.name}: copy exited with return code {proc.returncode}")

  def paste(self) -> PasteResult:
    if self._paste_cmd is None:
      return Unknown
    cmd = [ self._paste_cmd ] + list(self.PASTE_ARGS)
    try:
      proc = subprocess.run(
          cmd,
          stdin=subprocess.DEVNULL,
          stdout=subprocess.PIPE,
          stderr=subprocess.DEVNULL,
          env=trusted_env(self._trusted_dirs),
          timeout=self.TOOL_TIMEOUT,
        )
    except (OSError, subprocess.TimeoutExpired):
      return Unknown
    if proc.returncode != 0:
      return Unknown
    try:
      return proc.stdout.decode(self._encoding)
    except UnicodeDecodeError:
      return Unknown

class PbClipboardPort(ToolClipboardPort):
  """macOS pasteboard"""
  COPY_TOOL = 'pbcopy'
  PASTE_TOOL = 'pbpaste'

class XselClipboardPort(ToolClipboardPort):
  COPY_TOOL = 'xsel'
  COPY_ARGS = ( '--clipboard', '--input' )
  PASTE_TOOL = 'xsel'
  PASTE_ARGS = ( '--clipboard', '--output' )

class XclipClipboardPort(ToolClipboardPort):
  COPY_TOOL = 'xclip'
  COPY_ARGS = ( '-selection', 'clipboard', '-i' )
  PASTE_TOOL = 'xclip'
  PASTE_ARGS = ( '-selection', 'clipboard', '-o' )

CLIPBOARD_PORT_CLASSES: Sequence[Type[ToolClipboardPort]] = (
    PbClipboardPort,
    XselClipboardPort,
    XclipClipboardPort,
  )

def locate_clipboard_port(
      trusted_dirs: TrustedDirs=LOCKET_TRUSTED_BIN_DIRS,
      port_classes: Sequence[Type[ToolClipboardPort]]=CLIPBOARD_PORT_CLASSES
    ) -> Optional[ClipboardPort]:
  """Finds the first installed clipboard tool.

  Args:
      trusted_dirs (TrustedDirs, optional): The only directories searched, in order.
      port_classes (Sequence[Type[ToolClipboardPort]], optional): Variants to probe, in order.

  Returns:
      Optional[ClipboardPort]: A port for the first variant found, or None if there is no tool.
  """
  for klass in port_classes:
    port = klass.probe(trusted_dirs)
    if not port is None:
      return port
  return None
