# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Terminal echo control and the acknowledgment wait used while a secret is in the clipboard."""

from typing import Optional, List, Any, TextIO, Iterator, Callable
from contextlib import contextmanager
from enum import Enum

import atexit
import os
import select
import sys
import termios
import time

class WakeReason(Enum):
  TIMEOUT = 'timeout'
  ACKNOWLEDGED = 'acknowledged'

class TerminalEcho:
  """Turns keypress echo off and back on for a terminal stream.

  Does nothing if the stream is not a terminal. restore() may be called any number of times.
  """
  _stream: TextIO
  _saved_attrs: Optional[List[Any]] = None

  def __init__(self, stream: TextIO):
    self._stream = stream

  def _fileno(self) -> Optional[int]:
    try:
      if not self._stream.isatty():
        return None
      return self._stream.fileno()
    except (AttributeError, OSError, ValueError):
      return None

  @property
  def is_disabled(self) -> bool:
    return not self._saved_attrs is None

  def disable(self) -> None:
    fd = self._fileno()
    if fd is None or not self._saved_attrs is None:
      return
    attrs = termios.tcgetattr(fd)
    self._saved_attrs = attrs
    new_attrs = list(attrs)
    new_attrs[3] = new_attrs[3] & ~termios.ECHO
    termios.tcsetattr(fd, termios.TCSADRAIN, new_attrs)

  def restore(self) -> None:
    saved_attrs = self._saved_attrs
    if saved_attrs is None:
      return
    self._saved_attrs = None
    fd = self._fileno()
    if not fd is None:
      termios.tcsetattr(fd, termios.TCSADRAIN, saved_attrs)

  @contextmanager
  def noecho(self) -> Iterator['TerminalEcho']:
    self.disable()
    try:
      yield self
    finally:
      self.restore()

class AcknowledgmentWaiter:
  """Blocks until a line of input arrives or a timeout elapses, without polling."""
  _stream: TextIO
  _clock: Callable[[], float]
  _sleep: Callable[[float], None]

  def __init__(
        self,
        stream: Optional[TextIO]=None,
        clock: Callable[[], float]=time.monotonic,
        sleep: Callable[[float], None]=time.sleep
      ):
    self._stream = sys.stdin if stream is None else stream
    self._clock = clock
    self._sleep = sleep

  def wait(self, timeout: float) -> WakeReason:
    """Waits up to timeout seconds for the user to press ENTER.

    Any line, including an empty one, counts as acknowledgment. If input is at end-of-file or
    is not selectable, the full timeout is slept out.

    Args:
        timeout (float): Seconds to wait. Zero returns immediately.

    Returns:
        WakeReason: ACKNOWLEDGED if a line was read, TIMEOUT otherwise
    """
    deadline = self._clock() + timeout
    if timeout <= 0:
      return WakeReason.TIMEOUT
    try:
      fd = self._stream.fileno()
    except (AttributeError, OSError, ValueError):
      self._sleep(timeout)
      return WakeReason.TIMEOUT
    # Read the descriptor a byte at a time, never through the stream's buffer, so that a
    # second ENTER stays in the kernel for the next wait to see
    while True:
      remaining = deadline - self._clock()
      if remaining <= 0:
        return WakeReason.TIMEOUT
      readable, _, _ = select.select([ fd ], [], [], remaining)
      if len(readable) == 0:
        return WakeReason.TIMEOUT
      ch = os.read(fd, 1)
      if ch == b'':
        # EOF: nobody can acknowledge, so honor the full delay
        remaining = deadline - self._clock()
        if remaining > 0:
          self._sleep(remaining)
        return WakeReason.TIMEOUT
      if ch == b'\n':
        return WakeReason.ACKNOWLEDGED

_process_terminal: Optional[TerminalEcho] = None

def process_terminal() -> TerminalEcho:
  """Returns the process-wide TerminalEcho for stdin.

  Its restore() is registered with atexit the first time this is called, so echo mode is put
  back before the process exits even if delivery was never attempted or was interrupted.
  """
  global _process_terminal
  if _process_terminal is None:
    _process_terminal = TerminalEcho(sys.stdin)
    atexit.register(_process_terminal.restore)
  return _process_terminal
