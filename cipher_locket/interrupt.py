# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Process-wide interruption handling.

   Cleanup callbacks are registered in order. When an interruption signal arrives, the
   callbacks run most-recent-first and then the handler that was installed before ours is
   invoked, so an outer context still sees the interruption. If there was no Python-level
   handler before ours, the process exits with status 128 + signal number.
"""

from typing import Callable, Dict, List, Optional, Any, Iterator, Sequence
from contextlib import contextmanager

import signal
import sys

CleanupFn = Callable[[int], None]
"""A cleanup callback; receives the signal number"""

DEFAULT_SIGNALS: Sequence[int] = ( signal.SIGINT, signal.SIGTERM )

class InterruptDispatcher:
  _signals: Sequence[int]
  _callbacks: List[CleanupFn]
  _previous: Dict[int, Any]
  _installed: bool = False

  def __init__(self, signals: Sequence[int]=DEFAULT_SIGNALS):
    self._signals = tuple(signals)
    self._callbacks = []
    self._previous = {}

  @property
  def installed(self) -> bool:
    return self._installed

  @property
  def num_callbacks(self) -> int:
    return len(self._callbacks)

  def _install(self) -> None:
    if self._installed:
      return
    for signum in self._signals:
      self._previous[signum] = signal.getsignal(signum)
      signal.signal(signum, self._handle)
    self._installed = True

  def _uninstall(self) -> None:
    if not self._installed:
      return
    for signum in self._signals:
      previous = self._previous.get(signum, None)
      if previous is None:
        # Installed from outside Python; the best we can do is the default
        previous = signal.SIG_DFL
      signal.signal(signum, previous)
    self._installed = False

  def register(self, callback: CleanupFn) -> None:
    self._callbacks.append(callback)
    self._install()

  def unregister(self, callback: CleanupFn) -> None:
    if callback in self._callbacks:
      self._callbacks.remove(callback)
    if len(self._callbacks) == 0:
      self._uninstall()

  @contextmanager
  def cleanup(self, callback: CleanupFn) -> Iterator[CleanupFn]:
    """Registers callback for the duration of a with block."""
    self.register(callback)
    try:
      yield callback
    finally:
      self.unregister(callback)

  def _chain(self, signum: int, previous: Any, frame: Any) -> None:
    if callable(previous):
      previous(signum, frame)
    else:
      sys.exit(128 + signum)

  def _handle(self, signum: int, frame: Any) -> None:
    callbacks = list(reversed(self._callbacks))
    self._callbacks.clear()
    previous = self._previous.get(signum, None)
    self._uninstall()
    try:
      self._run_callbacks(callbacks, signum)
    finally:
      self._chain(signum, previous, frame)

  def _run_callbacks(self, callbacks: List[CleanupFn], signum: int) -> None:
    # Every callback runs even if an earlier one fails; the first failure is re-raised
    first_error: Optional[Exception] = None
    for callback in callbacks:
      try:
        callback(signum)
      except Exception as ex:
        if first_error is None:
          first_error = ex
    if not first_error is None:
      raise first_error

_default_dispatcher: Optional[InterruptDispatcher] = None

def default_dispatcher() -> InterruptDispatcher:
  """Returns the process-wide InterruptDispatcher."""
  global _default_dispatcher
  if _default_dispatcher is None:
    _default_dispatcher = InterruptDispatcher()
  return _default_dispatcher
