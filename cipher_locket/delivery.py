# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Timed delivery of a secret through the clipboard.

   A delivery session moves through

       IDLE -> DELIVERING -> AWAITING -> VERIFYING -> WIPED

   The secret is copied into the clipboard, left there until the delay elapses or the user
   presses ENTER, and then wiped, but only if the clipboard still holds exactly what was put
   there (or its contents cannot be read). If the user copied something else in the meantime
   it is left alone.

   An interruption (SIGINT/SIGTERM) at any point after the copy wipes the clipboard
   unconditionally, restores terminal echo, and then lets the interruption proceed.
"""

from typing import Optional, TextIO
from .internal_types import DelaySpec, PasteResult
from enum import Enum

import sys

from .clipboard import ClipboardPort
from .constants import LOCKET_DEFAULT_DELAY, LOCKET_TRUSTED_BIN_DIRS
from .exceptions import NoClipboardToolError
from .interrupt import InterruptDispatcher, default_dispatcher
from .sentinel import Unknown
from .terminal import AcknowledgmentWaiter, TerminalEcho, WakeReason, process_terminal
from .util import parse_delay, format_delay

class DeliveryState(Enum):
  IDLE = 'idle'
  DELIVERING = 'delivering'
  AWAITING = 'awaiting'
  VERIFYING = 'verifying'
  WIPED = 'wiped'

class ClipboardSession:
  """One secret's stay in the clipboard."""
  _label: str
  _secret: str
  _delay: int
  _state: DeliveryState = DeliveryState.IDLE
  _wiped: bool = False
  _interrupted: bool = False
  _wake_reason: Optional[WakeReason] = None

  def __init__(self, label: str, secret: str, delay: int):
    self._label = label
    self._secret = secret
    self._delay = delay

  @property
  def label(self) -> str:
    return self._label

  @property
  def secret(self) -> str:
    return self._secret

  @property
  def delay(self) -> int:
    return self._delay

  @property
  def state(self) -> DeliveryState:
    return self._state

  @property
  def wiped(self) -> bool:
    """True if the clipboard was actually overwritten with an empty string"""
    return self._wiped

  @property
  def interrupted(self) -> bool:
    return self._interrupted

  @property
  def wake_reason(self) -> Optional[WakeReason]:
    return self._wake_reason

  @property
  def finished(self) -> bool:
    return self._state is DeliveryState.WIPED

  def __repr__(self) -> str:
    # Never include the secret
    return f"<ClipboardSession {self._label!r} delay={self._delay} state={self._state.value} wiped={self._wiped}>"

class ClipboardDeliveryController:
  _port: Optional[ClipboardPort] = None
  _option_delay: DelaySpec = None
  _config_delay: DelaySpec = None
  _default_delay: int = LOCKET_DEFAULT_DELAY
  _waiter: AcknowledgmentWaiter
  _terminal: TerminalEcho
  _interrupts: InterruptDispatcher
  _out: TextIO
  _last_session: Optional[ClipboardSession] = None

  def __init__(
        self,
        port: Optional[ClipboardPort],
        option_delay: DelaySpec=None,
        config_delay: DelaySpec=None,
        default_delay: int=LOCKET_DEFAULT_DELAY,
        waiter: Optional[AcknowledgmentWaiter]=None,
        terminal: Optional[TerminalEcho]=None,
        interrupts: Optional[InterruptDispatcher]=None,
        out: Optional[TextIO]=None
      ):
    """Create a delivery controller

    Args:
        port (Optional[ClipboardPort]): The clipboard to deliver through, or None if no
            clipboard tool is available (every delivery then raises NoClipboardToolError).
        option_delay (DelaySpec, optional): Delay given on the command line; wins over everything.
        config_delay (DelaySpec, optional): Delay from the configuration file.
        default_delay (int, optional): Delay used when nothing else is given. Defaults to 45.
        waiter (Optional[AcknowledgmentWaiter], optional): Waits for ENTER or the delay. Defaults to one reading stdin.
        terminal (Optional[TerminalEcho], optional): Echo control for the wait. Defaults to the process-wide stdin terminal.
        interrupts (Optional[InterruptDispatcher], optional): Defaults to the process-wide dispatcher.
        out (Optional[TextIO], optional): Where announcements are written. Defaults to sys.stdout.
    """
    self._port = port
    self._option_delay = option_delay
    self._config_delay = config_delay
    self._default_delay = default_delay
    self._waiter = AcknowledgmentWaiter() if waiter is None else waiter
    self._terminal = process_terminal() if terminal is None else terminal
    self._interrupts = default_dispatcher() if interrupts is None else interrupts
    self._out = sys.stdout if out is None else out

  @property
  def port(self) -> Optional[ClipboardPort]:
    return self._port

  @property
  def last_session(self) -> Optional[ClipboardSession]:
    return self._last_session

  def effective_delay(self, delay: DelaySpec=None) -> int:
    """The delay for one delivery: command-line option, else per-call delay, else config, else default.

    Raises:
        InvalidDelayError: The chosen delay is not a non-negative integer
    """
    for candidate in (self._option_delay, delay, self._config_delay):
      if not candidate is None:
        return parse_delay(candidate)
    return self._default_delay

  def _emit(self, line: str) -> None:
    print(line, file=self._out)
    self._out.flush()

  def announce(self, session: ClipboardSession) -> None:
    if session.delay > 0:
      self._emit(f"# Copied ({session.label}) into clipboard with {format_delay(session.delay)} delay")
    else:
      self._emit(f"# Copied ({session.label}) into clipboard for NO delay")
    self._emit("# Press ENTER to continue (clipboard will be wiped)")

  def _wipe_on_interrupt(self, session: ClipboardSession, port: ClipboardPort) -> None:
    # The wait was cut short, so ownership of the clipboard was never verified
    session._interrupted = True
    try:
      port.wipe()
      session._wiped = True
    finally:
      self._terminal.restore()
      session._state = DeliveryState.WIPED

  def _verify_and_wipe(self, session: ClipboardSession, port: ClipboardPort) -> None:
    session._state = DeliveryState.VERIFYING
    pasted: PasteResult = port.paste()
    if pasted is Unknown or pasted == session.secret:
      port.wipe()
      session._wiped = True
    session._state = DeliveryState.WIPED

  def deliver(self, label: str, secret: str, delay: DelaySpec=None) -> ClipboardSession:
    """Puts a secret in the clipboard for a bounded time, then wipes it.

    Args:
        label (str): What is being copied, e.g. "username", "password" or "secret"
        secret (str): The text to place in the clipboard
        delay (DelaySpec, optional): A per-call delay, used when no command-line delay is given.

    Raises:
        InvalidDelayError: The delay is invalid. Raised before the clipboard is touched.
        NoClipboardToolError: There is no clipboard tool. Raised before the clipboard is touched.
        ClipboardToolError: The clipboard tool failed

    Returns:
        ClipboardSession: The finished session
    """
    effective = self.effective_delay(delay)
    port = self._port
    if port is None:
      raise NoClipboardToolError(
          "No clipboard tool (pbcopy, xsel or xclip) found in " + ", ".join(LOCKET_TRUSTED_BIN_DIRS)
        )
    session = ClipboardSession(label, secret, effective)
    self._last_session = session
    self.announce(session)

    def on_interrupt(signum: int) -> None:
      self._wipe_on_interrupt(session, port)

    with self._interrupts.cleanup(on_interrupt):
      session._state = DeliveryState.DELIVERING
      try:
        port.copy(secret)
        session._state = DeliveryState.AWAITING
        with self._terminal.noecho():
          session._wake_reason = self._waiter.wait(effective)
        if not session.finished:
          self._verify_and_wipe(session, port)
      except BaseException:
        if not session.finished:
          session._state = DeliveryState.WIPED
          port.wipe()
          session._wiped = True
        raise
    return session
