#
# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Tests for the process-wide interruption dispatcher"""

import signal

import pytest

from cipher_locket import InterruptDispatcher, default_dispatcher


@pytest.fixture
def usr1():
  previous = signal.getsignal(signal.SIGUSR1)
  yield signal.SIGUSR1
  signal.signal(signal.SIGUSR1, previous)


class TestRegistration:
  def test_install_and_restore_previous_handler(self, usr1):
    def outer(signum, frame):
      pass

    signal.signal(usr1, outer)
    dispatcher = InterruptDispatcher(signals=(usr1,))
    with dispatcher.cleanup(lambda signum: None):
      assert dispatcher.installed
      assert signal.getsignal(usr1) == dispatcher._handle
    assert not dispatcher.installed
    assert signal.getsignal(usr1) is outer

  def test_stays_installed_until_last_callback_removed(self, usr1):
    signal.signal(usr1, signal.SIG_IGN)
    dispatcher = InterruptDispatcher(signals=(usr1,))
    first = lambda signum: None
    second = lambda signum: None
    dispatcher.register(first)
    dispatcher.register(second)
    dispatcher.unregister(first)
    assert dispatcher.installed
    dispatcher.unregister(second)
    assert not dispatcher.installed
    assert signal.getsignal(usr1) == signal.SIG_IGN

  def test_default_dispatcher_is_shared(self):
    assert default_dispatcher() is default_dispatcher()


class TestHandling:
  def test_callbacks_run_most_recent_first_then_chain(self, usr1):
    calls = []

    def outer(signum, frame):
      calls.append(("outer", signum))

    signal.signal(usr1, outer)
    dispatcher = InterruptDispatcher(signals=(usr1,))
    dispatcher.register(lambda signum: calls.append(("first", signum)))
    dispatcher.register(lambda signum: calls.append(("second", signum)))
    signal.raise_signal(usr1)

    assert calls == [("second", usr1), ("first", usr1), ("outer", usr1)]
    assert dispatcher.num_callbacks == 0
    assert not dispatcher.installed

  def test_failing_callback_does_not_skip_others_or_chain(self, usr1):
    calls = []

    def outer(signum, frame):
      calls.append("outer")

    def broken(signum):
      raise RuntimeError("wipe failed")

    signal.signal(usr1, outer)
    dispatcher = InterruptDispatcher(signals=(usr1,))
    dispatcher.register(lambda signum: calls.append("first"))
    dispatcher.register(broken)
    with pytest.raises(RuntimeError, match="wipe failed"):
      signal.raise_signal(usr1)

    assert calls == ["first", "outer"]

  def test_default_previous_handler_exits(self, usr1):
    signal.signal(usr1, signal.SIG_DFL)
    dispatcher = InterruptDispatcher(signals=(usr1,))
    cleaned = []
    dispatcher.register(cleaned.append)
    with pytest.raises(SystemExit) as exc_info:
      dispatcher._handle(usr1, None)

    assert cleaned == [usr1]
    assert exc_info.value.code == 128 + usr1
    assert signal.getsignal(usr1) == signal.SIG_DFL
