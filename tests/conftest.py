#
# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Shared fixtures and fakes for cipher_locket tests"""

import io
import os
import stat
from typing import Callable, List, Optional, Sequence

import pytest

from cipher_locket import ClipboardPort, ClipboardToolError, TerminalEcho, Unknown, WakeReason


class FakeClipboardPort(ClipboardPort):
  """In-memory clipboard that records every copy."""

  def __init__(self, readable: bool = True, fail_on: Sequence[str] = ()):
    self.contents = ""
    self.copies: List[str] = []
    self.pastes = 0
    self.readable = readable
    self.fail_on = list(fail_on)

  def copy(self, text: str) -> None:
    self.copies.append(text)
    if text in self.fail_on:
      raise ClipboardToolError(f"fake: refusing to copy {len(text)} chars")
    self.contents = text

  def paste(self):
    self.pastes += 1
    if not self.readable:
      return Unknown
    return self.contents


class FakeWaiter:
  """Stands in for AcknowledgmentWaiter; optionally runs an action while "waiting"."""

  def __init__(self, reason: WakeReason = WakeReason.TIMEOUT, during_wait: Optional[Callable[[], None]] = None):
    self.reason = reason
    self.during_wait = during_wait
    self.timeouts: List[float] = []

  def wait(self, timeout: float) -> WakeReason:
    self.timeouts.append(timeout)
    if self.during_wait is not None:
      self.during_wait()
    return self.reason


class FakeTerminal(TerminalEcho):
  """Counts echo changes instead of touching a real terminal."""

  def __init__(self):
    super().__init__(io.StringIO())
    self.disables = 0
    self.restores = 0
    self.echo_off = False

  def disable(self) -> None:
    self.disables += 1
    self.echo_off = True

  def restore(self) -> None:
    if self.echo_off:
      self.restores += 1
    self.echo_off = False


def make_executable(path, content: str = "#!/bin/sh\nexit 0\n") -> str:
  with open(path, "w") as f:
    f.write(content)
  os.chmod(path, os.stat(path).st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
  return str(path)


@pytest.fixture
def fake_port() -> FakeClipboardPort:
  return FakeClipboardPort()


@pytest.fixture
def fake_terminal() -> FakeTerminal:
  return FakeTerminal()


@pytest.fixture
def bin_dir(tmp_path):
  d = tmp_path / "bin"
  d.mkdir()
  return d
