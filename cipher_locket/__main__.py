#!/usr/bin/env python3
#
# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Command-line interface for cipher_locket package"""

from typing import Optional, Sequence, TextIO

import os
import sys
import argparse
import argcomplete # type: ignore[import]
import colorama # type: ignore[import]
from colorama import Fore, Style
import subprocess
import tempfile

# NOTE: this module runs with -m; do not use relative imports
from cipher_locket import (
    __version__ as pkg_version,
    ConfigStore,
    CipherstoreLoader,
    ClipboardDeliveryController,
    ClipboardPort,
    LocketConfig,
    NoClipboardToolError,
    NoMatch,
    Unique,
    dispatch,
    locate_clipboard_port,
    parse_delay,
    resolve,
  )
from cipher_locket.constants import LOCKET_CONFIG_TEMPLATE, LOCKET_TRUSTED_BIN_DIRS
from cipher_locket.internal_types import TrustedDirs
from cipher_locket.util import trusted_env

SETUP_COMMANDS = ( 'setup', 'cfg', 'config' )

USAGE_EPILOG = '''
commands:
  setup       Setup a new or edit an existing user configuration file (~/.locket/cfg
              under the per-user data directory)
  edit        Edit the cipherstore. The configuration must have an "edit" value, e.g.:
                  /usr/bin/vim -n ~/.locket.gpg
  <query>     Search the cipherstore for <query> and emit the resulting secret. The
              configuration must have a "read" value telling how to read the cipherstore.
              Only piped commands are supported, e.g.:
                  </usr/local/bin/gpg -q --no-tty -d ~/.locket.gpg
              If the found key is of the form "<username>@<site>" the username is emitted
              before the secret. "/" lists every key.

With no command, the configuration status is displayed.
'''

def is_colorizable(stream: TextIO) -> bool:
  is_a_tty = hasattr(stream, 'isatty') and stream.isatty()
  return is_a_tty

class CmdExitError(RuntimeError):
  exit_code: int

  def __init__(self, exit_code: int, msg: Optional[str]=None):
    if msg is None:
      msg = f"Command exited with return code {exit_code}"
    super().__init__(msg)
    self.exit_code = exit_code

class CommandHandler:
  _argv: Optional[Sequence[str]]
  _parser: argparse.ArgumentParser
  _args: argparse.Namespace
  _trusted_dirs: TrustedDirs
  _config_store: Optional[ConfigStore] = None
  _controller: Optional[ClipboardDeliveryController] = None
  _port: Optional[ClipboardPort] = None
  _port_located: bool = False
  _copy: bool = False
  _colorize_stderr: bool = False

  def __init__(self, argv: Optional[Sequence[str]]=None, trusted_dirs: TrustedDirs=LOCKET_TRUSTED_BIN_DIRS):
    self._argv = argv
    self._trusted_dirs = tuple(trusted_dirs)

  def ecolor(self, codes: str) -> str:
    return codes if self._colorize_stderr else ""

  def stdout(self, text: str) -> None:
    if text.endswith('\n'):
      text = text[:-1]
    print(text)

  def stderr(self, text: str) -> None:
    if text.endswith('\n'):
      text = text[:-1]
    print(text, file=sys.stderr)

  @property
  def config_store(self) -> ConfigStore:
    assert not self._config_store is None
    return self._config_store

  @property
  def config(self) -> LocketConfig:
    return self.config_store.config

  def get_clipboard_port(self) -> Optional[ClipboardPort]:
    if not self._port_located:
      self._port = locate_clipboard_port(self._trusted_dirs)
      self._port_located = True
    return self._port

  def get_controller(self) -> ClipboardDeliveryController:
    if self._controller is None:
      self._controller = ClipboardDeliveryController(
          self.get_clipboard_port(),
          option_delay=self._args.delay,
          config_delay=self.config.delay,
        )
    return self._controller

  def emit(self, label: str, text: str) -> None:
    self.stdout(text)

  def deliver(self, label: str, text: str) -> None:
    if not self._copy:
      self.emit(label, text)
      return
    try:
      self.get_controller().deliver(label, text)
    except NoClipboardToolError as ex:
      self.stderr(f"{self.ecolor(Fore.YELLOW)}% {ex}; emitting ({label}) instead{self.ecolor(Style.RESET_ALL)}")
      self.emit(label, text)

  def run_shell(self, command: str) -> int:
    return subprocess.call(command, shell=True, env=trusted_env(self._trusted_dirs))

  def cmd_status(self) -> int:
    config_file = self.config_store.config_file
    cfg = self.config
    read = '-' if cfg.read is None else cfg.read
    edit = '-' if cfg.edit is None else cfg.edit
    self.stdout(f"""cipher-locket {pkg_version}

    {'-' if config_file is None else config_file} ({self.config_store.file_size()})

      Read cipherstore: {read}
      Edit cipherstore: {edit}
""")
    return 0

  def cmd_help(self) -> int:
    self._parser.print_help()
    return 0

  def cmd_setup(self) -> int:
    store = self.config_store
    config_file = store.config_file
    if config_file is None:
      raise RuntimeError("Unable to determine a home directory for the configuration file; use --cfg <file>")
    content = store.read_text()
    if content is None or content.strip() == '':
      content = LOCKET_CONFIG_TEMPLATE
    config_dir = os.path.dirname(config_file)
    os.makedirs(config_dir, exist_ok=True)
    fd, tmp_file = tempfile.mkstemp(prefix='.locket.cfg.', dir=config_dir)
    try:
      with os.fdopen(fd, 'w', encoding='utf-8') as f:
        f.write(content)
      editor = os.environ.get('VISUAL') or os.environ.get('EDITOR') or 'vi'
      rc = subprocess.call(f'{editor} "$LOCKET_CFG_FILE"', shell=True, env=dict(trusted_env(self._trusted_dirs), LOCKET_CFG_FILE=tmp_file))
      if rc != 0:
        raise CmdExitError(rc, f"Editor exited with return code {rc}; {config_file} not changed")
      if os.path.getsize(tmp_file) > 0:
        os.replace(tmp_file, config_file)
    finally:
      if os.path.exists(tmp_file):
        os.remove(tmp_file)
    store.reload()
    return 0

  def cmd_edit(self) -> int:
    edit = self.config.edit
    if edit is None or edit == '':
      self.stderr("% Missing (edit) in cfg")
      return 0
    return self.run_shell(edit)

  def cmd_query(self, query: str) -> int:
    args = self._args
    # Reject a bad delay before anything is decrypted or copied
    delay = args.delay if not args.delay is None else self.config.delay
    if not delay is None:
      parse_delay(delay)
    loader = CipherstoreLoader(self._trusted_dirs)
    store = loader.decrypt_and_parse(self.config.read)
    result = resolve(query, store)
    if isinstance(result, Unique):
      dispatch(result.key, store[result.key], self.deliver)
    elif isinstance(result, NoMatch):
      self.stdout(f"# No matches for \"{result.query}\"")
    else:
      if result.query != '':
        self.stdout(f"# Found for \"{result.query}\":")
      for key in result.keys:
        self.stdout(f"    {key}")
    return 0

  def run(self) -> int:
    """Run the locket command-line tool with provided arguments

    Returns:
        int: The exit code that would be returned if this were run as a standalone command.
    """
    parser = argparse.ArgumentParser(
        prog='locket',
        description="Copy secrets from a YAML/JSON cipherstore to stdout or the clipboard (pbcopy, xsel, xclip).",
        epilog=USAGE_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
      )
    self._parser = parser
    parser.add_argument('--traceback', "--tb", action='store_true', default=False,
                        help='Display detailed exception information')
    parser.add_argument('-M', '--monochrome', action='store_true', default=False,
                        help='Output to stderr in monochrome. Default is to colorize if stream is a compatible terminal')
    parser.add_argument('--copy', action='store_true', default=False,
                        help='Copy value to clipboard using pbcopy, xsel, or xclip')
    parser.add_argument('--delay', default=None,
                        help='''Keep value in clipboard for <delay> seconds. If value is still in the
                                clipboard at the end of <delay> then it will be automatically wiped
                                from the clipboard''')
    parser.add_argument('--cfg', '--config', dest='config_file', default=None,
                        help='Use <file> for configuration')
    parser.add_argument('target', nargs='?', default=None,
                        help='setup, edit, help, or a <query>')

    argcomplete.autocomplete(parser)
    args = parser.parse_args(self._argv)
    if args.delay == '':
      # An empty --delay means unset, as it does in the config file
      args.delay = None
    traceback: bool = args.traceback
    try:
      self._args = args
      self._copy = args.copy
      if not args.monochrome:
        self._colorize_stderr = is_colorizable(sys.stderr)
        if self._colorize_stderr:
          colorama.init(wrap=False)
          sys.stderr = colorama.AnsiToWin32(sys.stderr).stream
      self._config_store = ConfigStore(args.config_file)
      self._config_store.load()
      target: Optional[str] = args.target
      if target is None:
        rc = self.cmd_status()
      elif target == 'help':
        rc = self.cmd_help()
      elif target in SETUP_COMMANDS:
        rc = self.cmd_setup()
      elif target == 'edit':
        rc = self.cmd_edit()
      else:
        rc = self.cmd_query(target)
    except KeyboardInterrupt:
      if traceback:
        raise
      rc = 130
    except Exception as ex:
      if isinstance(ex, CmdExitError):
        rc = ex.exit_code
      else:
        rc = 1
      if rc != 0:
        if traceback:
          raise

        print(f"{self.ecolor(Fore.RED)}locket: error: {ex}{self.ecolor(Style.RESET_ALL)}", file=sys.stderr)
    return rc

def run(argv: Optional[Sequence[str]]=None) -> int:
  try:
    rc = CommandHandler(argv).run()
  except CmdExitError as ex:
    rc = ex.exit_code
  return rc

# allow running with "python3 -m", or as a standalone script
if __name__ == "__main__":
  sys.exit(run())
