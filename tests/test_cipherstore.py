#
# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Tests for decrypting and parsing the cipherstore"""

import subprocess

import pytest

from cipher_locket import (
  Cipherstore,
  CipherstoreLoader,
  DecryptFailureError,
  InvalidReadDirectiveError,
  UnreadableStoreError,
)
import cipher_locket.cipherstore as cipherstore_module

YAML_STORE = """%YAML 1.1
---
# A GMail identity
alice@gmail: p455w0rd
# Some frequently used credit card information
cc4123: |
    4123412341234123
    01/23
    123
"""


class TestPipeCommand:
  @pytest.mark.parametrize("read_command,expected", [
    ("<gpg -d ~/.locket.gpg", "gpg -d ~/.locket.gpg"),
    ("|gpg -d ~/.locket.gpg", "gpg -d ~/.locket.gpg"),
    ("  </usr/bin/gpg -q", "/usr/bin/gpg -q"),
  ])
  def test_piped_reads(self, read_command, expected):
    assert CipherstoreLoader.pipe_command(read_command) == expected

  @pytest.mark.parametrize("read_command", [None, "", "gpg -d x", "~/.locket.json", "<", "|   ", ">gpg"])
  def test_rejected(self, read_command):
    with pytest.raises(InvalidReadDirectiveError):
      CipherstoreLoader.pipe_command(read_command)


class TestParse:
  def test_yaml(self):
    store = CipherstoreLoader.parse(YAML_STORE)
    assert store["alice@gmail"] == "p455w0rd"
    assert store["cc4123"] == "4123412341234123\n01/23\n123\n"
    assert sorted(store) == ["alice@gmail", "cc4123"]

  def test_yaml_without_final_newline(self):
    store = CipherstoreLoader.parse("a: 1\nb: two")
    assert dict(store) == {"a": "1", "b": "two"}

  def test_json(self):
    store = CipherstoreLoader.parse('  {"alice@gmail": "p455w0rd", "cc4123": "4123\\n01/23\\n123"}')
    assert store["cc4123"] == "4123\n01/23\n123"

  def test_plain_scalars_keep_their_text(self):
    store = CipherstoreLoader.parse(
        "pin: 0123\nflag: yes\nlock: 12:30\nhex: 0x1F\nissued: 2020-01-01\nratio: 1.50\n42: answer\n"
      )
    assert dict(store) == {
        "pin": "0123",
        "flag": "yes",
        "lock": "12:30",
        "hex": "0x1F",
        "issued": "2020-01-01",
        "ratio": "1.50",
        "42": "answer",
      }

  @pytest.mark.parametrize("plaintext", ["empty:\n", "empty: ~\n", "empty: null\n"])
  def test_null_is_empty_text(self, plaintext):
    assert CipherstoreLoader.parse(plaintext)["empty"] == ""

  def test_json_scalars_become_text(self):
    store = CipherstoreLoader.parse('{"pin": 1234, "ok": true, "off": false, "none": null}')
    assert dict(store) == {"pin": "1234", "ok": "true", "off": "false", "none": ""}

  def test_empty_mapping_is_a_valid_store(self):
    assert len(CipherstoreLoader.parse("{}")) == 0

  @pytest.mark.parametrize("plaintext", [
    '{"unterminated": ',
    "alice: [not closed\n",
    "- just\n- a list\n",
    "",
    "just a string",
    "nested:\n  a: b\n",
  ])
  def test_unreadable(self, plaintext):
    with pytest.raises(UnreadableStoreError):
      CipherstoreLoader.parse(plaintext)

  def test_repr_hides_secrets(self):
    store = Cipherstore({"alice@gmail": "p455w0rd"}, store_name="cat x")
    assert "p455w0rd" not in repr(store)
    assert "p455w0rd" not in str(store)


class TestDecryptAndParse:
  def test_reads_command_output(self, tmp_path):
    plain = tmp_path / "store.yml"
    plain.write_text(YAML_STORE)
    store = CipherstoreLoader().decrypt_and_parse(f'<cat "{plain}"')
    assert store["alice@gmail"] == "p455w0rd"
    assert store.store_name == f'cat "{plain}"'

  def test_command_sees_only_trusted_path(self, monkeypatch):
    monkeypatch.setenv("PATH", "/somewhere/untrusted")
    loader = CipherstoreLoader(trusted_dirs=["/bin", "/usr/bin"])
    store = loader.decrypt_and_parse("""<echo '{"path": "'"$PATH"'"}'""")
    assert store["path"] == "/bin:/usr/bin"

  def test_non_zero_exit(self):
    with pytest.raises(DecryptFailureError):
      CipherstoreLoader().decrypt_and_parse("<echo '{}'; exit 3")

  def test_missing_program(self, tmp_path):
    with pytest.raises(DecryptFailureError):
      CipherstoreLoader().decrypt_and_parse(f"<{tmp_path}/no-such-decryptor")

  def test_cannot_start(self, monkeypatch):
    def broken_run(*args, **kwargs):
      raise OSError("no shell")

    monkeypatch.setattr(cipherstore_module.subprocess, "run", broken_run)
    with pytest.raises(DecryptFailureError, match="no shell"):
      CipherstoreLoader().decrypt_and_parse("<cat x")

  def test_garbage_output_is_not_a_decrypt_failure(self):
    with pytest.raises(UnreadableStoreError):
      CipherstoreLoader().decrypt_and_parse("<echo 'a: [b'")

  def test_undecodable_output(self, monkeypatch):
    def fake_run(*args, **kwargs):
      return subprocess.CompletedProcess(args, 0, stdout=b"\xff\xfe")

    monkeypatch.setattr(cipherstore_module.subprocess, "run", fake_run)
    with pytest.raises(UnreadableStoreError):
      CipherstoreLoader().decrypt_and_parse("<cat x")
