#
# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Tests for routing a resolved entry to a delivery callback"""

from cipher_locket import classify, dispatch


def collect(key, value):
  delivered = []
  dispatch(key, value, lambda label, text: delivered.append((label, text)))
  return delivered


def test_identity_key_delivers_username_then_password():
  assert collect("alice@gmail", "p455w0rd") == [("username", "alice"), ("password", "p455w0rd")]


def test_username_stops_at_first_at_sign():
  assert collect("alice@example.com@work", "pw") == [("username", "alice"), ("password", "pw")]


def test_plain_key_delivers_secret():
  assert collect("cc4123", "4123\n01/23\n123\n") == [("secret", "4123\n01/23\n123\n")]


def test_key_starting_with_at_sign_is_plain():
  assert classify("@gmail") is None
  assert collect("@gmail", "x") == [("secret", "x")]
