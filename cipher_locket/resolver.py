# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Resolution of a user query against cipherstore keys.

   An exact key always wins; otherwise the query is matched as a case-sensitive substring,
   so "gmail" finds "alice@gmail". The empty query (or "/") lists every key.
"""

from typing import Iterable, Mapping, Tuple

import json

class ResolutionResult:
  """The outcome of resolving a query: exactly one of NoMatch, Unique or Ambiguous."""
  _query: str
  _keys: Tuple[str, ...]

  def __init__(self, query: str, keys: Iterable[str]=()):
    self._query = query
    self._keys = tuple(sorted(set(keys)))

  @property
  def query(self) -> str:
    """The query after stripping a leading '/'"""
    return self._query

  @property
  def keys(self) -> Tuple[str, ...]:
    """The candidate keys, sorted and without duplicates"""
    return self._keys

  def __eq__(self, other: object) -> bool:
    if not isinstance(other, ResolutionResult):
      return False
    return type(self) is type(other) and self._query == other._query and self._keys == other._keys

  def __ne__(self, other: object) -> bool:
    return not (self == other)

  def __hash__(self) -> int:
    return hash((type(self).__name__, self._query, self._keys))

  def __repr__(self) -> str:
    return f"{type(self).__name__}({json.dumps(self._query)}, {list(self._keys)!r})"

class NoMatch(ResolutionResult):
  def __init__(self, query: str):
    super().__init__(query, ())

class Unique(ResolutionResult):
  def __init__(self, query: str, key: str):
    super().__init__(query, (key,))

  @property
  def key(self) -> str:
    return self._keys[0]

class Ambiguous(ResolutionResult):
  pass

def normalize_query(query: str) -> str:
  """Strips a single leading '/', so "/alice@gmail" and "alice@gmail" are the same query."""
  if query.startswith('/'):
    query = query[1:]
  return query

def resolve(query: str, store: Mapping[str, str]) -> ResolutionResult:
  """Resolves a query against the keys of a cipherstore.

  Args:
      query (str): The user's query. A single leading '/' is ignored.
      store (Mapping[str, str]): The decrypted cipherstore

  Returns:
      ResolutionResult: Ambiguous(all keys) for the empty query; Unique(query) for an exact key;
                        otherwise NoMatch, Unique or Ambiguous according to the number of keys
                        containing the query.
  """
  target = normalize_query(query)
  if target == '':
    return Ambiguous(target, store.keys())
  if target in store:
    return Unique(target, target)
  found = sorted(k for k in store.keys() if target in k)
  if len(found) == 0:
    return NoMatch(target)
  if len(found) == 1:
    return Unique(target, found[0])
  return Ambiguous(target, found)
