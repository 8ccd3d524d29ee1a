#
# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""The Unknown sentinel, returned when the clipboard's contents cannot be read.

Unknown is a singleton and never compares equal to any string, including "". Test it
with "is":

    if port.paste() is Unknown:
      ...
"""

from typing import Optional

class UnknownType:
  _instance: Optional['UnknownType'] = None

  def __new__(cls) -> 'UnknownType':
    if cls._instance is None:
      cls._instance = super().__new__(cls)
    return cls._instance

  def __copy__(self) -> 'UnknownType':
    return self

  def __deepcopy__(self, memo: dict) -> 'UnknownType':
    return self

  def __reduce__(self) -> str:
    return 'Unknown'

  def __str__(self) -> str:
    return 'Unknown'

  def __repr__(self) -> str:
    return "<Sentinel 'Unknown'>"

Unknown = UnknownType()
