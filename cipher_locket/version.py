# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Version of the cipher_locket package"""

#import importlib.metadata as _metadata
#__version__ =  _metadata.version(__package__.replace('_','-'))
__version__ =  "0.3.0"

__all__ = [ '__version__' ]
