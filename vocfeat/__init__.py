# vocfeat/__init__.py

"""
vocfeat: streaming LPCNet-style feature extraction for 16 kHz speech.
"""

from .version import __version__
from .errors import VocfeatError, ConfigurationError

__all__ = ["__version__", "VocfeatError", "ConfigurationError"]
