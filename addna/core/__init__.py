"""
Core infrastructure modules for the fingerprint registry, errors and utilities.
"""

from .errors import *
from .registry import *
from .utils import *
