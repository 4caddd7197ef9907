"""
Creative fingerprinting services: feature extraction, DNA derivation,
compliance rules and the verification engine.
"""

from .compliance import *
from .dna import *
from .features import *
from .verification import *
