"""
hmm_decoder: Viterbi MAP decoding for discrete Hidden Markov Models

A Python library that finds the most likely hidden-state sequence behind a
stream of discrete observation symbols, e.g. coding vs non-coding regions
of a DNA sequence or which biased coin produced each toss.
"""

__version__ = "0.1.0"
__author__ = "hmm_decoder Development Team"

from .config import get_config, set_config
from .logger import get_logger
from .exceptions import HMMDecoderError, ConfigurationError, DecodeError
from .hmm import (
    HiddenMarkovModel,
    construct_markov_model,
    ViterbiResult,
    decode,
    decode_with_score,
    path_log_probability
)

__all__ = [
    "get_config",
    "set_config",
    "get_logger",
    "HMMDecoderError",
    "ConfigurationError",
    "DecodeError",
    "HiddenMarkovModel",
    "construct_markov_model",
    "ViterbiResult",
    "decode",
    "decode_with_score",
    "path_log_probability",
    "__version__"
]
