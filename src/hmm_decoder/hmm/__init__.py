"""
Hidden Markov Model module.

Immutable discrete HMM container and Viterbi MAP decoding.
"""

from .model import HiddenMarkovModel, construct_markov_model
from .viterbi import ViterbiResult, decode, decode_with_score, path_log_probability

__all__ = [
    "HiddenMarkovModel",
    "construct_markov_model",
    "ViterbiResult",
    "decode",
    "decode_with_score",
    "path_log_probability"
]
