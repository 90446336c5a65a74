"""
Exception hierarchy for the hmm_decoder library.
"""


class HMMDecoderError(Exception):
    """Base exception for hmm_decoder."""
    pass


class ConfigurationError(HMMDecoderError, ValueError):
    """Invalid model parameters: bad shapes, probabilities or row sums."""
    pass


class DecodeError(HMMDecoderError, ValueError):
    """Invalid decoder input, such as an out-of-range observation symbol."""

    def __init__(self, message: str, symbol=None, position=None):
        self.symbol = symbol
        self.position = position
        super().__init__(message)
