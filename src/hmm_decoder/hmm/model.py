"""
Discrete Hidden Markov Model container.

This module implements an immutable, validated HMM with discrete emissions.
A model is built once from its three probability tables (initial state
distribution, state transitions and symbol emissions) and is read-only
afterwards, so a single instance can be shared by any number of decode calls.
"""

import numpy as np
from typing import Optional, Sequence, Tuple, Union

from ..config import get_config
from ..exceptions import ConfigurationError
from ..logger import get_model_logger

logger = get_model_logger()

ArrayLike = Union[Sequence[float], Sequence[Sequence[float]], np.ndarray]


def _check_rectangular(values, name: str) -> None:
    """Reject ragged nested sequences before numpy sees them."""
    if isinstance(values, np.ndarray):
        return

    try:
        lengths = [len(row) for row in values]
    except TypeError:
        raise ConfigurationError(f"{name} must be a two-dimensional table of probabilities")

    for row_idx, length in enumerate(lengths):
        if length != lengths[0]:
            raise ConfigurationError(
                f"{name} rows have inconsistent lengths: row 0 has {lengths[0]} "
                f"columns, row {row_idx} has {length}"
            )


def _as_probability_array(values: ArrayLike, name: str, ndim: int) -> np.ndarray:
    """
    Convert user input to a private float64 array of the given dimensionality.

    Raises:
        ConfigurationError: If the input is ragged, non-numeric or has the
            wrong number of dimensions
    """
    if ndim == 2:
        _check_rectangular(values, name)

    try:
        array = np.array(values, dtype=np.float64, copy=True)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must contain only numeric probabilities: {e}")

    if array.ndim != ndim:
        expected = "vector" if ndim == 1 else "matrix"
        raise ConfigurationError(
            f"{name} must be a {expected} ({ndim}-D), got {array.ndim}-D array with shape {array.shape}"
        )

    return array


def _check_range(table: np.ndarray, name: str) -> None:
    """Every entry must lie in [0, 1]; NaN counts as out of range."""
    outside = ~((table >= 0.0) & (table <= 1.0))
    if np.any(outside):
        location = tuple(int(i) for i in np.argwhere(outside)[0])
        index = location[0] if len(location) == 1 else ", ".join(str(i) for i in location)
        raise ConfigurationError(
            f"{name}[{index}] = {table[location]} is outside [0, 1]"
        )


def _check_row_sums(table: np.ndarray, name: str, tolerance: float) -> None:
    """Each row of a stochastic matrix must sum to 1 within tolerance."""
    row_sums = table.sum(axis=1)
    for row_idx, row_sum in enumerate(row_sums):
        if abs(row_sum - 1.0) > tolerance:
            raise ConfigurationError(
                f"{name} row {row_idx} sums to {row_sum}, expected 1.0 "
                f"(tolerance {tolerance})"
            )


def _read_only(array: np.ndarray) -> np.ndarray:
    array.setflags(write=False)
    return array


class HiddenMarkovModel:
    """
    Immutable discrete Hidden Markov Model.

    The model holds:
    - initial: state probabilities at t=0 [n_states]
    - transition: A[i, j] = P(q_t+1=j | q_t=i) [n_states, n_states]
    - emission: B[i, k] = P(o_t=k | q_t=i) [n_states, n_observations]

    All invariants are checked in the constructor, so every instance in
    existence is valid. Stored arrays are private read-only copies.
    """

    __slots__ = (
        '_initial', '_transition', '_emission',
        '_log_initial', '_log_transition', '_log_emission',
        '_tolerance',
    )

    def __init__(self, initial: ArrayLike, transition: ArrayLike, emission: ArrayLike,
                 tolerance: Optional[float] = None):
        """
        Validate and store model parameters.

        Args:
            initial: Initial state probabilities [n_states]
            transition: Transition matrix [n_states, n_states]
            emission: Emission matrix [n_states, n_observations]
            tolerance: Allowed deviation of any row sum from 1.0
                (default: config['model']['tolerance'])

        Raises:
            ConfigurationError: If any dimension, range or row-sum invariant
                is violated
        """
        if tolerance is None:
            tolerance = get_config('model', 'tolerance')
        try:
            tolerance = float(tolerance)
        except (TypeError, ValueError):
            raise ConfigurationError(f"tolerance must be a number, got {tolerance!r}")
        if not tolerance >= 0.0:
            raise ConfigurationError(f"tolerance must be non-negative, got {tolerance}")

        pi = _as_probability_array(initial, 'initial', ndim=1)
        n_states = pi.shape[0]
        if n_states == 0:
            raise ConfigurationError("initial must contain at least one state")

        A = _as_probability_array(transition, 'transition', ndim=2)
        B = _as_probability_array(emission, 'emission', ndim=2)

        if A.shape != (n_states, n_states):
            raise ConfigurationError(
                f"transition shape {A.shape} doesn't match expected ({n_states}, {n_states})"
            )

        if B.shape[0] != n_states:
            raise ConfigurationError(
                f"emission has {B.shape[0]} rows, expected {n_states} (one per state)"
            )

        if B.shape[1] == 0:
            raise ConfigurationError("emission must have at least one observation symbol")

        _check_range(pi, 'initial')
        _check_range(A, 'transition')
        _check_range(B, 'emission')

        pi_sum = pi.sum()
        if abs(pi_sum - 1.0) > tolerance:
            raise ConfigurationError(
                f"initial probabilities sum to {pi_sum}, expected 1.0 (tolerance {tolerance})"
            )
        _check_row_sums(A, 'transition', tolerance)
        _check_row_sums(B, 'emission', tolerance)

        # log(0) = -inf is the intended encoding of impossible events
        with np.errstate(divide='ignore'):
            log_pi = np.log(pi)
            log_A = np.log(A)
            log_B = np.log(B)

        setattr_ = object.__setattr__
        setattr_(self, '_initial', _read_only(pi))
        setattr_(self, '_transition', _read_only(A))
        setattr_(self, '_emission', _read_only(B))
        setattr_(self, '_log_initial', _read_only(log_pi))
        setattr_(self, '_log_transition', _read_only(log_A))
        setattr_(self, '_log_emission', _read_only(log_B))
        setattr_(self, '_tolerance', tolerance)

        logger.debug(f"Constructed HiddenMarkovModel with {n_states} states "
                     f"and {B.shape[1]} observations")

    @classmethod
    def from_probabilities(cls, initial: ArrayLike, transition: ArrayLike, emission: ArrayLike,
                           tolerance: Optional[float] = None) -> 'HiddenMarkovModel':
        """Alternate spelling of the validating constructor."""
        return cls(initial, transition, emission, tolerance=tolerance)

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __reduce__(self):
        # Rebuild through the validating constructor (pickle, copy, deepcopy)
        return (type(self), (self._initial, self._transition, self._emission, self._tolerance))

    @property
    def n_states(self) -> int:
        return self._initial.shape[0]

    @property
    def n_observations(self) -> int:
        return self._emission.shape[1]

    @property
    def tolerance(self) -> float:
        return self._tolerance

    @property
    def initial(self) -> np.ndarray:
        """Read-only initial state probabilities [n_states]."""
        return self._initial

    @property
    def transition(self) -> np.ndarray:
        """Read-only transition matrix [n_states, n_states]."""
        return self._transition

    @property
    def emission(self) -> np.ndarray:
        """Read-only emission matrix [n_states, n_observations]."""
        return self._emission

    def get_parameters(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Get writable copies of the model parameters.

        Returns:
            Tuple of (initial, transition, emission)
        """
        return self._initial.copy(), self._transition.copy(), self._emission.copy()

    def log_parameters(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Get the natural-log parameter tables used for decoding.

        Zero probabilities appear as -inf. The arrays are read-only and
        shared, not copied.

        Returns:
            Tuple of (log_initial, log_transition, log_emission)
        """
        return self._log_initial, self._log_transition, self._log_emission

    def map_estimate(self, observations) -> np.ndarray:
        """
        Most likely hidden-state path for an observation sequence.

        Shorthand for ``hmm_decoder.hmm.viterbi.decode(self, observations)``.
        """
        from .viterbi import decode
        return decode(self, observations)

    def __eq__(self, other) -> bool:
        if not isinstance(other, HiddenMarkovModel):
            return NotImplemented
        return (np.array_equal(self._initial, other._initial)
                and np.array_equal(self._transition, other._transition)
                and np.array_equal(self._emission, other._emission))

    def __hash__(self) -> int:
        return hash((self._emission.shape,
                     self._initial.tobytes(),
                     self._transition.tobytes(),
                     self._emission.tobytes()))

    def __repr__(self) -> str:
        return f"HiddenMarkovModel(n_states={self.n_states}, n_observations={self.n_observations})"


def construct_markov_model(initial: ArrayLike, transition: ArrayLike, emission: ArrayLike,
                           tolerance: Optional[float] = None) -> HiddenMarkovModel:
    """
    Build a validated, immutable HMM from its probability tables.

    Args:
        initial: Initial state probabilities, length N
        transition: N x N matrix, transition[i][j] = P(next=j | current=i)
        emission: N x M matrix, emission[i][k] = P(symbol=k | state=i)
        tolerance: Allowed deviation of a row sum from 1.0
            (default: config['model']['tolerance'])

    Returns:
        HiddenMarkovModel

    Raises:
        ConfigurationError: On a dimension mismatch, a probability outside
            [0, 1], or a row not summing to 1 within tolerance

    Examples:
        >>> model = construct_markov_model(
        ...     [0.5, 0.5],
        ...     [[0.75, 0.25], [0.25, 0.75]],
        ...     [[0.5, 0.5], [0.25, 0.75]])
        >>> model.n_states, model.n_observations
        (2, 2)
    """
    try:
        return HiddenMarkovModel(initial, transition, emission, tolerance=tolerance)
    except ConfigurationError as e:
        logger.debug(f"Rejected model parameters: {e}")
        raise
