"""
Viterbi MAP decoding for discrete Hidden Markov Models.

The recurrence runs in natural-log space: products of probabilities become
sums and the max is unchanged, so long sequences do not underflow. Ties
between equally likely predecessors, and between equally likely final
states, always resolve to the smallest state index.
"""

import numbers
from dataclasses import dataclass

import numpy as np

from .model import HiddenMarkovModel
from ..config import get_config
from ..exceptions import DecodeError
from ..logger import get_decoder_logger

logger = get_decoder_logger()

# Relative gap below which two log-scores are the same probability
TIE_RTOL = 1e-12


@dataclass(frozen=True)
class ViterbiResult:
    """
    Outcome of a Viterbi decode.

    Attributes:
        path: Most likely state index per time step [T]
        log_probability: Natural log of the joint probability of ``path`` and
            the observations; -inf when every path is impossible, 0.0 for T=0
    """
    path: np.ndarray
    log_probability: float


def _as_index_array(values, upper: int, kind: str) -> np.ndarray:
    """
    Validate a sequence of integer indices in [0, upper).

    Args:
        values: Sequence or 1-D numpy array of integers
        upper: Exclusive upper bound for every value
        kind: Human-readable name used in error messages

    Returns:
        int64 array of the validated indices

    Raises:
        DecodeError: On a non-integer entry, a multi-dimensional input, or a
            value outside [0, upper)
    """
    if isinstance(values, np.ndarray):
        if values.ndim != 1:
            raise DecodeError(f"{kind} sequence must be one-dimensional, got shape {values.shape}")
        if values.dtype.kind in 'iu':
            indices = values.astype(np.int64, copy=True)
            out_of_range = np.flatnonzero((indices < 0) | (indices >= upper))
            if out_of_range.size:
                position = int(out_of_range[0])
                value = int(indices[position])
                raise DecodeError(
                    f"{kind} {value} at position {position} is outside [0, {upper})",
                    symbol=value, position=position
                )
            return indices

    indices = []
    for position, value in enumerate(values):
        if isinstance(value, (bool, np.bool_)) or not isinstance(value, numbers.Integral):
            raise DecodeError(
                f"{kind} at position {position} is not an integer: {value!r}",
                symbol=value, position=position
            )
        value = int(value)
        if not 0 <= value < upper:
            raise DecodeError(
                f"{kind} {value} at position {position} is outside [0, {upper})",
                symbol=value, position=position
            )
        indices.append(value)

    return np.asarray(indices, dtype=np.int64)


def _first_max(values: np.ndarray, axis: int = 0) -> np.ndarray:
    """
    Smallest index holding the maximum along an axis.

    Log sums of equal products can differ in the last few bits, so values
    within TIE_RTOL of the maximum count as tied with it.
    """
    best = values.max(axis=axis, keepdims=True)
    tied = (values == best) | np.isclose(values, best, rtol=TIE_RTOL, atol=0.0)
    return np.argmax(tied, axis=axis)


def _debug_interval() -> int:
    """Configured progress-logging interval; unusable values disable it."""
    value = get_config('decoder', 'log_debug_every')
    try:
        interval = int(value or 0)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring invalid decoder.log_debug_every value: {value!r}")
        return 0
    return max(interval, 0)


def _check_model(model) -> None:
    if not isinstance(model, HiddenMarkovModel):
        raise TypeError(
            f"model must be a HiddenMarkovModel built by construct_markov_model, "
            f"got {type(model).__name__}"
        )


def decode_with_score(model: HiddenMarkovModel, observations) -> ViterbiResult:
    """
    Run the Viterbi algorithm and return the MAP path with its log-probability.

    Args:
        model: Validated HiddenMarkovModel
        observations: Sequence of observation symbols, each in [0, n_observations)

    Returns:
        ViterbiResult with the path [T] and its joint log-probability

    Raises:
        DecodeError: If any observation symbol is invalid; raised before any
            decoding work is done
    """
    _check_model(model)
    try:
        obs = _as_index_array(observations, model.n_observations, 'observation symbol')
    except DecodeError as e:
        logger.debug(f"Rejected observations: {e}")
        raise

    T = len(obs)
    if T == 0:
        return ViterbiResult(path=np.empty(0, dtype=np.int64), log_probability=0.0)

    log_pi, log_A, log_B = model.log_parameters()
    n_states = model.n_states
    states = np.arange(n_states)
    log_every = _debug_interval()

    # score[t, s]: best log-probability of a path ending in s at time t
    score = np.empty((T, n_states), dtype=np.float64)
    backptr = np.zeros((T, n_states), dtype=np.int64)

    score[0] = log_pi + log_B[:, obs[0]]

    for t in range(1, T):
        # candidates[sp, s] = score[t-1, sp] + log A[sp, s]
        candidates = score[t - 1][:, np.newaxis] + log_A
        best_prev = _first_max(candidates, axis=0)
        backptr[t] = best_prev
        score[t] = candidates[best_prev, states] + log_B[:, obs[t]]

        if log_every and t % log_every == 0:
            logger.debug(f"Viterbi step {t}/{T}: best score {score[t].max():.6f}")

    final_state = int(_first_max(score[T - 1], axis=0))
    log_probability = float(score[T - 1, final_state])

    path = np.empty(T, dtype=np.int64)
    path[T - 1] = final_state
    for t in range(T - 1, 0, -1):
        path[t - 1] = backptr[t, path[t]]

    logger.debug(f"Viterbi decode completed: T={T}, n_states={n_states}, "
                 f"log_probability={log_probability:.6f}")

    return ViterbiResult(path=path, log_probability=log_probability)


def decode(model: HiddenMarkovModel, observations) -> np.ndarray:
    """
    Most likely hidden-state sequence (MAP path) for the observations.

    Args:
        model: Validated HiddenMarkovModel
        observations: Sequence of observation symbols, each in [0, n_observations)

    Returns:
        int64 array of state indices, same length as ``observations``

    Raises:
        DecodeError: If a symbol is not an integer in [0, n_observations)

    Examples:
        >>> model = construct_markov_model(
        ...     [0.5, 0.5],
        ...     [[0.75, 0.25], [0.25, 0.75]],
        ...     [[0.5, 0.5], [0.25, 0.75]])
        >>> decode(model, []).tolist()
        []
    """
    return decode_with_score(model, observations).path


def path_log_probability(model: HiddenMarkovModel, path, observations) -> float:
    """
    Natural log of the joint probability of a state path and observations.

    This is the product of the initial, transition and emission factors along
    one given path, not the total likelihood summed over all paths.

    Args:
        model: Validated HiddenMarkovModel
        path: Sequence of state indices [T]
        observations: Sequence of observation symbols [T]

    Returns:
        Log joint probability (-inf for an impossible path, 0.0 for T=0)

    Raises:
        DecodeError: If lengths differ, or a state or symbol is out of range
    """
    _check_model(model)
    obs = _as_index_array(observations, model.n_observations, 'observation symbol')
    states = _as_index_array(path, model.n_states, 'state')

    if len(states) != len(obs):
        raise DecodeError(
            f"path length {len(states)} doesn't match observations length {len(obs)}"
        )

    if len(obs) == 0:
        return 0.0

    log_pi, log_A, log_B = model.log_parameters()
    total = log_pi[states[0]]
    total += log_A[states[:-1], states[1:]].sum()
    total += log_B[states, obs].sum()
    return float(total)
