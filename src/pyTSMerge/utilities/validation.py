import numpy as np


class TimeSeriesError(ValueError):
    """Raised when a time series or interval array violates a precondition."""


class NoSyncPointError(ValueError):
    """Raised when no qualifying synchronization anchor exists."""


def check_time(time, name='time'):
    """
    Validate a timestamp array and return it as a float numpy array.

    Parameters
    ----------
    time : array-like
        Timestamps in seconds.
    name : str
        Name used in error messages.

    Returns
    -------
    np.ndarray
        1D float array of at least two finite, strictly increasing values.

    Raises
    ------
    TimeSeriesError
        If the array is not 1D, has fewer than two samples, contains
        non-finite values or is not strictly increasing.
    """

    time = np.asarray(time, dtype=float)

    if time.ndim != 1:
        raise TimeSeriesError(f"'{name}' must be one-dimensional, got shape {time.shape}")
    if len(time) < 2:
        raise TimeSeriesError(f"'{name}' needs at least two samples, got {len(time)}")
    if not np.all(np.isfinite(time)):
        raise TimeSeriesError(f"'{name}' contains non-finite values")

    steps = np.diff(time)
    if np.any(steps <= 0):
        first_bad = int(np.flatnonzero(steps <= 0)[0])
        raise TimeSeriesError(
            f"'{name}' must be strictly increasing, "
            f"but {name}[{first_bad + 1}] = {time[first_bad + 1]} follows {time[first_bad]}")

    return time


def check_time_series(time, samples, name='time series'):
    '''
    Validate a timestamp array together with its (n, k) sample array.
    '''

    time = check_time(time, name=f'{name} time')
    samples = np.asarray(samples, dtype=float)

    if samples.ndim != 2:
        raise TimeSeriesError(f"{name} samples must be two-dimensional (n, k), got shape {samples.shape}")
    if samples.shape[0] != len(time):
        raise TimeSeriesError(
            f"{name} has {len(time)} timestamps but {samples.shape[0]} samples")

    return time, samples


def check_intervals(intervals, n_points, name='intervals'):
    """
    Validate an interval array against an array of length `n_points`.

    Rows are inclusive [start, end] index pairs. They must lie within
    bounds, satisfy start <= end and be sorted without overlap.
    """

    intervals = np.asarray(intervals)

    if intervals.size == 0:
        return np.empty((0, 2), dtype=int)

    intervals = np.atleast_2d(intervals)
    if intervals.ndim != 2 or intervals.shape[1] != 2:
        raise TimeSeriesError(f"'{name}' must have shape (n, 2), got {intervals.shape}")
    if not np.issubdtype(intervals.dtype, np.integer):
        raise TimeSeriesError(f"'{name}' must contain integer indices")

    intervals = intervals.astype(int)
    starts, ends = intervals[:, 0], intervals[:, 1]

    if np.any(starts < 0) or np.any(ends >= n_points):
        raise TimeSeriesError(f"'{name}' has indices outside [0, {n_points - 1}]")
    if np.any(starts > ends):
        raise TimeSeriesError(f"'{name}' has rows with start > end")
    if np.any(starts[1:] <= ends[:-1]):
        raise TimeSeriesError(f"'{name}' must be sorted and non-overlapping")

    return intervals
