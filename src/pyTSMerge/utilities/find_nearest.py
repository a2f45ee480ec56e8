import numpy as np


def find_nearest(array, values):
    """
    Find the elements of a sorted array nearest to each of the target values.

    Each value is bracketed with `numpy.searchsorted` by the first element
    not smaller than it and the element before that. The earlier element is
    taken only if it is strictly closer, so exact midpoints resolve to the
    later element.

    Parameters
    ----------
    array : array-like
        Sorted 1D array, e.g. timestamps.
    values : array-like or scalar
        Target values.

    Returns
    -------
    indices : np.ndarray
        Indices into `array`, shaped like `values`.
    distances : np.ndarray
        Absolute differences between each value and its nearest element.
    """

    array = np.asarray(array, dtype=float)
    values = np.asarray(values, dtype=float)

    idx = np.searchsorted(array, values, side='left')
    after = np.clip(idx, 0, len(array) - 1)
    before = np.clip(idx - 1, 0, len(array) - 1)

    d_after = np.abs(values - array[after])
    d_before = np.abs(values - array[before])
    use_before = d_before < d_after

    return np.where(use_before, before, after), np.where(use_before, d_before, d_after)
