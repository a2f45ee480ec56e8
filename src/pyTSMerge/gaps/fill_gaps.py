import logging

import numpy as np
from scipy.interpolate import interp1d

from pyTSMerge.gaps.find_gaps import count_minor_gaps, find_gaps, missing_samples, modal_interval
from pyTSMerge.utilities.validation import check_intervals, check_time_series

logger = logging.getLogger(__name__)


def fill_minor_gaps(time, samples, n_min=1.5, n_max=6):
    """
    Fill the gaps of a single continuous segment.

    Every gap between `n_min` and `n_max` sampling intervals wide receives
    enough equally spaced timestamps that no spacing exceeds the modal
    interval. Sample values at the new timestamps are linearly interpolated
    across the gap, component by component.

    Parameters
    ----------
    time : np.ndarray
        Monotonic timestamps of the segment.
    samples : np.ndarray
        (n, k) samples belonging to `time`.
    n_min, n_max : float
        Gap thresholds, see `find_gaps`.

    Returns
    -------
    time_filled, samples_filled : np.ndarray
        New arrays with the original points at their original order and the
        synthesized points inserted inside each gap.
    """

    if len(time) < 2:
        return time.copy(), samples.copy()

    gap_markers, n_gaps = find_gaps(time, n_min, n_max)
    if n_gaps == 0:
        return time.copy(), samples.copy()

    dt_mode = modal_interval(time)
    n_fill = missing_samples(time[gap_markers + 1] - time[gap_markers], dt_mode)

    new_time = np.concatenate([
        np.linspace(time[i], time[i + 1], n + 2)[1:-1]
        for i, n in zip(gap_markers, n_fill)
    ])

    # Interpolate only across the gaps; no extrapolation is ever needed
    interpolator = interp1d(time, samples, axis=0, kind='linear', assume_sorted=True)
    new_samples = interpolator(new_time)

    # np.insert keeps the order of points inserted at the same position
    positions = np.repeat(gap_markers + 1, n_fill)
    time_filled = np.insert(time, positions, new_time)
    samples_filled = np.insert(samples, positions, new_samples, axis=0)

    return time_filled, samples_filled


def fill_gaps(time, samples, n_min=1.5, n_max=6, intervals=None):
    """
    Fill data gaps between n_min and n_max sampling intervals wide.

    Parameters
    ----------
    time : array-like
        Monotonic timestamps.
    samples : array-like
        (n, k) samples belonging to `time`.
    n_min : float, optional
        Minimum number of sampling intervals of a minor gap.
    n_max : float, optional
        Exclusive upper bound on the width of a minor gap. Must be finite.
    intervals : array-like of int, optional
        (n, 2) inclusive [start, end] indices of the major intervals in which
        to look for minor gaps. Defaults to the full data period. The
        modal interval is determined separately for each interval.

    Returns
    -------
    time_filled : np.ndarray
        Timestamps including the inserted points.
    samples_filled : np.ndarray
        Samples including the interpolated points.
    intervals_filled : np.ndarray
        The intervals, shifted to index into the filled arrays.

    Notes
    -----
    Points outside the intervals are copied unchanged. The inputs are never
    modified; the filled arrays are assembled from the untouched stretches
    and the filled interval slices, and every interval after the current
    one is shifted by the number of points added so far.
    """

    time, samples = check_time_series(time, samples)
    n_pts = len(time)

    if not np.isfinite(n_max):
        raise ValueError(f"n_max must be finite when filling gaps, got {n_max}")

    if intervals is None:
        intervals = np.array([[0, n_pts - 1]])
    intervals = check_intervals(intervals, n_pts)

    # If there are no gaps to fill, return right away
    n_minor_gaps = count_minor_gaps(time, intervals, n_min, n_max)
    if n_minor_gaps == 0:
        return time.copy(), samples.copy(), intervals.copy()

    time_pieces = []
    sample_pieces = []
    intervals_filled = intervals.copy()
    position = 0
    n_diff_total = 0

    for i, (start, end) in enumerate(intervals):
        # untouched points between the previous interval and this one
        time_pieces.append(time[position:start])
        sample_pieces.append(samples[position:start])

        t_temp, b_temp = fill_minor_gaps(time[start:end + 1], samples[start:end + 1], n_min, n_max)

        n_diff = len(t_temp) - (end - start + 1)
        intervals_filled[i] = [start + n_diff_total, end + n_diff_total + n_diff]
        n_diff_total += n_diff

        time_pieces.append(t_temp)
        sample_pieces.append(b_temp)
        position = end + 1

    time_pieces.append(time[position:])
    sample_pieces.append(samples[position:])

    time_filled = np.concatenate(time_pieces)
    samples_filled = np.concatenate(sample_pieces, axis=0)

    logger.info("Filled %d minor gaps with %d points", n_minor_gaps, n_diff_total)

    return time_filled, samples_filled, intervals_filled


def testing():

    time = np.array([0, 1, 2, 4, 5, 6, 9, 10, 11, 20, 21, 22], dtype=float)
    samples = np.column_stack((time, 2 * time, np.sin(time)))

    time_filled, samples_filled, intervals = fill_gaps(time, samples,
                                                       n_min=1.5,
                                                       n_max=6,
                                                       intervals=[[0, 8], [9, 11]])

    print("Filled time:", time_filled)
    print("Filled samples:", samples_filled)
    print("Intervals:", intervals)


if __name__ == "__main__":
    testing()
