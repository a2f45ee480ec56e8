import logging

import numpy as np

from pyTSMerge.gaps.find_gaps import find_gaps
from pyTSMerge.sync.sync_time import SyncDirection, sync_time
from pyTSMerge.utilities.validation import NoSyncPointError, TimeSeriesError, check_time

logger = logging.getLogger(__name__)

# Major gaps are at least this many sampling intervals wide
DEFAULT_MAJOR_N_MIN = 6.0


def _prepare_markers(time, gaps, name):
    """
    Return the gap markers of `time` with the last index appended.

    Gap markers are the indices of the points preceding each data gap, so
    continuous data runs from [0, ..., i], [i+1, ..., j], [j+1, ..., k].
    Appending the last point of the data set gives every interval a
    paired end index.
    """

    last = len(time) - 1

    if gaps is None:
        gaps, _ = find_gaps(time, n_min=DEFAULT_MAJOR_N_MIN)

    gaps = np.unique(np.asarray(gaps, dtype=int).ravel())
    if gaps.size and (gaps[0] < 0 or gaps[-1] > last):
        raise TimeSeriesError(f"'{name}' has markers outside [0, {last}]")

    if not gaps.size or gaps[-1] != last:
        gaps = np.append(gaps, last)

    return gaps


def find_merge_intervals(time_a, time_b, gaps_a=None, gaps_b=None):
    """
    Find the continuous data intervals that span both data sets.

    The two streams' gap markers are walked in lockstep. At each step the
    earlier of the two upcoming gaps ends the current interval, its end is
    synchronized backward into the other stream and the sample after the
    gap, synchronized forward, starts the next interval.

    Parameters
    ----------
    time_a, time_b : array-like
        Monotonic timestamps of the two streams.
    gaps_a, gaps_b : array-like of int, optional
        Major gap markers (index of the point before each gap). If omitted,
        they are found with `find_gaps(time, n_min=DEFAULT_MAJOR_N_MIN)`.

    Returns
    -------
    intervals_a, intervals_b : np.ndarray
        (n, 2) arrays of inclusive [start, end] indices into each stream.
        Row i of both arrays describes the same stretch of time. Streams
        without any overlap give two empty (0, 2) arrays.
    """

    times = (check_time(time_a, name='time_a'), check_time(time_b, name='time_b'))
    markers = (_prepare_markers(times[0], gaps_a, 'gaps_a'),
               _prepare_markers(times[1], gaps_b, 'gaps_b'))

    recorded = ([], [])

    def as_arrays():
        return tuple(np.array(rows, dtype=int).reshape(-1, 2) for rows in recorded)

    #
    # Sync the first interval. Whichever stream starts second is the
    # reference; search the other one forward, since there are no
    # points before the first recorded time.
    #
    lead = 0 if times[0][0] >= times[1][0] else 1
    other = 1 - lead
    starts = [0, 0]
    try:
        starts[other], starts[lead] = sync_time(times[other], times[lead], 0, SyncDirection.FORWARD)
    except NoSyncPointError as e:
        logger.info("Streams do not overlap: %s", e)
        return as_arrays()

    # Candidates for the end of the first interval. A start sitting on a
    # marker keeps that marker, so its gap still ends the interval.
    cursors = [int(np.searchsorted(markers[s], starts[s], side='left')) for s in (0, 1)]

    while cursors[0] < len(markers[0]) and cursors[1] < len(markers[1]):

        # The earlier gap ends the interval (stream A on ties)
        gap_times = [times[s][markers[s][cursors[s]]] for s in (0, 1)]
        lead = 0 if gap_times[0] <= gap_times[1] else 1
        other = 1 - lead

        gap_index = int(markers[lead][cursors[lead]])
        ends = [0, 0]
        try:
            ends[other], ends[lead] = sync_time(times[other], times[lead], gap_index, SyncDirection.BACKWARD)
        except NoSyncPointError as e:
            logger.warning("Stopping interval search at index %d of stream %s: %s",
                           gap_index, 'AB'[lead], e)
            break

        # Record the interval only if it is not empty and follows the previous one
        if all(starts[s] < ends[s] and (not recorded[s] or starts[s] > recorded[s][-1][1])
               for s in (0, 1)):
            recorded[0].append((starts[0], ends[0]))
            recorded[1].append((starts[1], ends[1]))
            logger.debug("Merge interval A[%d, %d] B[%d, %d]",
                         starts[0], ends[0], starts[1], ends[1])

        # Reached the end of the last continuous interval
        if cursors[lead] == len(markers[lead]) - 1:
            break

        # No overlap remains once the next start lies beyond the other stream
        next_start = gap_index + 1
        if times[lead][next_start] > times[other][-1]:
            break

        try:
            starts[other], starts[lead] = sync_time(times[other], times[lead], next_start, SyncDirection.FORWARD)
        except NoSyncPointError as e:
            logger.warning("Stopping interval search at index %d of stream %s: %s",
                           next_start, 'AB'[lead], e)
            break

        cursors = [max(cursors[s], int(np.searchsorted(markers[s], starts[s], side='left')))
                   for s in (0, 1)]

    intervals_a, intervals_b = as_arrays()
    logger.info("Found %d merge intervals", len(intervals_a))

    return intervals_a, intervals_b
