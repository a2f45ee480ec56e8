"""
Tests for pyTSMerge.merge_preparation, pyTSMerge.time_series and
pyTSMerge.config.parameters modules.

This module tests the TimeSeries container, parameter loading, and the
preparation of two gapped streams for merging.
"""

import math

import numpy as np
import pytest
from pyTSMerge.config.parameters import MergeParameters, load_parameters
from pyTSMerge.merge_preparation import interval_summary, prepare_merge
from pyTSMerge.time_series import TimeSeries
from pyTSMerge.utilities.validation import TimeSeriesError


def make_stream(time, name):
    time = np.asarray(time, dtype=float)
    samples = np.column_stack((np.sin(time), np.cos(time), time))
    return TimeSeries(time, samples, name=name)


@pytest.fixture
def streams():
    """
    Stream A ("fgm"): 1.0 s sampling from 0 to 99, a major gap 30-40 and
    minor gaps (missing 12, 13 and 75).
    Stream B ("scm"): 0.5 s sampling from 0.5 to 99.5, a major gap 60-70
    and a minor gap (missing 20.0 and 20.5).
    """
    time_a = np.concatenate((np.arange(0, 31), np.arange(40, 100))).astype(float)
    time_a = time_a[~np.isin(time_a, [12, 13, 75])]

    time_b = np.concatenate((np.arange(1, 121), np.arange(140, 200))) * 0.5
    time_b = time_b[~np.isin(time_b, [20.0, 20.5])]

    return make_stream(time_a, 'fgm'), make_stream(time_b, 'scm')


class TestTimeSeries:
    """Tests for the TimeSeries container."""

    def test_arrays_are_read_only_copies(self):
        time = np.arange(5, dtype=float)
        samples = np.zeros((5, 3))

        series = TimeSeries(time, samples)
        time[0] = -1.0

        assert series.time[0] == 0.0
        with pytest.raises(ValueError):
            series.time[1] = 10.0

    def test_length_mismatch_rejected(self):
        with pytest.raises(TimeSeriesError):
            TimeSeries(np.arange(5.0), np.zeros((6, 3)))

    def test_non_monotonic_rejected(self):
        with pytest.raises(TimeSeriesError, match='strictly increasing'):
            TimeSeries([0.0, 2.0, 1.0], np.zeros((3, 3)))

    def test_segment(self):
        series = make_stream(np.arange(10), 'fgm')

        segment = series.segment(2, 5)

        assert len(segment) == 4
        assert segment.n_components == 3
        np.testing.assert_array_equal(segment.time, [2, 3, 4, 5])


class TestMergeParameters:
    """Tests for MergeParameters and load_parameters."""

    def test_defaults(self):
        parameters = load_parameters()

        assert parameters == MergeParameters()
        assert parameters.major_n_min == 6.0
        assert math.isinf(parameters.major_n_max)

    def test_yaml_file_with_overrides(self, tmp_path):
        path = tmp_path / 'merge.yaml'
        path.write_text('major_n_min: 8\nminor_n_max: 8\n')

        parameters = load_parameters(path, overrides={'minor_n_min': 2})

        assert parameters.major_n_min == 8.0
        assert parameters.minor_n_max == 8.0
        assert parameters.minor_n_min == 2.0

    def test_unknown_parameter_rejected(self, tmp_path):
        path = tmp_path / 'merge.yaml'
        path.write_text('n_gaps: 3\n')

        with pytest.raises(ValueError, match='Unknown merge parameters'):
            load_parameters(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_parameters(tmp_path / 'missing.yaml')

    def test_invalid_thresholds_rejected(self):
        with pytest.raises(ValueError, match='minor_n_min'):
            MergeParameters(minor_n_min=7.0, minor_n_max=6.0)
        with pytest.raises(ValueError, match='finite'):
            MergeParameters(minor_n_max=math.inf)


class TestPrepareMerge:
    """Tests for prepare_merge and interval_summary functions."""

    def test_intervals_and_minor_gaps(self, streams):
        """
        Three merge intervals remain: 1-30 s, 40-60 s and 70-99 s. A's minor
        gaps at 12-13 s and 75 s and B's at 20-20.5 s lie inside them and are
        filled.
        """
        stream_a, stream_b = streams

        preparation = prepare_merge(stream_a, stream_b)

        assert preparation.n_intervals == 3
        assert preparation.n_minor_gaps == (2, 1)
        assert len(preparation.stream_a) == len(stream_a) + 3
        assert len(preparation.stream_b) == len(stream_b) + 2

        t_a = preparation.stream_a.time
        t_b = preparation.stream_b.time
        np.testing.assert_allclose(t_a[preparation.intervals_a], [[1, 30], [40, 60], [70, 99]])
        np.testing.assert_allclose(t_b[preparation.intervals_b], [[1, 30], [40, 60], [70, 99]])

    def test_filled_intervals_are_gap_free(self, streams):
        preparation = prepare_merge(*streams)
        parameters = preparation.parameters

        for stream, intervals in ((preparation.stream_a, preparation.intervals_a),
                                  (preparation.stream_b, preparation.intervals_b)):
            for start, end in intervals:
                segment = stream.segment(start, end)
                assert np.all(np.diff(segment.time) < parameters.minor_n_min * np.median(np.diff(segment.time)))

    def test_inputs_are_not_modified(self, streams):
        stream_a, stream_b = streams
        n_a, n_b = len(stream_a), len(stream_b)

        prepare_merge(stream_a, stream_b)

        assert (len(stream_a), len(stream_b)) == (n_a, n_b)

    def test_start_index_selected_in_interval(self, streams):
        preparation = prepare_merge(*streams, ref_time=80.0)

        index_a, index_b = preparation.start_index
        assert preparation.stream_a.time[index_a] == pytest.approx(80.0)
        assert preparation.stream_b.time[index_b] == pytest.approx(80.0)

    def test_start_index_outside_data_rejected(self, streams):
        """120 s lies after the last sample of stream A."""
        with pytest.raises(ValueError, match='outside the data interval'):
            prepare_merge(*streams, ref_time=120.0)

    def test_no_overlap(self):
        stream_a = make_stream(np.arange(10), 'fgm')
        stream_b = make_stream(np.arange(10) + 50, 'scm')

        preparation = prepare_merge(stream_a, stream_b)

        assert preparation.n_intervals == 0
        assert preparation.n_minor_gaps == (0, 0)
        assert interval_summary(preparation).empty

    def test_interval_summary(self, streams):
        preparation = prepare_merge(*streams)

        summary = interval_summary(preparation)

        assert len(summary) == 3
        assert summary['t_start_a'].tolist() == pytest.approx([1.0, 40.0, 70.0])
        assert summary['duration'].tolist() == pytest.approx([29.0, 20.0, 29.0])
        assert summary['n_samples_a'].tolist() == [30, 21, 30]
        assert summary['n_samples_b'].tolist() == [59, 41, 59]
        assert summary.attrs['parameters'] == preparation.parameters.to_dict()
        assert summary.attrs['parameters']['minor_n_max'] == 6.0
