"""Tests for the BurstDetector building blocks."""

from eventcluster.clustering.bursts import BurstDetector
from eventcluster.clustering.configuration import ClusteringConfiguration


class TestFindRuns:
    """Test splitting into burst-spaced runs."""

    def test_runs_split_on_large_gap(self, make_series):
        detector = BurstDetector(ClusteringConfiguration(burst_threshold_seconds=30))
        runs = detector.find_runs(make_series([0, 10, 20, 100, 110]))
        assert [[a.id for a in run] for run in runs] == [["p0", "p1", "p2"], ["p3", "p4"]]

    def test_gap_equal_to_threshold_stays_in_run(self, make_series):
        detector = BurstDetector(ClusteringConfiguration(burst_threshold_seconds=30))
        assert len(detector.find_runs(make_series([0, 30, 60]))) == 1

    def test_empty(self):
        assert BurstDetector().find_runs([]) == []


class TestBurstWindows:
    """Test window cutting of long runs."""

    def test_short_run_not_burst(self, make_series):
        detector = BurstDetector(ClusteringConfiguration(min_burst_size=3))
        windows = detector.burst_windows(make_series([0, 1]))
        assert [(len(m), b) for m, b in windows] == [(2, False)]

    def test_run_within_bounds_is_one_burst(self, make_series):
        detector = BurstDetector(ClusteringConfiguration(min_burst_size=3, max_burst_size=10))
        windows = detector.burst_windows(make_series(list(range(10))))
        assert [(len(m), b) for m, b in windows] == [(10, True)]

    def test_long_run_windows(self, make_series):
        detector = BurstDetector(ClusteringConfiguration(min_burst_size=2, max_burst_size=4))
        windows = detector.burst_windows(make_series(list(range(10))))
        assert [(len(m), b) for m, b in windows] == [(4, True), (4, True), (2, True)]

    def test_short_tail_window_not_burst(self, make_series):
        detector = BurstDetector(ClusteringConfiguration(min_burst_size=3, max_burst_size=4))
        windows = detector.burst_windows(make_series(list(range(9))))
        assert [(len(m), b) for m, b in windows] == [(4, True), (4, True), (1, False)]


class TestSplitCluster:
    """Test separation of bursts from ordinary members."""

    def test_small_cluster_returned_whole(self, make_series):
        detector = BurstDetector(ClusteringConfiguration(min_burst_size=3))
        result = detector.split_cluster(make_series([0, 1]))
        assert [(len(m), b) for m, b in result] == [(2, False)]

    def test_empty_cluster(self):
        assert BurstDetector().split_cluster([]) == []

    def test_every_asset_once(self, make_series):
        detector = BurstDetector(ClusteringConfiguration(min_burst_size=3, max_burst_size=3))
        assets = make_series([0, 1, 2, 3, 60, 120, 121, 122, 500])
        result = detector.split_cluster(assets)
        ids = [a.id for members, _ in result for a in members]
        assert sorted(ids) == sorted(a.id for a in assets)
        assert len(ids) == len(set(ids))

    def test_all_bursts_no_remainder(self, make_series):
        detector = BurstDetector(ClusteringConfiguration(min_burst_size=3))
        result = detector.split_cluster(make_series([0, 1, 2, 100, 101, 102]))
        assert [b for _, b in result] == [True, True]
