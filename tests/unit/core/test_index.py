"""
Unit tests for the Hierarchical Index Utility.
"""

import pytest

from ensodag.core.exceptions import HierarchyIndexError
from ensodag.core.index import HierarchyIndex


class TestConstruction:

    def test_rejects_empty_table(self):
        with pytest.raises(ValueError):
            HierarchyIndex([])

    @pytest.mark.parametrize("capacities", [[3, 0, 1], [3, -2], [3, 1.5], [True, 2]])
    def test_rejects_non_positive_or_non_integer(self, capacities):
        with pytest.raises(ValueError):
            HierarchyIndex(capacities)

    def test_capacity_table_is_copied(self):
        table = [3, 2, 1]
        index = HierarchyIndex(table)
        table.append(9)
        assert index.capacities == [3, 2, 1]
        assert index.num_levels == 3

    def test_totals(self, index):
        assert index.total_nodes == 6
        assert [level.capacity for level in index.levels] == [3, 2, 1]
        assert repr(index) == "HierarchyIndex(capacities=[3, 2, 1])"


class TestConversion:

    def test_level_ids_ascend_bottom_up(self, index):
        assert index.global_indices_for_level(0) == [1, 2, 3]
        assert index.global_indices_for_level(1) == [4, 5]
        assert index.global_indices_for_level(2) == [6]

    def test_offsets(self, index):
        assert [index.offset(level) for level in range(3)] == [0, 3, 5]

    @pytest.mark.parametrize("global_id,level,local_idx", [
        (1, 0, 1), (3, 0, 3), (4, 1, 1), (5, 1, 2), (6, 2, 1),
    ])
    def test_known_addresses(self, index, global_id, level, local_idx):
        address = index.level_and_local_from_global(global_id)
        assert (address.level, address.local_idx) == (level, local_idx)
        assert index.global_index_from_level(level, local_idx) == global_id
        assert index.level_of(global_id) == level

    def test_round_trip_over_every_id(self):
        index = HierarchyIndex([3, 7, 5, 1, 12])
        for global_id in range(1, index.total_nodes + 1):
            address = index.level_and_local_from_global(global_id)
            assert index.global_index_from_level(address.level, address.local_idx) == global_id

    def test_audit_level_is_clean(self, index):
        assert all(index.audit_level(level) == [] for level in range(index.num_levels))

    @pytest.mark.parametrize("global_id", [0, -1, 7, 100])
    def test_out_of_range_global_id(self, index, global_id):
        assert not index.contains(global_id)
        with pytest.raises(HierarchyIndexError):
            index.level_and_local_from_global(global_id)

    @pytest.mark.parametrize("level,local_idx", [(-1, 1), (3, 1), (0, 0), (0, 4), (1, 3), (2, 2)])
    def test_out_of_range_address(self, index, level, local_idx):
        with pytest.raises(HierarchyIndexError):
            index.global_index_from_level(level, local_idx)

    def test_index_error_is_an_index_error(self, index):
        with pytest.raises(IndexError):
            index.num_nodes_at_level(5)


class TestValidation:

    def test_validate_matches(self, index):
        assert index.validate_global_index(5, 1, 2) is True

    def test_validate_mismatch(self, index):
        assert index.validate_global_index(5, 1, 1) is False
        assert index.validate_global_index(5, 0, 2) is False

    def test_validate_never_raises(self, index):
        assert index.validate_global_index(99, 0, 1) is False


class TestDisplayHelpers:

    def test_level_zero_has_no_video(self, index):
        assert index.video_filename(2) is None
        assert index.media_for(2) == index.placeholder_video()

    def test_cluster_video(self, index):
        assert index.video_filename(5) == "mp4_files/combined-cluster2-1months.mp4"
        assert index.media_for(6) == "mp4_files/combined-cluster1-2months.mp4"

    def test_names(self, index):
        assert index.level_name(0) == "Observed Classes"
        assert index.level_name(1) == "1 Month Lead Time"
        assert index.level_name(12) == "12 Months Lead Time"
        assert index.cluster_name(0, 1) == "La Niña"
        assert index.cluster_name(0, 3) == "El Niño"
        assert index.cluster_name(0, 4) == "Class 4"
        assert index.cluster_name(3, 2) == "Cluster 2"

    def test_summary(self, index):
        summary = index.summary()
        assert summary["total_nodes"] == 6
        assert summary["global_index_range"] == "1-6"
        assert summary["predictive_levels"] == 2
