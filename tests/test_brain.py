"""
Tests for the weight table: construction, validation, read access and the
destruction rules.
"""

import sys
import os
import numpy as np

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from boxes import (
    WeightTable, create_table, destroy_table, create_trajectory,
    InvalidConfiguration, OwnershipError, TOKEN_MIN, UNDERFLOW_THRESHOLD,
)


class TestCreation:
    def test_all_weights_start_at_initial(self):
        table = create_table(4, 3, 10.0)
        assert table.shape == (4, 3)
        assert np.all(table.weights == 10.0)

    def test_defaults(self):
        table = WeightTable(2, 2, 5)
        assert table.token_min == TOKEN_MIN
        assert table.underflow_threshold == UNDERFLOW_THRESHOLD
        assert table.initial_weight == 5.0

    def test_tictactoe_dimensions(self):
        table = create_table(19683, 9, 100)
        assert table.weights.shape == (19683, 9)
        assert table.weight(19682, 8) == 100.0

    @pytest.mark.parametrize('states,actions', [(0, 3), (3, 0), (-1, 3), (3, -5)])
    def test_non_positive_dimensions_rejected(self, states, actions):
        with pytest.raises(InvalidConfiguration):
            create_table(states, actions, 10.0)

    def test_non_integer_dimensions_rejected(self):
        with pytest.raises(InvalidConfiguration):
            create_table(2.5, 3, 10.0)

    def test_non_positive_initial_weight_rejected(self):
        with pytest.raises(InvalidConfiguration):
            create_table(2, 2, 0.0)
        with pytest.raises(InvalidConfiguration):
            create_table(2, 2, -1.0)

    def test_bad_tuning_rejected(self):
        with pytest.raises(InvalidConfiguration):
            WeightTable(2, 2, 10.0, token_min=0.0)
        with pytest.raises(InvalidConfiguration):
            WeightTable(2, 2, 10.0, underflow_threshold=-0.5)

    def test_invalid_configuration_is_value_error(self):
        with pytest.raises(ValueError):
            create_table(0, 1, 1.0)


class TestReadAccess:
    def test_weights_view_is_read_only(self):
        table = create_table(2, 2, 10.0)
        with pytest.raises(ValueError):
            table.weights[0, 0] = 99.0
        assert table.weight(0, 0) == 10.0

    def test_row_and_snapshot_are_copies(self):
        table = create_table(2, 3, 10.0)
        row = table.row(1)
        row[:] = 0.0
        snap = table.snapshot()
        snap[:] = 0.0
        assert np.all(table.weights == 10.0)

    def test_out_of_range_indices(self):
        table = create_table(2, 3, 10.0)
        with pytest.raises(IndexError):
            table.weight(2, 0)
        with pytest.raises(IndexError):
            table.weight(0, 3)
        with pytest.raises(IndexError):
            table.row(-1)

    def test_check_mask(self):
        table = create_table(1, 3, 1.0)
        assert table.check_mask(None) is None
        mask = table.check_mask([1, 0, 1])
        assert mask.dtype == bool
        assert list(mask) == [True, False, True]
        with pytest.raises(IndexError):
            table.check_mask([True, False])

    def test_stats(self):
        table = create_table(3, 3, 4.0)
        stats = table.stats()
        assert stats['total_tokens'] == 36.0
        assert stats['touched_cells'] == 0
        assert stats['live_trajectories'] == 0


class TestDestruction:
    def test_destroy_releases_storage(self):
        table = create_table(2, 2, 1.0)
        destroy_table(table)
        assert table.destroyed
        with pytest.raises(OwnershipError):
            table.weights
        with pytest.raises(OwnershipError):
            table.weight(0, 0)

    def test_double_destroy_rejected(self):
        table = create_table(2, 2, 1.0)
        table.destroy()
        with pytest.raises(OwnershipError):
            table.destroy()

    def test_destroy_with_live_trajectory_rejected(self):
        table = create_table(2, 2, 1.0)
        chain = create_trajectory(table, 'chain')
        block = create_trajectory(table, 'block')
        assert table.live_trajectories == 2

        with pytest.raises(OwnershipError):
            table.destroy()
        assert not table.destroyed

        chain.destroy()
        with pytest.raises(OwnershipError):
            table.destroy()
        block.destroy()
        table.destroy()
        assert table.destroyed

    def test_no_trajectory_on_destroyed_table(self):
        table = create_table(2, 2, 1.0)
        table.destroy()
        with pytest.raises(OwnershipError):
            create_trajectory(table)

    def test_independent_tables(self):
        a = create_table(2, 2, 1.0)
        b = create_table(2, 2, 1.0)
        create_trajectory(a)
        b.destroy()
        assert not a.destroyed
