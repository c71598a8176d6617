"""
Tests for the tic-tac-toe client: board rules, state encoding and self-play.
"""

import sys
import os
import numpy as np

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from boxes import BoxesConfig, InvalidConfiguration, RecorderKind
from tictactoe import (
    Board, NUM_STATES, NUM_CELLS, DRAW, IN_PROGRESS,
    SelfPlayTrainer, TrainingReport, BatchStats, default_config,
)


class TestBoard:
    def test_empty_board(self):
        board = Board()
        assert board.encode() == 0
        assert board.legal_mask().all()
        assert board.victor() == IN_PROGRESS

    def test_encoding_place_values(self):
        board = Board()
        board.play(0, 1)
        assert board.encode() == 1
        board.play(8, 2)
        assert board.encode() == 1 + 2 * 3 ** 8

    def test_full_board_of_twos_is_last_state(self):
        assert Board([2] * NUM_CELLS).encode() == NUM_STATES - 1

    def test_decode_inverts_encode(self):
        board = Board([1, 0, 2, 0, 1, 0, 2, 0, 0])
        assert Board.decode(board.encode()).cells == board.cells

    def test_decode_out_of_range(self):
        with pytest.raises(IndexError):
            Board.decode(NUM_STATES)
        with pytest.raises(IndexError):
            Board.decode(-1)

    def test_legal_mask_tracks_empty_cells(self):
        board = Board()
        board.play(4, 1)
        board.play(0, 2)
        mask = board.legal_mask()
        assert not mask[4] and not mask[0]
        assert mask.sum() == 7

    def test_occupied_cell_rejected(self):
        board = Board()
        board.play(3, 1)
        with pytest.raises(ValueError):
            board.play(3, 2)

    def test_bad_moves(self):
        board = Board()
        with pytest.raises(IndexError):
            board.play(9, 1)
        with pytest.raises(ValueError):
            board.play(0, 3)
        with pytest.raises(ValueError):
            Board([0] * 8)
        with pytest.raises(ValueError):
            Board([5] + [0] * 8)

    @pytest.mark.parametrize('line', [(0, 1, 2), (2, 5, 8), (0, 4, 8), (6, 4, 2)])
    def test_lines_win(self, line):
        board = Board()
        for cell in line:
            board.play(cell, 2)
        assert board.winner() == 2
        assert board.victor() == 2

    def test_draw(self):
        board = Board([1, 2, 1,
                       1, 2, 2,
                       2, 1, 1])
        assert board.winner() == 0
        assert board.victor() == DRAW

    def test_render(self):
        board = Board([1, 0, 0, 0, 2, 0, 0, 0, 0])
        assert board.render() == 'X..\n.O.\n...'


class TestTrainingReport:
    def test_markers(self):
        report = TrainingReport(batches=[
            BatchStats(0, first_wins=50, second_wins=30, draws=20),
            BatchStats(100, first_wins=20, second_wins=10, draws=70),
            BatchStats(200, first_wins=5, second_wins=5, draws=90, underflows=2),
            BatchStats(300, first_wins=1, second_wins=0, draws=99),
        ])
        assert report.p50 == 100
        assert report.p90 == 300
        assert report.last_underflow == 200

    def test_markers_unreached(self):
        report = TrainingReport(batches=[BatchStats(0, first_wins=5, draws=1)])
        assert report.p50 is None
        assert report.p90 is None
        assert report.last_underflow is None


class TestSelfPlay:
    def test_default_config(self):
        config = default_config(tokens=100, seed=3)
        assert config.state_count == NUM_STATES
        assert config.action_count == NUM_CELLS
        assert config.initial_weight == 100

    def test_single_game_is_legal(self):
        trainer = SelfPlayTrainer(default_config(tokens=100, seed=1))
        try:
            a, b = trainer.tables
            result = trainer.play_game(a, b)
            board = result['board']
            assert 5 <= result['moves'] <= 9
            assert result['victor'] in (0, 1, 2)
            assert sum(c != 0 for c in board.cells) == result['moves']
            if result['victor']:
                assert board.winner() == result['victor']
            assert a.live_trajectories == 0
            assert b.live_trajectories == 0
        finally:
            trainer.close()

    def test_game_changes_weights(self):
        trainer = SelfPlayTrainer(default_config(tokens=100, seed=2))
        try:
            a, b = trainer.tables
            trainer.play_game(a, b)
            # The opening move from the empty board is always credited
            assert not np.all(a.row(0) == 100.0)
        finally:
            trainer.close()

    @pytest.mark.parametrize('recorder', [RecorderKind.BLOCK, RecorderKind.CHAIN])
    def test_train_counts_games(self, recorder):
        trainer = SelfPlayTrainer(default_config(tokens=100, seed=5, recorder=recorder))
        try:
            report = trainer.train(25, batch_size=10)
        finally:
            trainer.close()
        assert report.games == 50
        assert [b.start_game for b in report.batches] == [0, 10, 20]
        assert sum(b.games for b in report.batches) == 50

    def test_recorders_train_identically(self):
        snapshots = []
        for recorder in (RecorderKind.BLOCK, RecorderKind.CHAIN):
            trainer = SelfPlayTrainer(default_config(tokens=50, seed=8, recorder=recorder))
            trainer.train(30, batch_size=30)
            snapshots.append([t.snapshot() for t in trainer.tables])
            trainer.close()
        for block_table, chain_table in zip(*snapshots):
            assert np.array_equal(block_table, chain_table)

    def test_same_seed_same_report(self):
        reports = []
        for _ in range(2):
            trainer = SelfPlayTrainer(default_config(tokens=100, seed=12))
            reports.append(trainer.train(20, batch_size=20).batches[0])
            trainer.close()
        assert reports[0] == reports[1]

    def test_bad_batch_size(self):
        trainer = SelfPlayTrainer(default_config(tokens=100, seed=0))
        try:
            with pytest.raises(ValueError):
                trainer.train(1, batch_size=0)
        finally:
            trainer.close()

    def test_close_releases_tables(self):
        trainer = SelfPlayTrainer(default_config(tokens=100, seed=0))
        trainer.close()
        assert all(t.destroyed for t in trainer.tables)
        trainer.close()

    @pytest.mark.parametrize('states,actions', [(10, 9), (NUM_STATES, 4), (NUM_STATES + 1, 9)])
    def test_wrong_table_size_rejected(self, states, actions):
        with pytest.raises(InvalidConfiguration):
            SelfPlayTrainer(BoxesConfig(state_count=states, action_count=actions, seed=1))
