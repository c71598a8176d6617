"""
Tests for the command line entry point.
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
import boxes
from boxes import BoxesConfig, InvalidConfiguration
from cli import create_parser, main


class TestParser:
    def test_tictactoe_defaults(self):
        args = create_parser().parse_args(['tictactoe'])
        assert args.games == 20000
        assert args.batch_size == 1000
        assert args.recorder is None
        assert args.tokens is None
        assert args.exponent is None

    def test_bad_recorder_rejected(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(['tictactoe', '--recorder', 'heap'])


class TestCommands:
    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert 'usage' in capsys.readouterr().out.lower()

    def test_info(self, capsys):
        assert main(['info']) == 0
        out = capsys.readouterr().out
        assert boxes.__version__ in out
        assert 'TOKEN_MIN' in out

    def test_tictactoe_run(self, capsys):
        code = main(['tictactoe', '--games', '6', '--batch-size', '3',
                     '--tokens', '100', '--seed', '1', '--recorder', 'block'])
        assert code == 0
        out = capsys.readouterr().out
        assert 'P50 at' in out
        assert 'Final underflow at' in out

    def test_tictactoe_from_config_file(self, tmp_path, capsys):
        path = tmp_path / 'ttt.json'
        BoxesConfig(state_count=19683, action_count=9, initial_weight=50.0, seed=2).save(str(path))
        assert main(['tictactoe', '--games', '2', '--batch-size', '2',
                     '--config', str(path)]) == 0
        assert 'Tokens per action: 50.0' in capsys.readouterr().out

    def test_options_override_config_file(self, tmp_path, capsys):
        path = tmp_path / 'ttt.json'
        BoxesConfig(state_count=19683, action_count=9, initial_weight=50.0, seed=2).save(str(path))
        assert main(['tictactoe', '--games', '2', '--batch-size', '2',
                     '--config', str(path), '--tokens', '75', '--recorder', 'block']) == 0
        assert 'Tokens per action: 75.0' in capsys.readouterr().out

    def test_config_file_with_wrong_board_size(self, tmp_path):
        path = tmp_path / 'small.json'
        BoxesConfig(state_count=10, action_count=9).save(str(path))
        with pytest.raises(InvalidConfiguration):
            main(['tictactoe', '--games', '1', '--config', str(path)])

    def test_balltrack_run(self, capsys):
        code = main(['balltrack', '--steps', '100', '--report-every', '50', '--seed', '3'])
        assert code == 0
        out = capsys.readouterr().out
        assert 'Mean reward' in out
        assert 'Last window' in out
