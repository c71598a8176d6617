#!/usr/bin/env python3
"""
BOXES Learning - Command Line Interface

Train the bundled clients of the BOXES engine.

Usage:
    python cli.py tictactoe --games 20000 --batch-size 1000
    python cli.py tictactoe --tokens 100 --exponent 1.5 --seed 7
    python cli.py balltrack --steps 5000 --report-every 500
    python cli.py info
"""

import argparse
import logging
import sys
from dataclasses import replace

import boxes
from boxes import BoxesConfig, RecorderKind


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='boxes',
        description="Michie's BOXES reinforcement learning engine"
    )
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Verbose (debug) logging')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Tic-tac-toe self-play
    ttt_parser = subparsers.add_parser('tictactoe', help='Learn tic-tac-toe by self-play')
    ttt_parser.add_argument('--games', '-g', type=int, default=20000,
                            help='Number of double games (default: 20000)')
    ttt_parser.add_argument('--batch-size', '-b', type=int, default=1000,
                            help='Double games per statistics batch (default: 1000)')
    ttt_parser.add_argument('--tokens', '-t', type=float, default=None,
                            help='Initial tokens per action (default: 1000)')
    ttt_parser.add_argument('--exponent', '-e', type=float, default=None,
                            help='Exploration exponent (default: classic proportional)')
    ttt_parser.add_argument('--recorder', '-r', choices=[k.value for k in RecorderKind],
                            default=None, help='Trajectory recorder (default: chain)')
    ttt_parser.add_argument('--seed', '-s', type=int, default=None,
                            help='Random seed')
    ttt_parser.add_argument('--config', '-c', type=str, default=None,
                            help='Load engine settings from a JSON config file; '
                                 'the options above override it')

    # Ball and track
    ball_parser = subparsers.add_parser('balltrack', help='Learn to balance a ball on a track')
    ball_parser.add_argument('--steps', '-n', type=int, default=5000,
                             help='Number of timesteps (default: 5000)')
    ball_parser.add_argument('--report-every', '-k', type=int, default=500,
                             help='Log progress every K steps (default: 500)')
    ball_parser.add_argument('--tokens', '-t', type=float, default=100.0,
                             help='Initial tokens per action (default: 100)')
    ball_parser.add_argument('--exponent', '-e', type=float, default=None,
                             help='Exploration exponent')
    ball_parser.add_argument('--seed', '-s', type=int, default=None,
                             help='Random seed')

    # Version / info
    subparsers.add_parser('info', help='Show engine version and defaults')

    return parser


def cmd_tictactoe(args):
    """Run tic-tac-toe self-play training"""
    from tictactoe import SelfPlayTrainer, default_config

    config = BoxesConfig.load(args.config) if args.config else default_config()
    overrides = {
        'initial_weight': args.tokens,
        'seed': args.seed,
        'exploration_exponent': args.exponent,
        'recorder': RecorderKind(args.recorder) if args.recorder else None,
    }
    config = replace(config, **{k: v for k, v in overrides.items() if v is not None})
    config.validate()

    print("=" * 60)
    print("BOXES - Tic-tac-toe self-play")
    print("=" * 60)
    for outcome, profile in config.outcomes.items():
        print(f"  {outcome.value:5s}: add {profile.add:+.2f}  multiply {profile.multiply:.2f}")
    print(f"  Tokens per action: {config.initial_weight}")
    print(f"  Double games: {args.games}")
    print()

    trainer = SelfPlayTrainer(config)
    try:
        report = trainer.train(args.games, batch_size=args.batch_size)
    finally:
        trainer.close()

    print(f"{'Game':>10} {'First':>9} {'Second':>9} {'Draw':>9} {'Underflow':>10}")
    for batch in report.batches:
        print(f"{batch.start_game:>10} {batch.first_wins:>9} {batch.second_wins:>9} "
              f"{batch.draws:>9} {batch.underflows:>10}")

    print()
    print(f"  P50 at: {report.p50 if report.p50 is not None else 'not reached'}")
    print(f"  P90 at: {report.p90 if report.p90 is not None else 'not reached'}")
    print(f"  Final underflow at: {report.last_underflow if report.last_underflow is not None else 'none'}")
    print(f"  Elapsed time: {report.elapsed:.1f}s")
    return 0


def cmd_balltrack(args):
    """Run online ball-balancing training"""
    from balltrack import BalanceTrainer

    trainer = BalanceTrainer(tokens=args.tokens, seed=args.seed,
                             exploration_exponent=args.exponent)
    quant = trainer.sim.quant

    print("=" * 60)
    print("BOXES - Ball and track balancing")
    print("=" * 60)
    print(f"  Timestep: {trainer.sim.params.timestep}s, history visible: {quant.history} steps")
    print(f"  Quantization: ball {quant.ball_levels} levels, track {quant.track_levels} levels")
    print(f"  States: {quant.state_count}, actions: {quant.actions}")
    print()

    try:
        report = trainer.run(args.steps, report_every=args.report_every)
    finally:
        trainer.close()

    print(f"  Steps:        {report.steps}")
    print(f"  Mean reward:  {report.mean_reward():.3f}")
    if args.report_every:
        print(f"  Last window:  {report.mean_reward(args.report_every):.3f}")
    print(f"  Underflows:   {report.underflows}")
    print(f"  Elapsed time: {report.elapsed:.1f}s")
    return 0


def cmd_info(args):
    """Show engine version and defaults"""
    print(f"boxes {boxes.__version__}")
    print(f"  TOKEN_MIN:           {boxes.TOKEN_MIN}")
    print(f"  UNDERFLOW_THRESHOLD: {boxes.UNDERFLOW_THRESHOLD}")
    for outcome, profile in boxes.DEFAULT_OUTCOMES.items():
        print(f"  {outcome.value:5s} profile:       add {profile.add:+.2f}  multiply {profile.multiply:.2f}")
    return 0


def main(argv=None):
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    # Map commands to functions
    commands = {
        'tictactoe': cmd_tictactoe,
        'balltrack': cmd_balltrack,
        'info': cmd_info,
    }

    if args.command in commands:
        return commands[args.command](args)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main() or 0)
