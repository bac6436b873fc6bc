"""
Main entry point for pcalab.

Runs the worked examples and prints their results as JSON, or serves
the HTTP API.
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from pcalab.components.config import ConfigManager, load_config_file
from pcalab.walkthrough.manager import ExampleManager


def setup_logging(level: str = 'INFO') -> None:
    """
    Set up logging.

    Args:
        level: Logging level
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler()
        ]
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Args:
        argv: Arguments to parse (defaults to sys.argv)

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(description='PCA walkthroughs: twin heights, iris and MNIST')

    parser.add_argument(
        '--config',
        help='Path to a YAML or JSON configuration file'
    )

    parser.add_argument(
        '--log-level',
        default='INFO',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Logging level'
    )

    parser.add_argument(
        '--example',
        action='append',
        choices=ExampleManager.list_examples(),
        help='Example to run (repeatable)'
    )

    parser.add_argument(
        '--mnist-source',
        help="MNIST source: 'digits', 'openml' or a path to an .npz file"
    )

    parser.add_argument(
        '--seed',
        type=int,
        help='Random seed'
    )

    parser.add_argument(
        '--output',
        help='Write results to this JSON file instead of stdout'
    )

    parser.add_argument(
        '--serve',
        action='store_true',
        help='Start the HTTP API'
    )

    parser.add_argument(
        '--port',
        type=int,
        help='Server port'
    )

    parser.add_argument(
        '--host',
        help='Server host'
    )

    return parser.parse_args(argv)


def build_overrides(args: argparse.Namespace) -> dict:
    """
    Merge the configuration file and command line options.

    Args:
        args: Parsed arguments

    Returns:
        Configuration overrides
    """
    overrides = {}

    if args.config:
        overrides.update(load_config_file(args.config))

    if args.seed is not None:
        overrides['seed'] = args.seed

    if args.mnist_source:
        overrides.setdefault('mnist', {})['source'] = args.mnist_source

    if args.port:
        overrides.setdefault('server', {})['port'] = args.port

    if args.host:
        overrides.setdefault('server', {})['host'] = args.host

    return overrides


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.
    """
    args = parse_args(argv)

    setup_logging(args.log_level)

    config = ConfigManager.get_config(build_overrides(args))

    if args.serve:
        from pcalab.components.server import ServerManager
        try:
            ServerManager.get_server(config=config).run()
        except KeyboardInterrupt:
            pass
        finally:
            ServerManager.shutdown()
        return 0

    if not args.example:
        print("Nothing to do: pass --example or --serve", file=sys.stderr)
        return 2

    manager = ExampleManager(config)
    results = {name: manager.run(name) for name in args.example}

    output = json.dumps(results, indent=2, allow_nan=False)
    if args.output:
        with open(args.output, 'w') as f:
            f.write(output)
        logging.getLogger(__name__).info(f"Wrote results to {args.output}")
    else:
        print(output)

    return 0


if __name__ == '__main__':
    sys.exit(main())
