"""
Command-line entry point.

    cytoscreen configs/breast_cancer.yaml --n-jobs 4

"""

import argparse
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional
from loguru import logger

from .exceptions import ConfigurationError, CytoscreenError
from .pipeline import run_benchmark
from .utils.config import Config

CONSOLE_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logging(log_dir: Path, config_stem: str, debug: bool = False) -> Path:
    """Log to stderr and to a timestamped file below log_dir."""
    level = "DEBUG" if debug else "INFO"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"{config_stem}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    logger.remove()
    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT)
    logger.add(log_file, level="DEBUG", format=FILE_FORMAT)
    return log_file


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Benchmark classifiers on the Wisconsin breast cancer cytology data"
    )
    parser.add_argument('config', type=str, help='Path to configuration file (YAML)')
    parser.add_argument('--output-dir', type=str, default=None,
                        help='Overrides output.output_dir from the configuration')
    parser.add_argument('--n-jobs', type=int, default=None,
                        help='Parallel workers for the fold x grid evaluations')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = Config(args.config)
    except ConfigurationError as e:
        logger.error(str(e))
        return e.exit_code

    if args.n_jobs is not None:
        config.config['training'] = dict(config.get_training_config(), n_jobs=args.n_jobs)

    output_dir = Path(args.output_dir or config.get_output_config().get('output_dir', 'results'))
    log_file = setup_logging(output_dir / 'logs', config.name, args.debug)
    logger.info(f"Log file: {log_file}")

    try:
        run_benchmark(config, output_dir=output_dir)
        return 0
    except CytoscreenError as e:
        e.log()
        return e.exit_code
    except Exception as e:
        logger.exception(f"Benchmark failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
