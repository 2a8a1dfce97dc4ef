"""Main entry point for the pendector CLI."""

from dotenv import load_dotenv
load_dotenv()

import sys
import logging
import argparse
from typing import List, Optional

from . import __version__
from .config import Config, ScanOverrides, expand_path
from .core.errors import PendectorError, InvalidPathError
from .core.logger import setup_logging
from .core.repo_manager import RepoManager, validate_base_path
from .output.formatter import OutputFormatter
from .utils.filters import filter_changes_only, unique_by_path

LOG_LEVELS = ['debug', 'info', 'warning', 'error']


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog='pendector',
        description='Find git repositories and report pending changes and remote sync state',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Scan the current directory (or the paths from the config file)
  pendector

  # Scan two trees, fetching first, and list changed files
  pendector ~/src ~/work --fetch --verbose

  # Only repositories with uncommitted changes, as JSON
  pendector -c -f json

  # Skip dependency folders
  pendector --exclude node_modules --exclude "**/target/**"
        """
    )

    # Setting options default to None so the config layers can fill them in
    parser.add_argument(
        'paths',
        nargs='*',
        help='Base directories to scan (default: paths from config, or ".")'
    )

    scan_group = parser.add_argument_group('scanning')
    scan_group.add_argument(
        '-d', '--max-depth',
        type=int,
        metavar='N',
        help='Maximum directory depth to search (default: 3)'
    )
    scan_group.add_argument(
        '--exclude',
        action='append',
        metavar='GLOB',
        help='Skip directories matching this pattern (can be repeated)'
    )
    scan_group.add_argument(
        '--fetch',
        action='store_const',
        const=True,
        help='Fetch from remotes before checking sync status'
    )
    scan_group.add_argument(
        '--fetch-timeout',
        type=float,
        metavar='SECONDS',
        help='Per-repository fetch timeout (default: 5)'
    )
    scan_group.add_argument(
        '--workers',
        type=int,
        metavar='N',
        help='Number of parallel workers (default: CPU count)'
    )

    output_group = parser.add_argument_group('output')
    output_group.add_argument(
        '-c', '--changes-only',
        action='store_const',
        const=True,
        help='Show only repositories with changes'
    )
    output_group.add_argument(
        '-v', '--verbose',
        action='store_const',
        const=True,
        help='Show changed files and full paths'
    )
    output_group.add_argument(
        '-f', '--format',
        choices=['text', 'json'],
        help='Output format (default: text)'
    )

    config_group = parser.add_argument_group('configuration')
    config_group.add_argument(
        '--config',
        metavar='PATH',
        help='Config file (default: $PENDECTOR_CONFIG or ~/.config/pendector/config.toml)'
    )
    config_group.add_argument(
        '--no-config',
        action='store_true',
        help='Ignore the config file'
    )
    config_group.add_argument(
        '--add-path',
        action='store_true',
        help='Scan the given paths in addition to the configured ones'
    )

    log_group = parser.add_argument_group('logging')
    log_group.add_argument(
        '--log-level',
        choices=LOG_LEVELS,
        default='warning',
        help='Console log level (default: warning)'
    )
    log_group.add_argument(
        '--log-file',
        metavar='PATH',
        help='Also write a debug log to this file'
    )

    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    return parser


def overrides_from_args(args: argparse.Namespace) -> ScanOverrides:
    """Build the command-line settings layer.

    Args:
        args: Parsed command line arguments

    Returns:
        ScanOverrides with only the options the user gave
    """
    return ScanOverrides(
        max_depth=args.max_depth,
        fetch=args.fetch,
        fetch_timeout=args.fetch_timeout,
        format=args.format,
        verbose=args.verbose,
        changes_only=args.changes_only,
        exclude=args.exclude
    )


def select_paths(cli_paths: List[str], config: Config, add_path: bool) -> List[str]:
    """Decide which base directories to scan.

    Args:
        cli_paths: Paths given on the command line
        config: Loaded configuration
        add_path: Append cli_paths to the configured paths instead of replacing them

    Returns:
        Paths to scan
    """
    if not cli_paths:
        return list(config.paths)
    if add_path:
        return list(config.paths) + list(cli_paths)
    return list(cli_paths)


def load_config(args: argparse.Namespace, logger: logging.Logger) -> Config:
    """Load the config file, falling back to defaults on error.

    Args:
        args: Parsed command line arguments
        logger: Logger instance

    Returns:
        Config instance
    """
    if args.no_config:
        return Config()
    try:
        config = Config.load(args.config)
    except PendectorError as e:
        logger.warning(f"{e}")
        logger.warning("Using default configuration")
        return Config()
    if config.source:
        logger.info(f"Configuration loaded from {config.source}")
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logger = setup_logging(
        level=getattr(logging, args.log_level.upper()),
        log_file=args.log_file
    )

    try:
        config = load_config(args, logger)
        cli = overrides_from_args(args)
        paths = select_paths(args.paths, config, args.add_path)

        # Resolve everything up front so a bad path or option stops the run before any work
        plans = []
        for path in paths:
            base_path = expand_path(path)
            validate_base_path(base_path)
            if any(base_path == planned for planned, _ in plans):
                continue
            plans.append((base_path, config.resolve(path, cli)))

        # Output settings follow the first base path
        output_options = plans[0][1] if plans else config.resolve('.', cli)

        manager = RepoManager(max_workers=args.workers)
        reports = []
        for base_path, options in plans:
            logger.info(f"Scanning {base_path} (max depth {options.max_depth}, fetch {options.fetch})")
            reports.extend(manager.scan(base_path, options, show_progress=sys.stderr.isatty()))
        reports = unique_by_path(reports)

        if output_options.changes_only:
            reports = filter_changes_only(reports)

        formatter = OutputFormatter(verbose=output_options.verbose, format=output_options.format)
        output = formatter.format_repositories(reports)
        if output_options.format == 'json':
            sys.stdout.write(output)
        else:
            print(output.rstrip('\n'))
        return 0

    except InvalidPathError as e:
        logger.error(f"{e}")
        return 1
    except PendectorError as e:
        logger.error(f"{e}")
        return 2
    except KeyboardInterrupt:
        logger.info("Operation cancelled by user")
        return 130
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
