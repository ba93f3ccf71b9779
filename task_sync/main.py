#!/usr/bin/env python3
"""
task-sync - title-matched task reconciliation between two stores.
"""

import argparse
import logging
import sys

from task_sync.core.config import load_config, get_default_config_path
from task_sync.core.exceptions import ConfigurationError
from task_sync.utils.logging_setup import setup_logging
from task_sync.commands import SyncCommand, ServeCommand, ConfigCommand


def main(argv=None):
    """Main entry point for task-sync."""
    parser = argparse.ArgumentParser(
        description="Reconcile tasks between two stores by title",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  task-sync sync                               # Run one pass with configured stores
  task-sync sync --side-a a.json --side-b b.json
  task-sync serve --port 3000                  # HTTP trigger + scheduler
  task-sync config --write                     # Persist effective config
        """
    )

    default_config = get_default_config_path()

    parser.add_argument(
        '--config',
        help=f'Path to configuration file (default: {default_config})',
        default=None
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Verbose output'
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Sync command
    sync_parser = subparsers.add_parser('sync', help='Run a single sync pass')
    sync_parser.add_argument(
        '--side-a',
        metavar='FILE',
        help='Use a JSON task file for Side A'
    )
    sync_parser.add_argument(
        '--side-b',
        metavar='FILE',
        help='Use a JSON task file for Side B'
    )

    # Serve command
    serve_parser = subparsers.add_parser('serve', help='Serve the sync API and run the scheduler')
    serve_parser.add_argument('--host', help='Bind address (default from config)')
    serve_parser.add_argument('--port', type=int, help='Port (default from config or $PORT)')
    serve_parser.add_argument(
        '--no-scheduler',
        action='store_true',
        help='Only serve the manual trigger, no periodic passes'
    )

    # Config command
    config_parser = subparsers.add_parser('config', help='Show the effective configuration')
    config_parser.add_argument(
        '--write',
        action='store_true',
        help='Write the effective configuration to the config file'
    )

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        print(f"Configuration error: {e}")
        return 1

    level = "DEBUG" if args.verbose else config.log_level
    log_file = setup_logging(level, config.log_dir)

    if args.verbose:
        actual_config_path = args.config if args.config else get_default_config_path()
        print(f"Using config: {actual_config_path}")
        if log_file:
            print(f"Logging to: {log_file}")

    try:
        if args.command == 'sync':
            cmd = SyncCommand(config, verbose=args.verbose)
            success = cmd.run(side_a_path=args.side_a, side_b_path=args.side_b)

        elif args.command == 'serve':
            cmd = ServeCommand(config, verbose=args.verbose)
            success = cmd.run(host=args.host, port=args.port, scheduler=not args.no_scheduler)

        elif args.command == 'config':
            cmd = ConfigCommand(config, verbose=args.verbose)
            success = cmd.run(write=args.write, config_path=args.config)

        else:
            print(f"Unknown command '{args.command}'.")
            return 1

        return 0 if success else 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")
        return 130
    except Exception as e:
        logging.getLogger(__name__).debug("Command failed", exc_info=True)
        print(f"Error: {e}")
        if not args.verbose:
            print("Re-run with --verbose for more detail.")
        return 1


if __name__ == '__main__':
    sys.exit(main())
