#!/usr/bin/env python3
"""
Word Count CLI
Runs one participant of a distributed word count over gRPC, or a whole run
inside a single process.
"""

import sys
import logging
import argparse

from wordcount.common.config import MERGE_STRATEGY_NAMES, Settings, parse_peers
from wordcount.common.errors import WordCountError
from wordcount.common.transport import GrpcTransport
from wordcount.coordinator.server import Coordinator, run_job
from wordcount.local import run_local_job
from wordcount.worker.server import Worker

DEFAULT_INPUT = 'speech_tokenized.txt'
DEFAULT_OUTPUT = 'reduced.txt'

logger = logging.getLogger('wordcount')


def configure_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def run_participant(args, settings: Settings):
    """Run as the rank given in settings, coordinator for rank 0"""
    topology = settings.topology()
    transport = GrpcTransport(
        topology.self_id,
        settings.peers,
        bind_host=settings.bind_host,
        send_timeout=settings.send_timeout,
        receive_timeout=settings.receive_timeout,
    )
    with transport:
        if topology.is_coordinator:
            coordinator = Coordinator(transport, settings.merge_strategy)
            table = run_job(coordinator, args.input, args.output, settings.metrics_path)
            print(f"✓ Counted {coordinator.metrics.token_count} words, "
                  f"{len(table)} unique, written to {args.output}")
        else:
            Worker(transport).run()
    return 0


def run_in_process(args, settings: Settings):
    """Run the coordinator and args.workers workers as threads"""
    table = run_local_job(
        args.input,
        args.output,
        args.workers,
        merge_strategy=settings.merge_strategy,
        metrics_path=settings.metrics_path,
        receive_timeout=settings.receive_timeout,
    )
    print(f"✓ {len(table)} unique words written to {args.output}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Distributed word count',
        epilog='Example: %(prog)s run words.txt counts.txt --rank 0 --peers host0:50051,host1:50051'
    )
    parser.add_argument('--merge-strategy', choices=MERGE_STRATEGY_NAMES,
                        help='Final merge algorithm (default: heap)')
    parser.add_argument('--metrics', dest='metrics_path', help='Write run metrics as JSON to this path')
    parser.add_argument('--receive-timeout', type=float,
                        help='Seconds to wait for a peer message (default: wait forever)')
    parser.add_argument('--log-level', help='Logging level (default: INFO)')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    run_parser = subparsers.add_parser(
        'run',
        help='Run one participant over gRPC',
        description='Run as coordinator (rank 0) or worker (any other rank)'
    )
    run_parser.add_argument('input', nargs='?', default=DEFAULT_INPUT,
                            help=f'Input text file, read by the coordinator (default: {DEFAULT_INPUT})')
    run_parser.add_argument('output', nargs='?', default=DEFAULT_OUTPUT,
                            help=f'Output file, written by the coordinator (default: {DEFAULT_OUTPUT})')
    run_parser.add_argument('--rank', type=int, help='Rank of this participant (env: WORDCOUNT_RANK)')
    run_parser.add_argument('--peers', type=parse_peers,
                            help='Comma-separated host:port list ordered by rank (env: WORDCOUNT_PEERS)')
    run_parser.add_argument('--bind-host', help='Host to listen on (default: [::])')
    run_parser.add_argument('--send-timeout', type=float, help='Seconds allowed for a single send')
    run_parser.set_defaults(func=run_participant)

    local_parser = subparsers.add_parser(
        'local',
        help='Run every participant in this process',
        description='Run the coordinator and workers as threads over an in-process transport'
    )
    local_parser.add_argument('input', nargs='?', default=DEFAULT_INPUT,
                              help=f'Input text file (default: {DEFAULT_INPUT})')
    local_parser.add_argument('output', nargs='?', default=DEFAULT_OUTPUT,
                              help=f'Output file (default: {DEFAULT_OUTPUT})')
    local_parser.add_argument('--workers', type=int, default=4, help='Number of workers (default: 4)')
    local_parser.set_defaults(func=run_in_process)

    return parser


def load_settings(args) -> Settings:
    """Environment settings with command-line flags layered on top"""
    settings = Settings.from_env()
    overrides = {
        'rank': getattr(args, 'rank', None),
        'peers': getattr(args, 'peers', None),
        'bind_host': getattr(args, 'bind_host', None),
        'send_timeout': getattr(args, 'send_timeout', None),
        'receive_timeout': args.receive_timeout,
        'merge_strategy': args.merge_strategy,
        'metrics_path': args.metrics_path,
        'log_level': args.log_level,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(settings, name, value)
    return settings


def main(argv=None):
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    # If no command specified, print help
    if not hasattr(args, 'func'):
        parser.print_help()
        return 1

    try:
        settings = load_settings(args)
        configure_logging(settings.log_level)
        if getattr(args, 'workers', 1) < 1:
            raise WordCountError(f"--workers must be at least 1, got {args.workers}")
        return args.func(args, settings)
    except (WordCountError, FileNotFoundError) as e:
        logger.error(f"Word count failed: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
