#!/usr/bin/env python3
"""
Main entry point for trill
"""

import argparse
import json
import sys

from . import __version__
from .colors import SUPPORTS_COLOR, error, info, set_color_enabled
from .config import DEFAULT_RPC_URL, RPC_ENV_VAR, TrillConfig
from .debug_session import DebugSession
from .evm_repl import MemoryDebugger
from .exceptions import TrillError
from .json_serializer import SnapshotSerializer
from .render import render_frame
from .transaction_tracer import TransactionTracer


def build_session(args, config: TrillConfig) -> DebugSession:
    """Create the session from trace files or from the RPC node."""
    if args.trace_file:
        return DebugSession.from_trace_files(args.trace_file, args.tx_hash or None)

    if not args.tx_hash:
        raise ValueError("A transaction hash is required unless --trace-file is given")
    if not args.json:
        print(f"Connecting to RPC: {info(config.rpc_url)}")
    tracer = TransactionTracer(config.rpc_url, quiet_mode=args.json)
    return DebugSession.from_rpc(args.tx_hash, tracer)


def inspect_command(args):
    """Execute the inspect command."""
    try:
        config = TrillConfig.from_args(args)
    except ValueError as e:
        print(f"{error('Error:')} {e}", file=sys.stderr)
        return 1
    set_color_enabled(config.color and not args.json and SUPPORTS_COLOR)

    try:
        session = build_session(args, config)

        if args.interactive:
            debugger = MemoryDebugger(session, config)
            try:
                debugger.cmdloop()
            except KeyboardInterrupt:
                print("\nInterrupted")
            return 1 if debugger.failed else 0

        views = session.views()
        if args.steps is not None:
            count = args.steps
        else:
            count = max(view.total_instructions - view.next_instruction for view in views)
        if count > 0:
            views = session.advance(count, forward=True)
        for _ in range(args.back):
            views = session.advance(config.iteration, forward=False)
    except (TrillError, ValueError) as e:
        print(f"{error('Error:')} {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(SnapshotSerializer().serialize_session(views), indent=2))
    else:
        print(render_frame(
            views,
            width=config.grid_width,
            history_rows=config.history_rows,
        ))
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(description='Trill - EVM memory time-travel debugger')
    parser.add_argument('--version', '-v', action='version', version=f'%(prog)s {__version__}')

    subparsers = parser.add_subparsers(dest='command', help='Commands')
    subparsers.required = True

    inspect_parser = subparsers.add_parser('inspect', help='Replay the memory activity of one or two transactions')
    inspect_parser.add_argument('tx_hash', nargs='*', help='Transaction hash to replay. Give two to compare them side by side')
    inspect_parser.add_argument('--rpc', '-r', dest='rpc_url', default=None,
                                help=f'RPC URL (default: ${RPC_ENV_VAR} or {DEFAULT_RPC_URL})')
    inspect_parser.add_argument('--trace-file', '-t', action='append',
                                help='Replay a saved debug_traceTransaction result instead of querying the node. Give one per transaction')
    inspect_parser.add_argument('--iteration', type=int, default=None, help='Instructions per step (default: 1)')
    inspect_parser.add_argument('--fps', type=float, default=None, help='Steps per second when playing (default: 4)')
    inspect_parser.add_argument('--grid-width', type=int, default=None, help='Memory slots per grid row (default: 32)')
    inspect_parser.add_argument('--history-rows', type=int, default=None, help='Operation history lines to show (default: 10)')
    inspect_parser.add_argument('--steps', '-s', type=int, default=None,
                                help='Instructions to replay before printing (default: the whole trace)')
    inspect_parser.add_argument('--back', type=int, default=0, help='Backward steps to take after replaying')
    inspect_parser.add_argument('--json', action='store_true', help='Print the final snapshot as JSON')
    inspect_parser.add_argument('--interactive', '-i', action='store_true', help='Start the interactive debugger')
    inspect_parser.add_argument('--no-color', action='store_true', help='Disable colored output')

    args = parser.parse_args(argv)

    if args.command == 'inspect':
        return inspect_command(args)

    return 0


if __name__ == '__main__':
    sys.exit(main())
