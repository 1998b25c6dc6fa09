#!/usr/bin/env python3
"""
Replay the memory activity of an Ethereum transaction from a source checkout

Usage: trill-cli.py inspect <tx_hash> [<tx_hash>] [options]

Options:
  --rpc <url>                         RPC endpoint (default: $RPC_HTTP or http://localhost:8545)
  --trace-file <file>                 Replay a saved debug_traceTransaction result
  --interactive                       Start the interactive debugger
"""

import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from trill.main import main


if __name__ == '__main__':
    sys.exit(main())
