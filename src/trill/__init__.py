"""
Trill - EVM memory time-travel debugger
"""

__version__ = "0.1.0"

# Core components
from .transaction_tracer import (
    TransactionTracer,
    TransactionTrace,
    TraceStep,
    load_trace_file,
)
from .opcodes import Opcode, DecodedOp, MemoryEffect, classify
from .replay_engine import (
    ReplayEngine,
    SlotStatus,
    ViewState,
    OperationToRender,
)
from .debug_session import DebugSession
from .json_serializer import SnapshotSerializer
from .config import TrillConfig

# Errors
from .exceptions import (
    TrillError,
    RPCConnectionError,
    TraceNotFoundError,
    MalformedTraceError,
    TraceDecodeError,
)

# Main entry point
from .main import main

__all__ = [
    '__version__',
    'main',
    'TransactionTracer',
    'TransactionTrace',
    'TraceStep',
    'load_trace_file',
    'Opcode',
    'DecodedOp',
    'MemoryEffect',
    'classify',
    'ReplayEngine',
    'SlotStatus',
    'ViewState',
    'OperationToRender',
    'DebugSession',
    'SnapshotSerializer',
    'TrillConfig',
    'TrillError',
    'RPCConnectionError',
    'TraceNotFoundError',
    'MalformedTraceError',
    'TraceDecodeError',
]
