"""
Error types for trill.

Acquisition and decode errors are fatal to a debugging session; navigation
past either end of a trace is never an error.
"""


class TrillError(Exception):
    """Base class for all trill errors."""


class RPCConnectionError(TrillError, ConnectionError):
    """The RPC node could not be reached."""

    def __init__(self, rpc_url: str, reason: str = ""):
        self.rpc_url = rpc_url
        message = f"Failed to connect to {rpc_url}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class TraceNotFoundError(TrillError):
    """The transaction, or its execution trace, does not exist on the node."""

    def __init__(self, tx_hash: str, reason: str = ""):
        self.tx_hash = tx_hash
        message = f"Transaction {tx_hash} not found"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class MalformedTraceError(TrillError):
    """A trace payload does not have the shape of a debug_traceTransaction result."""


class TraceDecodeError(TrillError):
    """An instruction carries fewer stack operands than its opcode consumes.

    This means the trace is corrupt or was produced by an incompatible
    tracer, so replay cannot continue.
    """

    def __init__(self, op: str, index: int, required: int, available: int):
        self.op = op
        self.index = index
        self.required = required
        self.available = available
        super().__init__(
            f"{op} at step {index} needs {required} stack operands, "
            f"trace has {available}"
        )
