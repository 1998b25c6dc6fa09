"""
Transaction Tracer for EVM memory replay

Fetches a transaction and its instruction-level execution trace from an RPC
node (or from a saved trace file) and turns it into the immutable records the
replay engine consumes.
"""

import json
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import requests
from eth_utils import is_hex, to_checksum_address
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import TransactionNotFound, Web3Exception

from .colors import info, success
from .exceptions import (
    MalformedTraceError,
    RPCConnectionError,
    TraceNotFoundError,
)

WORD_HEX_CHARS = 64

# Memory and stack are required to replay memory activity; storage is not.
TRACE_OPTIONS = {
    "enableMemory": True,
    "disableStack": False,
    "disableStorage": True,
    "enableReturnData": True,
}


@dataclass(frozen=True)
class TraceStep:
    """Represents a single step in EVM execution trace.

    ``memory`` holds the memory words observed *before* this instruction
    executes; ``stack`` has the top of stack as its last element.
    """
    index: int
    pc: int
    op: str
    gas: int
    gas_cost: int
    depth: int = 1
    stack: Optional[Tuple[str, ...]] = None
    memory: Optional[Tuple[str, ...]] = None
    error: Optional[str] = None

    @property
    def memory_words(self) -> int:
        """Number of 32-byte words in memory.

        Geth leaves ``memory`` out of a struct log when memory is empty, so a
        step without an image counts as zero words.
        """
        if self.memory is None:
            return 0
        return len(self.memory)


@dataclass
class TransactionTrace:
    """Complete trace of a transaction execution."""
    tx_hash: str
    from_addr: Optional[str]
    to_addr: Optional[str]
    block_hash: Optional[str]
    block_number: Optional[int]
    gas: int
    gas_used: int
    value: int
    success: bool
    output: str = "0x"
    error: Optional[str] = None
    steps: List[TraceStep] = field(default_factory=list)

    @property
    def max_memory_words(self) -> int:
        """Largest memory size, in words, reported anywhere in the trace."""
        return max((step.memory_words for step in self.steps), default=0)


def normalize_tx_hash(tx_hash: str) -> str:
    """Return the hash with a 0x prefix, rejecting anything that is not hex."""
    if isinstance(tx_hash, (bytes, HexBytes)):
        tx_hash = HexBytes(tx_hash).hex()
    if not tx_hash.startswith('0x'):
        tx_hash = '0x' + tx_hash
    if not is_hex(tx_hash) or len(tx_hash) != 66:
        raise ValueError(f"Invalid transaction hash: {tx_hash}")
    return tx_hash.lower()


def _split_memory(memory: Any) -> Optional[Tuple[str, ...]]:
    """Normalize a trace memory image into a tuple of 64-char hex words.

    Geth and anvil report a list of words; some clients send one hex string.
    """
    if memory is None:
        return None
    if isinstance(memory, str):
        hex_data = memory[2:] if memory.startswith('0x') else memory
        if len(hex_data) % WORD_HEX_CHARS:
            raise MalformedTraceError(
                f"Memory image of {len(hex_data) // 2} bytes is not word aligned"
            )
        return tuple(hex_data[i:i + WORD_HEX_CHARS]
                     for i in range(0, len(hex_data), WORD_HEX_CHARS))
    if isinstance(memory, (list, tuple)):
        return tuple(str(word) for word in memory)
    raise MalformedTraceError(f"Unexpected memory format: {type(memory).__name__}")


def _parse_step(index: int, raw: Dict[str, Any]) -> TraceStep:
    try:
        stack = raw.get('stack')
        return TraceStep(
            index=index,
            pc=_to_int(raw['pc']),
            op=str(raw['op']),
            gas=_to_int(raw['gas']),
            gas_cost=_to_int(raw.get('gasCost'), 0),
            depth=_to_int(raw.get('depth'), 1),
            stack=tuple(str(item) for item in stack) if stack is not None else None,
            memory=_split_memory(raw.get('memory')),
            error=raw.get('error'),
        )
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise MalformedTraceError(f"Malformed struct log at step {index}: {e}") from e


def parse_struct_logs(trace_result: Dict[str, Any]) -> List[TraceStep]:
    """Parse the ``structLogs`` array of a debug_traceTransaction result."""
    if not isinstance(trace_result, dict) or 'structLogs' not in trace_result:
        raise MalformedTraceError("Trace result has no structLogs")
    struct_logs = trace_result['structLogs']
    if not isinstance(struct_logs, (list, tuple)):
        raise MalformedTraceError("structLogs is not a list")
    return [_parse_step(i, raw) for i, raw in enumerate(struct_logs)]


def _hex_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (bytes, HexBytes)):
        return HexBytes(value).to_0x_hex()
    return str(value)


def _checksum_or_none(addr: Optional[str]) -> Optional[str]:
    if not addr:
        return None
    return to_checksum_address(addr)


def _to_int(value: Any, default: int = 0) -> int:
    if value is None:
        return default
    if isinstance(value, str):
        return int(value, 16) if value.startswith('0x') else int(value)
    return int(value)


def build_trace(tx_hash: str, tx: Dict[str, Any], trace_result: Dict[str, Any],
                receipt: Optional[Dict[str, Any]] = None) -> TransactionTrace:
    """Combine a transaction envelope and its trace result into a TransactionTrace."""
    steps = parse_struct_logs(trace_result)
    failed = bool(trace_result.get('failed', False))
    if receipt is not None and receipt.get('status') is not None:
        succeeded = _to_int(receipt['status']) == 1
        gas_used = _to_int(receipt.get('gasUsed'), _to_int(trace_result.get('gas')))
    else:
        succeeded = not failed
        gas_used = _to_int(trace_result.get('gas'))

    return TransactionTrace(
        tx_hash=tx_hash,
        from_addr=_checksum_or_none(tx.get('from')),
        to_addr=_checksum_or_none(tx.get('to')),
        block_hash=_hex_or_none(tx.get('blockHash')),
        block_number=_to_int(tx['blockNumber']) if tx.get('blockNumber') is not None else None,
        gas=_to_int(tx.get('gas')),
        gas_used=gas_used,
        value=_to_int(tx.get('value')),
        success=succeeded,
        output=_hex_or_none(trace_result.get('returnValue')) or "0x",
        error=trace_result.get('error'),
        steps=steps,
    )


def load_trace_file(path: str, tx_hash: Optional[str] = None) -> TransactionTrace:
    """Load a saved trace.

    The file holds either a bare debug_traceTransaction result, or an object
    with ``transaction`` (the eth_getTransactionByHash result, optional) and
    ``trace`` keys.
    """
    try:
        with open(path, 'r') as f:
            payload = json.load(f)
    except json.JSONDecodeError as e:
        raise MalformedTraceError(f"{path} is not valid JSON: {e}") from e
    except OSError as e:
        raise MalformedTraceError(f"Cannot read {path}: {e}") from e

    if not isinstance(payload, dict):
        raise MalformedTraceError(f"{path} does not contain a JSON object")

    if 'trace' in payload:
        tx = payload.get('transaction') or {}
        trace_result = payload['trace']
        receipt = payload.get('receipt')
    else:
        tx, trace_result, receipt = {}, payload, None

    file_hash = tx.get('hash') or tx_hash or "0x" + "0" * 64
    return build_trace(normalize_tx_hash(str(file_hash)), tx, trace_result, receipt)


class TransactionTracer:
    """
    Fetches transactions and their execution traces over JSON-RPC.
    """

    def __init__(self, rpc_url: str = "http://localhost:8545", quiet_mode: bool = False):
        self.rpc_url = rpc_url
        self.quiet_mode = quiet_mode
        self.w3 = Web3(Web3.HTTPProvider(rpc_url))
        if not self.w3.is_connected():
            raise RPCConnectionError(rpc_url)

    def _log(self, message: str, level: str = "info"):
        """Log a message to stderr if not in quiet mode."""
        if not self.quiet_mode:
            print(message, file=sys.stderr)

    def _request(self, method: str, params: list) -> Any:
        try:
            return self.w3.manager.request_blocking(method, params)
        except requests.exceptions.RequestException as e:
            raise RPCConnectionError(self.rpc_url, str(e)) from e

    def trace_transaction(self, tx_hash: str) -> TransactionTrace:
        """Fetch a transaction envelope, its receipt and its struct-log trace."""
        tx_hash = normalize_tx_hash(tx_hash)
        self._log(f"Loading transaction {info(tx_hash)}...")

        try:
            tx = dict(self.w3.eth.get_transaction(tx_hash))
            receipt = dict(self.w3.eth.get_transaction_receipt(tx_hash))
        except TransactionNotFound as e:
            raise TraceNotFoundError(tx_hash, str(e)) from e
        except requests.exceptions.RequestException as e:
            raise RPCConnectionError(self.rpc_url, str(e)) from e
        except Web3Exception as e:
            raise TraceNotFoundError(tx_hash, str(e)) from e

        try:
            trace_result = self._request("debug_traceTransaction", [tx_hash, TRACE_OPTIONS])
        except (ValueError, Web3Exception) as e:
            # JSON-RPC error responses, e.g. the debug namespace is disabled
            raise TraceNotFoundError(tx_hash, f"debug_traceTransaction failed: {e}") from e

        if trace_result is None:
            raise TraceNotFoundError(tx_hash, "node returned an empty trace")

        trace = build_trace(tx_hash, tx, dict(trace_result), receipt)
        self._log(f"Loaded {success(str(len(trace.steps)))} steps, "
                  f"{success(str(trace.max_memory_words))} memory words")
        return trace
