"""
JSON Serialization for trill replay output

Turns transaction envelopes and replay views into plain JSON for consumers
that do not use the terminal renderer (``trill inspect --json``).
"""

from typing import Any, Dict, List, Sequence

from hexbytes import HexBytes

from .replay_engine import SlotStatus, ViewState
from .transaction_tracer import TransactionTrace


class SnapshotSerializer:
    """Serializes replay state to JSON-compatible dictionaries."""

    def _convert_to_serializable(self, obj: Any) -> Any:
        """Convert non-serializable objects to JSON-serializable format."""
        if isinstance(obj, HexBytes):
            return obj.to_0x_hex()
        elif isinstance(obj, bytes):
            return '0x' + obj.hex()
        elif isinstance(obj, SlotStatus):
            return obj.value
        elif isinstance(obj, dict):
            return {k: self._convert_to_serializable(v) for k, v in obj.items()}
        elif isinstance(obj, (list, tuple)):
            return [self._convert_to_serializable(item) for item in obj]
        else:
            return obj

    def serialize_transaction(self, trace: TransactionTrace) -> Dict[str, Any]:
        return self._convert_to_serializable({
            "hash": trace.tx_hash,
            "from": trace.from_addr,
            "to": trace.to_addr,
            "blockHash": trace.block_hash,
            "blockNumber": trace.block_number,
            "gas": trace.gas,
            "gasUsed": trace.gas_used,
            "value": trace.value,
            "success": trace.success,
            "output": trace.output,
            "error": trace.error,
            "steps": len(trace.steps),
            "memoryWords": trace.max_memory_words,
        })

    def serialize_view(self, view: ViewState) -> Dict[str, Any]:
        """Serialize one engine view.

        Slots are emitted as status names; series as ``[index, cumulative]`` pairs.
        """
        operation = None
        if view.operation is not None:
            op = view.operation
            operation = {
                "index": op.index,
                "opcode": op.opcode,
                "pc": op.pc,
                "gasCost": op.gas_cost,
                "gasRemaining": op.gas_remaining,
                # Operands can exceed JSON's safe integer range
                "operands": {name: hex(value) for name, value in op.operands.items()},
            }

        counts = view.status_counts()
        response = {
            "transaction": self.serialize_transaction(view.transaction),
            "nextInstruction": view.next_instruction,
            "totalInstructions": view.total_instructions,
            "finished": view.finished,
            "indexedSlots": view.indexed_slots_count,
            "slots": list(view.slots),
            "slotCounts": {status.value: counts[status] for status in SlotStatus},
            "history": [entry.text for entry in view.history],
            "operation": operation,
            "readSeries": view.read_series,
            "writeSeries": view.write_series,
        }
        return self._convert_to_serializable(response)

    def serialize_session(self, views: Sequence[ViewState]) -> Dict[str, Any]:
        serialized: List[Dict[str, Any]] = [self.serialize_view(view) for view in views]
        return {"versus": len(serialized) > 1, "transactions": serialized}
