"""
Opcode classification for memory replay

Maps an instruction (mnemonic + operand stack) to the memory words it reads
or writes. Operands are counted from the top of the stack, which is the last
element of a trace step's stack.

Traces record memory as it was *before* each instruction, so an effect
decoded at step i only shows up in step i+1's memory image. The engine
therefore treats every classification as pending until the next step.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from .exceptions import MalformedTraceError, TraceDecodeError
from .transaction_tracer import TraceStep

WORD_SIZE = 32


class Opcode(Enum):
    """Opcodes the classifier knows about. Everything else is OTHER."""
    MLOAD = "MLOAD"
    MSTORE = "MSTORE"
    MSTORE8 = "MSTORE8"
    CALLDATACOPY = "CALLDATACOPY"
    CODECOPY = "CODECOPY"
    RETURNDATACOPY = "RETURNDATACOPY"
    EXTCODECOPY = "EXTCODECOPY"
    MCOPY = "MCOPY"
    MSIZE = "MSIZE"
    OTHER = "OTHER"

    @classmethod
    def from_mnemonic(cls, mnemonic: str) -> "Opcode":
        try:
            return cls(mnemonic.upper())
        except ValueError:
            return cls.OTHER


class MemoryRole(Enum):
    READ = "read"
    WRITE = "write"


# Stack operands each opcode consumes, top of stack first
OPERAND_NAMES: Dict[Opcode, Tuple[str, ...]] = {
    Opcode.MLOAD: ("offset",),
    Opcode.MSTORE: ("offset", "value"),
    Opcode.MSTORE8: ("offset", "value"),
    Opcode.CALLDATACOPY: ("destOffset", "offset", "size"),
    Opcode.CODECOPY: ("destOffset", "offset", "size"),
    Opcode.RETURNDATACOPY: ("destOffset", "offset", "size"),
    Opcode.EXTCODECOPY: ("address", "destOffset", "offset", "size"),
    Opcode.MCOPY: ("destOffset", "offset", "size"),
    Opcode.MSIZE: (),
    Opcode.OTHER: (),
}


@dataclass(frozen=True)
class DecodedOp:
    """An opcode as recorded in the operation history."""
    opcode: Opcode
    mnemonic: str

    @classmethod
    def from_step(cls, step: TraceStep) -> "DecodedOp":
        return cls(Opcode.from_mnemonic(step.op), step.op)

    @property
    def text(self) -> str:
        return self.mnemonic

    @property
    def affects_memory(self) -> bool:
        return self.opcode is not Opcode.OTHER


@dataclass(frozen=True)
class MemoryEffect:
    """Words touched by one instruction.

    ``words`` are touched with ``role``; ``forced_reads`` are always read,
    whatever the role (the source side of MCOPY).
    """
    role: MemoryRole
    words: range
    forced_reads: range = field(default_factory=lambda: range(0))


@dataclass(frozen=True)
class Classification:
    op: DecodedOp
    effect: Optional[MemoryEffect]
    operands: Dict[str, int]


def words_for(size: int) -> int:
    """Number of words a byte length spans; partial trailing words count."""
    return (size + WORD_SIZE - 1) // WORD_SIZE


def word_range(offset: int, size: int) -> range:
    start = offset // WORD_SIZE
    return range(start, start + words_for(size))


def decode_operands(step: TraceStep, opcode: Opcode) -> Dict[str, int]:
    """Read the named stack operands for ``opcode`` from a trace step."""
    names = OPERAND_NAMES[opcode]
    stack = step.stack or ()
    if len(stack) < len(names):
        raise TraceDecodeError(step.op, step.index, len(names), len(stack))
    try:
        return {name: int(stack[-1 - depth], 16) for depth, name in enumerate(names)}
    except ValueError as e:
        raise MalformedTraceError(f"Non-hex stack operand for {step.op} at step {step.index}") from e


def classify(step: TraceStep, indexed_slots_count: int = 0) -> Classification:
    """Classify one instruction.

    ``indexed_slots_count`` is only used by MSIZE, which is shown as reading
    every word currently in memory.
    """
    op = DecodedOp.from_step(step)
    opcode = op.opcode
    operands = decode_operands(step, opcode)

    if opcode is Opcode.MLOAD:
        effect = MemoryEffect(MemoryRole.READ, word_range(operands["offset"], WORD_SIZE))
    elif opcode in (Opcode.MSTORE, Opcode.MSTORE8):
        # MSTORE8 writes one byte; the grid shows the whole word
        effect = MemoryEffect(MemoryRole.WRITE, word_range(operands["offset"], WORD_SIZE))
    elif opcode in (Opcode.CALLDATACOPY, Opcode.CODECOPY,
                    Opcode.RETURNDATACOPY, Opcode.EXTCODECOPY):
        effect = MemoryEffect(
            MemoryRole.WRITE, word_range(operands["destOffset"], operands["size"])
        )
    elif opcode is Opcode.MCOPY:
        effect = MemoryEffect(
            MemoryRole.WRITE,
            word_range(operands["destOffset"], operands["size"]),
            forced_reads=word_range(operands["offset"], operands["size"]),
        )
    elif opcode is Opcode.MSIZE:
        effect = MemoryEffect(MemoryRole.READ, range(indexed_slots_count))
    elif opcode is Opcode.OTHER:
        effect = None
    else:
        raise AssertionError(f"Unhandled opcode {opcode}")

    return Classification(op=op, effect=effect, operands=operands)
