"""
Trace replay engine

A reversible state machine over one transaction's instruction trace. Each
call to ``ReplayEngine.advance`` moves the cursor forward by a number of
instructions (or back by one memory-affecting boundary) and returns a frozen
``ViewState`` for the renderer.

Memory effects are applied one instruction late: the effect decoded at
instruction i is only visible in instruction i+1's pre-execution memory
image, so it is held in the cursor as a pending effect until then.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Set, Tuple

from .opcodes import Classification, DecodedOp, MemoryEffect, MemoryRole, classify
from .transaction_tracer import TraceStep, TransactionTrace

# (instruction index, cumulative words)
SeriesPoint = Tuple[int, int]


class SlotStatus(Enum):
    INIT = "INIT"
    EMPTY = "EMPTY"
    ACTIVE = "ACTIVE"
    READING = "READING"
    WRITING = "WRITING"
    UNREAD = "UNREAD"

    @property
    def text(self) -> str:
        return {
            SlotStatus.INIT: "Initializing",
            SlotStatus.EMPTY: "Empty",
            SlotStatus.ACTIVE: "Active",
            SlotStatus.READING: "Reading",
            SlotStatus.WRITING: "Writing",
            SlotStatus.UNREAD: "Unread",
        }[self]

    @classmethod
    def from_role(cls, role: MemoryRole) -> "SlotStatus":
        return cls.WRITING if role is MemoryRole.WRITE else cls.READING


# How a status decays on each forward step when its slot is not touched again
AGING = {
    SlotStatus.INIT: SlotStatus.ACTIVE,
    SlotStatus.READING: SlotStatus.ACTIVE,
    SlotStatus.WRITING: SlotStatus.UNREAD,
}


def _clip(words: range, limit: int) -> range:
    return range(max(words.start, 0), min(words.stop, limit))


@dataclass(frozen=True)
class PendingEffect:
    """An effect decoded at one instruction, waiting to be applied at the next."""
    status: SlotStatus
    indices: range = field(default_factory=lambda: range(0))
    forced_reads: range = field(default_factory=lambda: range(0))

    @classmethod
    def from_effect(cls, effect: MemoryEffect) -> "PendingEffect":
        return cls(SlotStatus.from_role(effect.role), effect.words, effect.forced_reads)


@dataclass
class EngineCursor:
    next_instruction: int = 0
    pending: Optional[PendingEffect] = None


@dataclass(frozen=True)
class OperationToRender:
    """Decoded view of the most recently processed instruction."""
    index: int
    opcode: str
    pc: int
    gas_cost: int
    gas_remaining: int
    operands: Dict[str, int]

    @classmethod
    def from_classification(cls, step: TraceStep,
                            classification: Classification) -> "OperationToRender":
        return cls(
            index=step.index,
            opcode=classification.op.text,
            pc=step.pc,
            gas_cost=step.gas_cost,
            gas_remaining=step.gas,
            operands=dict(classification.operands),
        )


@dataclass(frozen=True)
class ViewState:
    """Read-only snapshot of an engine, valid for one frame."""
    transaction: TransactionTrace
    slots: Tuple[SlotStatus, ...]
    indexed_slots_count: int
    next_instruction: int
    total_instructions: int
    history: Tuple[DecodedOp, ...]
    operation: Optional[OperationToRender]
    read_series: Tuple[SeriesPoint, ...]
    write_series: Tuple[SeriesPoint, ...]

    @property
    def finished(self) -> bool:
        return self.next_instruction >= self.total_instructions

    def status_counts(self) -> Dict[SlotStatus, int]:
        counts = {status: 0 for status in SlotStatus}
        for status in self.slots:
            counts[status] += 1
        return counts


class ReplayEngine:
    """
    Replays one transaction's memory activity.

    The trace is fetched lazily by ``fetch`` on the first ``advance`` call;
    that is the only blocking operation.
    """

    def __init__(self, fetch: Callable[[], TransactionTrace]):
        self._fetch = fetch
        self.initialized = False
        self.trace: Optional[TransactionTrace] = None
        self.slots: List[SlotStatus] = []
        self.indexed_slots_count = 0
        # Indexed slots whose status still decays on the next step
        self.decaying: Set[int] = set()
        self.cursor = EngineCursor()
        self.history: List[DecodedOp] = []
        self.operation: Optional[OperationToRender] = None
        self.read_series: List[SeriesPoint] = []
        self.write_series: List[SeriesPoint] = []
        self._view: Optional[ViewState] = None

    @classmethod
    def from_trace(cls, trace: TransactionTrace) -> "ReplayEngine":
        return cls(lambda: trace)

    @property
    def steps(self) -> List[TraceStep]:
        return self.trace.steps if self.trace else []

    def initialize(self):
        """Fetch the trace and size the slot vector to the largest memory seen."""
        self.trace = self._fetch()
        self.slots = [SlotStatus.INIT] * self.trace.max_memory_words
        self.indexed_slots_count = 0
        self.decaying = set()
        # Memory present before the first instruction shows up as INIT words
        self.cursor = EngineCursor(next_instruction=0,
                                   pending=PendingEffect(SlotStatus.INIT))
        self.history = []
        self.operation = None
        self.read_series = []
        self.write_series = []
        self.initialized = True
        self._view = None

    def advance(self, iteration_count: int = 1, forward: bool = True,
                paused: bool = False) -> ViewState:
        """Step the replay and return the resulting view.

        Forward steps process up to ``iteration_count`` instructions. Backward
        steps move to the memory-affecting instruction nearest to
        ``next_instruction - iteration_count``. A paused engine is not touched.
        """
        if iteration_count < 1:
            raise ValueError(f"iteration_count must be at least 1, got {iteration_count}")
        if not self.initialized:
            self.initialize()
        if paused:
            return self.view()

        if forward:
            self._step_forward(iteration_count)
        else:
            self._step_back(iteration_count)

        assert len(self.read_series) == len(self.write_series)
        assert self.indexed_slots_count <= len(self.slots)
        self._view = None
        return self.view()

    def view(self) -> ViewState:
        if self._view is None:
            self._view = ViewState(
                transaction=self.trace,
                slots=tuple(self.slots),
                indexed_slots_count=self.indexed_slots_count,
                next_instruction=self.cursor.next_instruction,
                total_instructions=len(self.steps),
                history=tuple(self.history),
                operation=self.operation,
                read_series=tuple(self.read_series),
                write_series=tuple(self.write_series),
            )
        return self._view

    # Forward

    def _step_forward(self, iteration_count: int):
        start = self.cursor.next_instruction
        end = min(start + iteration_count, len(self.steps))
        for index in range(start, end):
            self._process(index)
        self.cursor.next_instruction = max(start, end)

    def _process(self, index: int):
        step = self.steps[index]
        self._age_slots()

        read_delta = write_delta = 0
        if self.cursor.pending is not None:
            read_delta, write_delta = self._apply_pending(self.cursor.pending, step)
            self.cursor.pending = None
        self._append_series(index, read_delta, write_delta)

        if index > 0:
            self.history.append(DecodedOp.from_step(self.steps[index - 1]))

        classification = classify(step, self.indexed_slots_count)
        self.operation = OperationToRender.from_classification(step, classification)
        if classification.effect is not None:
            self.cursor.pending = PendingEffect.from_effect(classification.effect)

    def _mark(self, idx: int, status: SlotStatus):
        self.slots[idx] = status
        if status in AGING:
            self.decaying.add(idx)
        else:
            self.decaying.discard(idx)

    def _age_slots(self):
        # Aged statuses never age again, so every decaying slot leaves the set
        for idx in self.decaying:
            self.slots[idx] = AGING[self.slots[idx]]
        self.decaying.clear()

    def _apply_pending(self, pending: PendingEffect, step: TraceStep) -> Tuple[int, int]:
        """Apply a pending effect using ``step``'s memory image.

        Returns the (read, write) word counts to add to the chart series.
        """
        previous_count = self.indexed_slots_count
        if step.memory_words > previous_count:
            # Memory only grows by being written
            grown = min(step.memory_words, len(self.slots))
            for idx in range(previous_count, grown):
                self._mark(idx, pending.status)
            self.indexed_slots_count = grown
        new_words = self.indexed_slots_count - previous_count

        touched = _clip(pending.indices, self.indexed_slots_count)
        for idx in touched:
            self._mark(idx, pending.status)
        forced_reads = _clip(pending.forced_reads, self.indexed_slots_count)
        for idx in forced_reads:
            self._mark(idx, SlotStatus.READING)

        # Words that were both grown and touched are counted once
        activity = new_words + len(_clip(touched, previous_count))
        if pending.status is SlotStatus.WRITING:
            return len(forced_reads), activity
        if pending.status is SlotStatus.READING:
            return activity + len(forced_reads), 0
        return 0, 0

    def _append_series(self, index: int, read_delta: int, write_delta: int):
        last_read = self.read_series[-1][1] if self.read_series else 0
        last_write = self.write_series[-1][1] if self.write_series else 0
        self.read_series.append((index, last_read + read_delta))
        self.write_series.append((index, last_write + write_delta))

    # Backward

    def _find_boundary(self, target: int) -> Optional[int]:
        """Nearest memory-affecting instruction whose effect is visible at ``target``."""
        for index in range(min(target - 2, len(self.steps) - 1), -1, -1):
            if DecodedOp.from_step(self.steps[index]).affects_memory:
                return index
        return None

    def _step_back(self, iteration_count: int):
        target = self.cursor.next_instruction - iteration_count
        boundary = self._find_boundary(target)
        if boundary is None:
            return

        step = self.steps[boundary]
        after = self.steps[boundary + 1]
        next_len = after.memory_words
        own_len = step.memory_words

        classification = classify(step, own_len)
        pending = PendingEffect.from_effect(classification.effect)
        self.cursor.pending = pending
        self.cursor.next_instruction = boundary + 2
        self.operation = OperationToRender.from_classification(step, classification)

        for idx in range(len(self.slots)):
            if idx >= next_len:
                self._mark(idx, SlotStatus.EMPTY)
            elif idx >= own_len:
                self._mark(idx, pending.status)
        self.indexed_slots_count = min(self.indexed_slots_count, next_len)
        self.decaying = {idx for idx in self.decaying if idx < self.indexed_slots_count}

        if self.history:
            self.history.pop()
        if self.read_series:
            self.read_series.pop()
            self.write_series.pop()
