"""
Terminal rendering of replay views.

Every function here reads a frozen ViewState and returns text; nothing in
this module touches engine state.
"""

from typing import List, Optional, Sequence

from .colors import (
    address, bold, cyan, dim, error, gas_value, highlight, info, number,
    opcode, pc_value, read_series, slot_cell, success, write_series,
)
from .replay_engine import SeriesPoint, SlotStatus, ViewState
from .transaction_tracer import TransactionTrace

SPARK_CHARS = "▁▂▃▄▅▆▇█"
WORD_SIZE = 32


def _title(text: str) -> str:
    return bold(f" {text} ")


def render_memory(view: ViewState, width: int = 32, row_offset: int = 0,
                  max_rows: Optional[int] = None) -> List[str]:
    """Draw the slot grid, ``width`` slots per row, starting at row ``row_offset``."""
    lines = [_title(f"Memory ({view.indexed_slots_count}/{len(view.slots)} words)")]
    rows = [view.slots[i:i + width] for i in range(0, len(view.slots), width)]
    if not rows:
        lines.append(dim("  [no memory captured]"))
        return lines

    row_offset = max(0, min(row_offset, len(rows) - 1))
    visible = rows[row_offset:]
    if max_rows is not None:
        visible = visible[:max_rows]
    for n, row in enumerate(visible, start=row_offset):
        label = dim(f"0x{n * width * WORD_SIZE:06x}")
        lines.append(f"{label} " + "".join(slot_cell(status.name) for status in row))

    hidden = len(rows) - row_offset - len(visible)
    if row_offset or hidden > 0:
        lines.append(dim(f"  rows {row_offset}-{row_offset + len(visible) - 1} of {len(rows)}"))
    lines.append(render_legend())
    return lines


def render_legend() -> str:
    parts = []
    for status in (SlotStatus.EMPTY, SlotStatus.ACTIVE, SlotStatus.READING,
                   SlotStatus.WRITING, SlotStatus.UNREAD):
        parts.append(f"{slot_cell(status.name)} {status.text}")
    return "  ".join(parts)


def render_transaction(trace: TransactionTrace) -> List[str]:
    """Transaction info box."""
    status = success("true") if trace.success else error("false")
    rows = [
        ("Hash", info(trace.tx_hash)),
        ("From", address(trace.from_addr or "-")),
        ("To", address(trace.to_addr or "(contract creation)")),
        ("Block Hash", trace.block_hash or "-"),
        ("Block Number", number(str(trace.block_number)) if trace.block_number is not None else "-"),
        ("Success", status),
        ("Gas used", number(str(trace.gas_used))),
    ]
    if trace.error:
        rows.append(("Error", error(trace.error)))
    return [_title("Transaction info")] + [f"  {dim(f'{label:<13}')} {value}" for label, value in rows]


def render_operation(view: ViewState) -> List[str]:
    """Operation info box for the most recently processed instruction."""
    lines = [_title("Operation info")]
    op = view.operation
    if op is None:
        lines.append(dim("  [not started]"))
        return lines
    lines.append(f"  {dim('Step')}      {highlight(f'{op.index}/{view.total_instructions - 1}')}")
    lines.append(f"  {dim('Op code')}   {opcode(op.opcode)}")
    lines.append(f"  {dim('PC')}        {pc_value(op.pc)}")
    lines.append(f"  {dim('Gas cost')}  {number(str(op.gas_cost))}")
    lines.append(f"  {dim('Gas left')}  {gas_value(op.gas_remaining)}")
    for name, value in op.operands.items():
        lines.append(f"  {dim(f'{name:<9}')} {cyan(hex(value))}")
    return lines


def render_history(view: ViewState, rows: int = 10, scroll: int = 0) -> List[str]:
    """Most recent ``rows`` history entries, ``scroll`` entries up from the end."""
    lines = [_title(f"Operation history ({len(view.history)})")]
    if not view.history:
        lines.append(dim("  [empty]"))
        return lines
    end = max(len(view.history) - max(scroll, 0), 0)
    start = max(end - rows, 0)
    for n in range(start, end):
        entry = view.history[n]
        text = opcode(entry.text) if entry.affects_memory else dim(entry.text)
        marker = ">>" if n == len(view.history) - 1 else "  "
        lines.append(f"{marker}{dim(str(n).rjust(6))} {text}")
    return lines


def sparkline(series: Sequence[SeriesPoint], width: int = 60,
              ceiling: Optional[int] = None) -> str:
    """Compress the last ``width`` points of a cumulative series into block characters."""
    values = [value for _, value in series[-width:]]
    if not values:
        return ""
    top = ceiling if ceiling is not None else max(values)
    if top <= 0:
        return SPARK_CHARS[0] * len(values)
    scale = len(SPARK_CHARS) - 1
    return "".join(SPARK_CHARS[min(scale, value * scale // top)] for value in values)


def render_chart(view: ViewState, width: int = 60) -> List[str]:
    """Cumulative read/write word counts on a shared scale."""
    last_read = view.read_series[-1][1] if view.read_series else 0
    last_write = view.write_series[-1][1] if view.write_series else 0
    ceiling = max(last_read, last_write)
    return [
        _title("Memory activity"),
        f"  {dim('read ')} {read_series(sparkline(view.read_series, width, ceiling))} {number(str(last_read))}",
        f"  {dim('write')} {write_series(sparkline(view.write_series, width, ceiling))} {number(str(last_write))}",
    ]


def render_help() -> List[str]:
    return [
        _title("Help"),
        f"  {info('forward')} [n]   step forward n instructions (default: iteration size)",
        f"  {info('back')}          step back to the previous memory operation",
        f"  {info('pause')}         toggle pause",
        f"  {info('play')} [ticks]  step continuously until the end, pause or Ctrl-C",
        f"  {info('scroll')} up|down  scroll the operation history",
        f"  {info('rows')} up|down    scroll the memory grid",
        f"  {info('quit')}          exit",
    ]


def render_status(view: ViewState, paused: bool, forward: bool) -> str:
    direction = "forward" if forward else "backward"
    state = "paused" if paused else direction
    end = dim(" (end of trace)") if view.finished else ""
    return (f"{dim('Next instruction')} {highlight(f'{view.next_instruction}/{view.total_instructions}')}"
            f" {dim('|')} {info(state)}{end}")


def render_view(view: ViewState, width: int = 32, row_offset: int = 0,
                history_rows: int = 10, history_scroll: int = 0,
                paused: bool = False, forward: bool = True) -> str:
    """One full frame for a single transaction."""
    sections: List[List[str]] = [
        [render_status(view, paused, forward)],
        render_memory(view, width, row_offset),
        render_transaction(view.transaction),
        render_operation(view),
        render_history(view, history_rows, history_scroll),
        render_chart(view, width=max(width, 20)),
    ]
    return "\n".join("\n".join(section) for section in sections)


def render_frame(views: Sequence[ViewState], **options) -> str:
    """Render every transaction of a session, one after the other in versus mode."""
    frames = [render_view(view, **options) for view in views]
    if len(frames) == 1:
        return frames[0]
    separator = dim("=" * 60)
    return f"\n{separator}\n".join(
        f"{bold(f'Transaction {n + 1}')}\n{frame}" for n, frame in enumerate(frames)
    )
