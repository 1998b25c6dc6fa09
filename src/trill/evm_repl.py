"""
EVM memory REPL

Interactive REPL that drives a DebugSession: step forward and back through
a transaction, pause, play at a fixed frame rate, and inspect the memory grid,
operation history and read/write activity.
"""

import cmd
import time
from typing import List, Optional

from .colors import bold, cyan, dim, error, info, success, warning
from .config import TrillConfig
from .debug_session import DebugSession
from .exceptions import TrillError
from .render import (
    render_chart, render_frame, render_help, render_history, render_memory,
    render_operation, render_transaction,
)
from .replay_engine import ViewState


class MemoryDebugger(cmd.Cmd):
    """Interactive EVM memory debugger REPL."""

    intro = f"""
{bold('Trill')} - EVM memory time-travel debugger
Type {info('help')} for commands. Use {info('forward')} and {info('back')} to step.
    """
    prompt = f'{cyan("(trill)")} '

    def __init__(self, session: DebugSession, config: Optional[TrillConfig] = None):
        super().__init__()
        self.session = session
        self.config = config or TrillConfig()
        self.iteration = self.config.iteration
        self.forward = True
        self.paused = False
        self.history_scroll = 0
        self.row_offset = 0
        self.failed = False
        self.views: List[ViewState] = []

    def cmdloop(self, intro=None):
        # The first advance fetches the traces; nothing can be shown before it
        if self._advance(paused=True):
            return
        super().cmdloop(intro)

    def preloop(self):
        self._show_current_state()

    def postcmd(self, stop, line):
        return stop or self.failed

    def _advance(self, iteration: Optional[int] = None, forward: Optional[bool] = None,
                 paused: Optional[bool] = None) -> bool:
        """Advance the session; returns True when the session failed."""
        try:
            self.views = self.session.advance(
                iteration or self.iteration,
                self.forward if forward is None else forward,
                self.paused if paused is None else paused,
            )
        except TrillError as e:
            print(f"{error('Error:')} {e}")
            self.failed = True
        return self.failed

    def _show_current_state(self):
        if not self.views:
            return
        print(render_frame(
            self.views,
            width=self.config.grid_width,
            row_offset=self.row_offset,
            history_rows=self.config.history_rows,
            history_scroll=self.history_scroll,
            paused=self.paused,
            forward=self.forward,
        ))

    def _parse_count(self, arg: str, default: int) -> Optional[int]:
        if not arg.strip():
            return default
        try:
            count = int(arg.strip())
        except ValueError:
            print(f"{error('Not a number:')} {arg.strip()}")
            return None
        if count < 1:
            print(error("Step count must be at least 1"))
            return None
        return count

    def do_forward(self, arg):
        """Step forward. Usage: forward [n] (default: iteration size). Aliases: f, next, n"""
        count = self._parse_count(arg, self.iteration)
        if count is None:
            return
        if self.paused:
            print(warning("Paused. Use 'pause' to resume."))
            return
        if self.views and all(view.finished for view in self.views):
            print(info("Already at end of execution."))
            return
        self.forward = True
        if self._advance(count, forward=True):
            return True
        self._show_current_state()

    def do_f(self, arg):
        """Alias for forward"""
        return self.do_forward(arg)

    def do_next(self, arg):
        """Alias for forward"""
        return self.do_forward(arg)

    def do_n(self, arg):
        """Alias for forward"""
        return self.do_forward(arg)

    def do_back(self, arg):
        """Step back to the previous memory operation. Aliases: b, prev"""
        if self.paused:
            print(warning("Paused. Use 'pause' to resume."))
            return
        before = [view.next_instruction for view in self.views]
        self.forward = False
        if self._advance(forward=False):
            return True
        if [view.next_instruction for view in self.views] == before:
            print(info("Already at the first memory operation."))
        self._show_current_state()

    def do_b(self, arg):
        """Alias for back"""
        return self.do_back(arg)

    def do_prev(self, arg):
        """Alias for back"""
        return self.do_back(arg)

    def do_pause(self, arg):
        """Toggle pause."""
        self.paused = not self.paused
        print(warning("Paused") if self.paused else success("Resumed"))

    def do_iteration(self, arg):
        """Show or set the number of instructions per step. Usage: iteration [n]"""
        if not arg.strip():
            print(f"Iteration size: {info(str(self.iteration))}")
            return
        count = self._parse_count(arg, self.iteration)
        if count is not None:
            self.iteration = count
            print(f"Iteration size set to {success(str(count))}")

    def do_play(self, arg):
        """Step continuously at the configured frame rate. Usage: play [ticks]"""
        ticks = self._parse_count(arg, 0) if arg.strip() else None
        if arg.strip() and ticks is None:
            return
        if self.paused:
            print(warning("Paused. Use 'pause' to resume."))
            return

        played = 0
        try:
            while ticks is None or played < ticks:
                before = [view.next_instruction for view in self.views]
                if self._advance():
                    return True
                played += 1
                self._show_current_state()
                positions = [view.next_instruction for view in self.views]
                if self.forward and all(view.finished for view in self.views):
                    print(info("Execution completed."))
                    break
                if not self.forward and positions == before:
                    print(info("Reached the first memory operation."))
                    break
                time.sleep(self.config.tick_seconds)
        except KeyboardInterrupt:
            print(f"\n{warning('Interrupted')}")

    def do_slots(self, arg):
        """Show the memory slot grid."""
        for n, view in enumerate(self.views):
            if self.session.versus:
                print(bold(f"Transaction {n + 1}"))
            print("\n".join(render_memory(view, self.config.grid_width, self.row_offset)))

    def do_history(self, arg):
        """Show the operation history. Usage: history [rows]"""
        rows = self._parse_count(arg, self.config.history_rows)
        if rows is None:
            return
        for view in self.views:
            print("\n".join(render_history(view, rows, self.history_scroll)))

    def do_op(self, arg):
        """Show the current operation and its decoded operands."""
        for view in self.views:
            print("\n".join(render_operation(view)))

    def do_chart(self, arg):
        """Show cumulative memory reads and writes."""
        for view in self.views:
            print("\n".join(render_chart(view, width=max(self.config.grid_width, 20))))

    def do_tx(self, arg):
        """Show transaction info."""
        for view in self.views:
            print("\n".join(render_transaction(view.transaction)))

    def do_scroll(self, arg):
        """Scroll the operation history. Usage: scroll up|down"""
        direction = arg.strip().lower()
        if direction == "up":
            self.history_scroll += 1
        elif direction == "down":
            self.history_scroll = max(0, self.history_scroll - 1)
        else:
            print("Usage: scroll up|down")
            return
        self.do_history("")

    def do_rows(self, arg):
        """Scroll the memory grid. Usage: rows up|down"""
        direction = arg.strip().lower()
        if direction == "up":
            self.row_offset = max(0, self.row_offset - 1)
        elif direction == "down":
            self.row_offset += 1
        else:
            print("Usage: rows up|down")
            return
        self.do_slots("")

    def do_show(self, arg):
        """Redraw the full frame."""
        self._show_current_state()

    def do_exit(self, arg):
        """Exit the debugger"""
        print("Goodbye!")
        return True

    def do_quit(self, arg):
        """Alias for exit"""
        return self.do_exit(arg)

    def do_q(self, arg):
        """Alias for exit"""
        return self.do_exit(arg)

    def do_EOF(self, arg):
        """Handle Ctrl-D"""
        print()
        return self.do_exit(arg)

    def emptyline(self):
        """Handle empty line (don't repeat last command)"""
        pass

    def default(self, line):
        """Handle unknown commands."""
        print(f"{error('Unknown command:')} '{line}'")
        print(f"Type {info('help')} to see available commands.")

    def do_help(self, arg):
        """Show help information."""
        if arg:
            cmd.Cmd.do_help(self, arg)
            return
        print("\n".join(render_help()))
        print(f"\n{cyan('Inspection:')}")
        print(f"  {info('slots')}         - Show the memory grid")
        print(f"  {info('history')} [n]   - Show the last n operations")
        print(f"  {info('op')}            - Show the current operation")
        print(f"  {info('chart')}         - Show read/write activity")
        print(f"  {info('tx')}            - Show transaction info")
        print(f"  {info('show')}          - Redraw everything")
        print(f"  {info('iteration')} [n] - Show or set instructions per step")
        print(f"\n{dim('Use')} {info('help <command>')} {dim('for detailed help on a specific command.')}")
