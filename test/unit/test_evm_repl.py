import pytest

import trill.evm_repl as evm_repl
from trill.config import TrillConfig
from trill.debug_session import DebugSession
from trill.evm_repl import MemoryDebugger
from trill.exceptions import MalformedTraceError
from trill.replay_engine import SlotStatus

from trace_helpers import trace_from_ops


def debugger_for(ops, **config):
    trace = trace_from_ops(ops)
    return MemoryDebugger(DebugSession([lambda: trace]), TrillConfig(rpc_url="http://node", **config))


OPS = [
    ("PUSH1", [], 0),
    ("MSTORE", [1, 0x0], 0),
    ("MSTORE", [1, 0x20], 1),
    ("STOP", [], 2),
]


class TestMemoryDebugger:
    def test_forward_with_count(self, capsys):
        debugger = debugger_for(OPS)
        debugger.onecmd("forward 3")
        assert debugger.views[0].next_instruction == 3
        assert "Next instruction 3/4" in capsys.readouterr().out

    def test_forward_uses_iteration(self):
        debugger = debugger_for(OPS, iteration=2)
        debugger.onecmd("n")
        assert debugger.views[0].next_instruction == 2

    def test_forward_at_end(self, capsys):
        debugger = debugger_for(OPS)
        debugger.onecmd("forward 10")
        capsys.readouterr()
        debugger.onecmd("forward")
        assert "Already at end of execution." in capsys.readouterr().out

    def test_invalid_count(self, capsys):
        debugger = debugger_for(OPS)
        debugger.onecmd("forward x")
        assert "Not a number:" in capsys.readouterr().out
        assert debugger.views == []

    def test_back(self):
        debugger = debugger_for(OPS)
        debugger.onecmd("forward 4")
        debugger.onecmd("back")
        view = debugger.views[0]
        assert view.next_instruction == 3
        assert view.slots == (SlotStatus.WRITING, SlotStatus.EMPTY)
        assert not debugger.forward

    def test_back_at_start(self, capsys):
        debugger = debugger_for(OPS)
        debugger.onecmd("forward 1")
        debugger.onecmd("b")
        assert "Already at the first memory operation." in capsys.readouterr().out

    def test_pause_blocks_stepping(self, capsys):
        debugger = debugger_for(OPS)
        debugger.onecmd("forward 2")
        debugger.onecmd("pause")
        debugger.onecmd("forward")
        assert debugger.views[0].next_instruction == 2
        assert "Paused" in capsys.readouterr().out

        debugger.onecmd("pause")
        debugger.onecmd("forward")
        assert debugger.views[0].next_instruction == 3

    def test_iteration(self, capsys):
        debugger = debugger_for(OPS)
        debugger.onecmd("iteration 3")
        assert debugger.iteration == 3
        debugger.onecmd("iteration")
        assert "Iteration size: 3" in capsys.readouterr().out

    def test_play_until_end(self, monkeypatch, capsys):
        sleeps = []
        monkeypatch.setattr(evm_repl.time, "sleep", sleeps.append)
        debugger = debugger_for(OPS, fps=2.0)
        debugger.onecmd("play")
        assert debugger.views[0].finished
        assert "Execution completed." in capsys.readouterr().out
        assert sleeps == [0.5, 0.5, 0.5]

    def test_play_ticks(self, monkeypatch):
        monkeypatch.setattr(evm_repl.time, "sleep", lambda seconds: None)
        debugger = debugger_for(OPS)
        debugger.onecmd("play 2")
        assert debugger.views[0].next_instruction == 2

    def test_scroll(self):
        debugger = debugger_for(OPS)
        debugger.onecmd("forward 4")
        debugger.onecmd("scroll up")
        assert debugger.history_scroll == 1
        debugger.onecmd("scroll down")
        debugger.onecmd("scroll down")
        assert debugger.history_scroll == 0

    def test_inspection_commands(self, capsys):
        debugger = debugger_for(OPS)
        debugger.onecmd("forward 3")
        capsys.readouterr()
        for command in ("slots", "history", "op", "chart", "tx"):
            debugger.onecmd(command)
        out = capsys.readouterr().out
        assert "Memory (1/2 words)" in out
        assert "Operation history (2)" in out
        assert "Operation info" in out
        assert "Memory activity" in out
        assert "Transaction info" in out

    def test_unknown_command(self, capsys):
        debugger = debugger_for(OPS)
        debugger.onecmd("frobnicate")
        assert "Unknown command:" in capsys.readouterr().out

    def test_quit(self):
        debugger = debugger_for(OPS)
        assert debugger.onecmd("quit") is True

    def test_fetch_failure_stops_session(self, capsys):
        def fetch():
            raise MalformedTraceError("Trace result has no structLogs")

        debugger = MemoryDebugger(DebugSession([fetch]), TrillConfig(rpc_url="http://node"))
        assert debugger.onecmd("forward") is True
        assert debugger.failed
        assert "Trace result has no structLogs" in capsys.readouterr().out

    def test_cmdloop_returns_on_fetch_failure(self):
        def fetch():
            raise MalformedTraceError("broken")

        debugger = MemoryDebugger(DebugSession([fetch]), TrillConfig(rpc_url="http://node"))
        debugger.cmdloop()
        assert debugger.failed
