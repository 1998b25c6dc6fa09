import json

import pytest

from trill.main import main

from trace_helpers import TX_HASH, struct_log


@pytest.fixture
def trace_file(tmp_path):
    path = tmp_path / "trace.json"
    path.write_text(json.dumps({
        "transaction": {"hash": TX_HASH, "from": "0x" + "aa" * 20, "to": "0x" + "bb" * 20,
                        "blockNumber": 3, "gas": 60000, "value": 0},
        "receipt": {"status": 1, "gasUsed": 30000},
        "trace": {
            "gas": 30000,
            "failed": False,
            "returnValue": "",
            "structLogs": [
                struct_log("PUSH1", pc=0, memory_words=0),
                struct_log("MSTORE", pc=2, stack=[1, 0x0], memory_words=0),
                struct_log("MSTORE", pc=3, stack=[1, 0x20], memory_words=1),
                struct_log("STOP", pc=4, memory_words=2),
            ],
        },
    }))
    return str(path)


class TestInspectCommand:
    def test_json_replays_whole_trace(self, trace_file, capsys):
        assert main(["inspect", "--trace-file", trace_file, "--json"]) == 0
        data = json.loads(capsys.readouterr().out)

        assert data["versus"] is False
        view = data["transactions"][0]
        assert view["finished"] is True
        assert view["slots"] == ["UNREAD", "WRITING"]
        assert view["history"] == ["PUSH1", "MSTORE", "MSTORE"]
        assert view["transaction"]["hash"] == TX_HASH

    def test_steps(self, trace_file, capsys):
        assert main(["inspect", "-t", trace_file, "--steps", "2", "--json"]) == 0
        view = json.loads(capsys.readouterr().out)["transactions"][0]
        assert view["nextInstruction"] == 2
        assert view["operation"]["opcode"] == "MSTORE"

    def test_back(self, trace_file, capsys):
        assert main(["inspect", "-t", trace_file, "--back", "1", "--json"]) == 0
        view = json.loads(capsys.readouterr().out)["transactions"][0]
        assert view["nextInstruction"] == 3
        assert view["slots"] == ["WRITING", "EMPTY"]

    def test_versus(self, trace_file, capsys):
        assert main(["inspect", "-t", trace_file, "-t", trace_file, "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["versus"] is True
        assert len(data["transactions"]) == 2

    def test_text_output(self, trace_file, capsys):
        assert main(["inspect", "-t", trace_file, "--no-color", "--grid-width", "8"]) == 0
        out = capsys.readouterr().out
        assert "Memory (2/2 words)" in out
        assert "Next instruction 4/4" in out
        assert "\033[" not in out

    def test_missing_hash(self, capsys):
        assert main(["inspect"]) == 1
        assert "transaction hash is required" in capsys.readouterr().err

    def test_invalid_iteration(self, trace_file, capsys):
        assert main(["inspect", "-t", trace_file, "--iteration", "0"]) == 1
        assert "iteration must be at least 1" in capsys.readouterr().err

    def test_missing_trace_file(self, tmp_path, capsys):
        missing = str(tmp_path / "absent.json")
        assert main(["inspect", "-t", missing, "--json"]) == 1
        err = capsys.readouterr().err
        assert err.startswith("Error: Cannot read")
        assert "absent.json" in err

    def test_malformed_trace(self, tmp_path, capsys):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"gas": 1}))
        assert main(["inspect", "-t", str(path), "--json"]) == 1
        assert "structLogs" in capsys.readouterr().err

    def test_subcommand_required(self):
        with pytest.raises(SystemExit):
            main([])
