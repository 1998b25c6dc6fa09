import json

from hexbytes import HexBytes

from trill.json_serializer import SnapshotSerializer
from trill.replay_engine import ReplayEngine, SlotStatus

from trace_helpers import TX_HASH, trace_from_ops


def view_after(steps):
    trace = trace_from_ops([
        ("MSTORE", [0xff, 0x20], 1),
        ("MLOAD", [0x0], 2),
        ("STOP", [], 2),
    ])
    return ReplayEngine.from_trace(trace).advance(steps)


class TestSnapshotSerializer:
    def setup_method(self):
        self.serializer = SnapshotSerializer()

    def test_convert_hex_values(self):
        converted = self.serializer._convert_to_serializable({
            "a": HexBytes("0x01ff"),
            "b": b"\x02",
            "c": [SlotStatus.WRITING, (1, 2)],
        })
        assert converted == {"a": "0x01ff", "b": "0x02", "c": ["WRITING", [1, 2]]}

    def test_serialize_view(self):
        data = self.serializer.serialize_view(view_after(2))

        assert data["nextInstruction"] == 2
        assert data["totalInstructions"] == 3
        assert data["finished"] is False
        assert data["indexedSlots"] == 2
        assert data["slots"] == ["ACTIVE", "WRITING"]
        assert data["slotCounts"]["WRITING"] == 1
        assert data["slotCounts"]["EMPTY"] == 0
        assert data["history"] == ["MSTORE"]
        assert data["operation"]["opcode"] == "MLOAD"
        assert data["operation"]["operands"] == {"offset": "0x0"}
        assert data["readSeries"] == [[0, 0], [1, 0]]
        assert data["writeSeries"] == [[0, 0], [1, 1]]

    def test_serialize_unstarted_view(self):
        trace = trace_from_ops([("STOP", [], 0)])
        data = self.serializer.serialize_view(ReplayEngine.from_trace(trace).advance(paused=True))
        assert data["operation"] is None
        assert data["history"] == []

    def test_serialize_transaction(self):
        data = self.serializer.serialize_view(view_after(1))["transaction"]
        assert data["hash"] == TX_HASH
        assert data["steps"] == 3
        assert data["memoryWords"] == 2
        assert data["success"] is True

    def test_serialize_session_is_json(self):
        views = [view_after(3), view_after(1)]
        data = self.serializer.serialize_session(views)
        assert data["versus"] is True
        assert len(data["transactions"]) == 2
        assert json.loads(json.dumps(data)) == data

    def test_large_operands_are_hex(self):
        value = 2 ** 255
        trace = trace_from_ops([("MSTORE", [value, 0x0], 1)])
        data = self.serializer.serialize_view(ReplayEngine.from_trace(trace).advance(1))
        assert data["operation"]["operands"]["value"] == hex(value)
