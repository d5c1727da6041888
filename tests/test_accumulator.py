import pytest

from cellobot.llm_core.exceptions import MalformedToolArguments
from cellobot.llm_core.tools import ToolCallAccumulator, ToolCallRequest


def test_fragments_are_concatenated_per_index() -> None:
    acc = ToolCallAccumulator()
    acc.add_fragment(1, call_id="b", name="read_", arguments='{"sheet": ')
    acc.add_fragment(0, call_id="a", name="write_cells", arguments='{"sheet": "S1"')
    acc.add_fragment(1, name="range", arguments='"S2"}')
    acc.add_fragment(0, arguments="}")

    assert acc.finalize() == [
        ToolCallRequest(id="a", name="write_cells", input={"sheet": "S1"}),
        ToolCallRequest(id="b", name="read_range", input={"sheet": "S2"}),
    ]


def test_later_id_replaces_earlier() -> None:
    acc = ToolCallAccumulator()
    acc.add_fragment(0, call_id="", name="get_workbook_info")
    acc.add_fragment(0, call_id="call_9")
    assert acc.raw_calls() == [{"id": "call_9", "name": "get_workbook_info", "arguments": ""}]


def test_empty_arguments_mean_no_input() -> None:
    acc = ToolCallAccumulator()
    acc.start(0, "t1", "get_workbook_info")
    assert acc.finalize() == [ToolCallRequest(id="t1", name="get_workbook_info", input={})]


def test_invalid_json_raises_with_context() -> None:
    acc = ToolCallAccumulator()
    acc.start(2, "t1", "write_cells")
    acc.add_fragment(2, arguments='{"sheet": "S1"')

    with pytest.raises(MalformedToolArguments) as exc_info:
        acc.finalize()
    assert exc_info.value.tool_name == "write_cells"
    assert exc_info.value.index == 2


@pytest.mark.parametrize("payload", ["[1, 2]", '"text"', "null", "3"])
def test_non_object_json_raises(payload: str) -> None:
    acc = ToolCallAccumulator()
    acc.start(0, "t1", "write_cells")
    acc.add_fragment(0, arguments=payload)
    with pytest.raises(MalformedToolArguments, match="JSON object"):
        acc.finalize()


def test_truthiness_tracks_calls() -> None:
    acc = ToolCallAccumulator()
    assert not acc
    acc.start(0, "t1", "x")
    assert acc and len(acc) == 1
