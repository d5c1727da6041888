"""Reassembly of streamed tool-call fragments."""

import json
from dataclasses import dataclass
from typing import Dict, List, Optional

from .models import ToolCallRequest
from ..exceptions import MalformedToolArguments


@dataclass
class _PartialCall:
    id: str = ""
    name: str = ""
    arguments: str = ""


class ToolCallAccumulator:
    """
    Collects tool-call fragments keyed by their stream index.

    Vendors stream tool arguments as partial JSON strings. Fragments are only
    concatenated while the stream runs; parsing happens once in ``finalize`` after
    the vendor stream has ended.
    """

    def __init__(self) -> None:
        self._calls: Dict[int, _PartialCall] = {}

    def __bool__(self) -> bool:
        return bool(self._calls)

    def __len__(self) -> int:
        return len(self._calls)

    def start(self, index: int, call_id: str, name: str) -> None:
        """Open a new call at ``index`` with a known id and name."""
        self._calls[index] = _PartialCall(id=call_id, name=name)

    def add_fragment(
        self,
        index: int,
        call_id: Optional[str] = None,
        name: Optional[str] = None,
        arguments: Optional[str] = None,
    ) -> None:
        """Merge a fragment into the call at ``index``, creating it on first sight.

        The id is replaced when present. Name and argument pieces are appended.
        """
        call = self._calls.setdefault(index, _PartialCall())
        if call_id:
            call.id = call_id
        if name:
            call.name += name
        if arguments:
            call.arguments += arguments

    def indices(self) -> List[int]:
        """Stream indices of the collected calls, in order."""
        return sorted(self._calls)

    def raw_calls(self) -> List[Dict[str, str]]:
        """The unparsed calls in index order, as ``{id, name, arguments}``."""
        return [
            {"id": call.id, "name": call.name, "arguments": call.arguments}
            for _, call in sorted(self._calls.items())
        ]

    def finalize(self) -> List[ToolCallRequest]:
        """Parse every argument buffer.

        An empty buffer stands for a call without arguments.

        Raises:
            MalformedToolArguments: If a buffer is not valid JSON or not a JSON object.
        """
        requests = []
        for index, call in sorted(self._calls.items()):
            if not call.arguments.strip():
                parsed: object = {}
            else:
                try:
                    parsed = json.loads(call.arguments)
                except json.JSONDecodeError as exc:
                    raise MalformedToolArguments(
                        f"Failed to parse arguments for tool '{call.name}': {exc}",
                        tool_name=call.name,
                        index=index,
                    ) from exc

            if not isinstance(parsed, dict):
                raise MalformedToolArguments(
                    f"Arguments for tool '{call.name}' must decode to a JSON object.",
                    tool_name=call.name,
                    index=index,
                )
            requests.append(ToolCallRequest(id=call.id, name=call.name, input=parsed))
        return requests
