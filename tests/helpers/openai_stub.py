"""Test helpers to stub the OpenAI Responses client used by insights.py.

The stub pulls the embedded variance JSON block out of the user content so
tests can assert on exactly what would have been sent, and answers with a
caller-supplied reply (a string, or a callable over the parsed payload).
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

BEGIN = "BEGIN_VARIANCE_JSON\n"
END = "\nEND_VARIANCE_JSON"


def extract_payload(user_content: str) -> dict[str, Any]:
    b = user_content.find(BEGIN)
    e = user_content.rfind(END)
    if b == -1 or e == -1 or e <= b:
        raise AssertionError("insights: user content missing embedded variance JSON block")
    return json.loads(user_content[b + len(BEGIN) : e])


class OpenAIStub:
    """Minimal stub matching the ``openai.OpenAI`` shape used by ``insights.py``.

    Parameters
    ----------
    reply:
        Text returned as ``output_text``, or a callable receiving the parsed
        payload and returning that text.
    calls_out:
        A list appended with each call's kwargs for lightweight assertions.
    error:
        When set, ``responses.create`` raises it instead of answering.
    """

    def __init__(
        self,
        reply: str | Callable[[dict[str, Any]], str] = "",
        calls_out: list[dict[str, Any]] | None = None,
        error: Exception | None = None,
    ) -> None:
        self._reply = reply
        self._calls = calls_out if calls_out is not None else []
        self._error = error

        class _Responses:
            def __init__(self, outer: OpenAIStub) -> None:
                self._outer = outer

            def create(self, **kwargs):
                self._outer._calls.append(kwargs)
                if self._outer._error is not None:
                    raise self._outer._error
                payload = extract_payload(kwargs["input"])
                reply = self._outer._reply
                text = reply(payload) if callable(reply) else reply

                class _Resp:
                    output_text: str

                resp = _Resp()
                resp.output_text = text
                return resp

        self.responses = _Responses(self)

    @property
    def calls(self) -> list[dict[str, Any]]:
        return self._calls
