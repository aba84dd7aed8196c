# tests/fakes.py
"""
Fake aiohttp session replaying canned upstream responses.

Routes match on method plus a fragment of ``url?key=value&...`` (query values
unencoded); the longest matching fragment wins. Each route replays its
responses in order and repeats the last one. Unmatched requests get a 404.
"""
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


class FakeResp:
    def __init__(self, status: int = 200, body: Any = None, text: Optional[str] = None):
        self.status = status
        if text is None:
            text = json.dumps(body) if body is not None else ""
        self._text = text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def text(self):
        return self._text


@dataclass
class Call:
    method: str
    url: str
    params: List[Tuple[str, str]] = field(default_factory=list)
    json: Any = None
    data: Any = None
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def full(self) -> str:
        query = "&".join(f"{key}={value}" for key, value in self.params)
        return f"{self.url}?{query}" if query else self.url

    def param(self, name: str) -> Optional[str]:
        for key, value in self.params:
            if key == name:
                return value
        return None


class FakeSession:
    def __init__(self):
        self.routes: List[Tuple[str, str, List[FakeResp]]] = []
        self.calls: List[Call] = []

    def add(self, method: str, fragment: str, *responses) -> "FakeSession":
        """Register responses: FakeResp instances or ``(status, body)`` tuples."""
        replies = [r if isinstance(r, FakeResp) else FakeResp(*r) for r in responses] or [FakeResp(200, {})]
        self.routes.append((method.upper(), fragment, replies))
        return self

    def request(self, method, url, params=None, json=None, data=None, headers=None):
        call = Call(method.upper(), url, list(params or []), json, data, dict(headers or {}))
        self.calls.append(call)
        candidates = [
            route for route in self.routes if route[0] == call.method and route[1] in call.full
        ]
        if not candidates:
            return FakeResp(404, {"error": {"code": 404, "message": "Not Found"}})
        _, _, replies = max(candidates, key=lambda route: len(route[1]))
        return replies.pop(0) if len(replies) > 1 else replies[0]

    def calls_to(self, method: str, fragment: str = "") -> List[Call]:
        return [c for c in self.calls if c.method == method.upper() and fragment in c.full]

    async def close(self):
        return None
