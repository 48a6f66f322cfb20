"""
Integration tests for Relay MCP Server
End-to-end flows through the real tools on both transports
"""

import asyncio
import io
import json
import types

import pytest
from fastapi.testclient import TestClient

from relay_mcp import MCPServer, StdioTransport, tool
from relay_mcp.app import create_app
from relay_mcp.config import Settings


@tool(description="Sleep for the given number of seconds")
async def nap(input: float) -> dict:
    await asyncio.sleep(input)
    return {"slept": input}


# Extra tool module used to show out-of-order completion
nap.__module__ = "slow_tools"
slow_tools = types.ModuleType("slow_tools")
slow_tools.nap = nap


@pytest.fixture
def server():
    server = MCPServer(name="test-server", version="0.1.0")
    server.load_tools([slow_tools])
    return server


async def _run_stdio(server, data: bytes) -> list[dict]:
    output = io.StringIO()
    transport = StdioTransport(server.dispatcher, output=output)
    reader = asyncio.StreamReader()
    reader.feed_data(data)
    reader.feed_eof()
    await transport.serve(reader)
    return [json.loads(line) for line in output.getvalue().splitlines()]


@pytest.mark.asyncio
async def test_stdio_session(server):
    lines = await _run_stdio(
        server,
        b'{"jsonrpc":"2.0","id":1,"method":"ping"}\n'
        b'{"jsonrpc":"2.0","id":2,"method":"callTool","params":{"name":"sum","input":[1,2,3]}}\n'
        b"not-json\n",
    )

    ready, *responses = lines
    assert ready == {
        "jsonrpc": "2.0",
        "id": None,
        "result": {"ready": True, "tools": ["echo", "now", "sum", "tavily_search", "nap"]},
    }
    by_id = {r["id"]: r for r in responses}
    assert len(responses) == 3
    assert by_id[1]["result"] == {"pong": True}
    assert by_id[2]["result"] == {"total": 6}
    assert by_id[None]["error"]["code"] == -32700
    assert by_id[None]["error"]["message"] == "Parse error"


@pytest.mark.asyncio
async def test_stdio_responses_follow_completion_order(server):
    lines = await _run_stdio(
        server,
        b'{"jsonrpc":"2.0","id":"first","method":"callTool","params":{"name":"nap","input":0.05}}\n'
        b'{"jsonrpc":"2.0","id":"second","method":"callTool","params":{"name":"nap","input":0}}\n',
    )

    assert [line["id"] for line in lines[1:]] == ["second", "first"]


@pytest.mark.asyncio
async def test_stdio_missing_credential(server, monkeypatch):
    monkeypatch.delenv("TAVILY_API_KEY", raising=False)

    lines = await _run_stdio(
        server,
        b'{"jsonrpc":"2.0","id":3,"method":"callTool","params":{"name":"tavily_search","input":{"query":"x"}}}\n',
    )

    error = lines[1]["error"]
    assert lines[1]["id"] == 3
    assert error["code"] == -32000
    assert "API key missing" in error["message"]


@pytest.mark.asyncio
async def test_stdio_unknown_tool_names_the_tool(server):
    lines = await _run_stdio(
        server,
        b'{"jsonrpc":"2.0","id":4,"method":"callTool","params":{"name":"teleport"}}\n',
    )

    assert lines[1]["error"] == {"code": -32000, "message": "Tool not found: teleport"}


def test_http_batch_and_broadcast(server):
    app = create_app(server, Settings(heartbeat_interval=3600))
    client = TestClient(app)
    listener = app.state.sse.accept()
    start = app.state.sse.sequence

    replies = client.post(
        "/mcp/command",
        json=[
            {"jsonrpc": "2.0", "id": "a", "method": "ping"},
            {"jsonrpc": "2.0", "id": "b", "method": "unknown"},
        ],
    ).json()

    assert replies[0] == {"jsonrpc": "2.0", "id": "a", "result": {"pong": True}}
    assert replies[1]["id"] == "b"
    assert replies[1]["error"]["code"] == -32601

    events = []
    while not listener.queue.empty():
        events.append(listener.queue.get_nowait())
    assert events[0]["event"] == "welcome"
    assert [json.loads(e["data"]) for e in events[1:]] == replies
    assert [int(e["id"]) for e in events[1:]] == [start + 1, start + 2]
