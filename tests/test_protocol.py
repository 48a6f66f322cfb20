"""
Tests for JSON-RPC dispatch
"""

import pytest

from relay_mcp.core.errors import ToolExecutionError
from relay_mcp.core.protocol import RequestHandlerExtra, RpcDispatcher
from relay_mcp.core.registry import ToolRegistry


@pytest.fixture
def registry():
    registry = ToolRegistry()

    async def add(value):
        return {"total": sum(value)}

    async def explode(value):
        raise RuntimeError("kaboom")

    async def reject(value):
        raise ToolExecutionError("bad input", data={"field": "value"})

    def upper(value):
        return value.upper()

    registry.register_function(add, description="Add numbers")
    registry.register_function(explode, description="Always fails")
    registry.register_function(reject, description="Rejects input")
    registry.register_function(upper, description="Sync tool")
    registry.seal()
    return registry


@pytest.fixture
def dispatcher(registry):
    """Create a dispatcher instance for testing"""
    return RpcDispatcher(registry)


@pytest.mark.asyncio
async def test_ping(dispatcher):
    response = await dispatcher.dispatch({"jsonrpc": "2.0", "id": 1, "method": "ping"})

    assert response == {"jsonrpc": "2.0", "id": 1, "result": {"pong": True}}


@pytest.mark.asyncio
async def test_invalid_jsonrpc_version_keeps_id(dispatcher):
    """Test handling of invalid JSON-RPC version"""
    response = await dispatcher.dispatch({"jsonrpc": "1.0", "id": 7, "method": "ping"})

    assert response["id"] == 7
    assert response["error"]["code"] == -32600
    assert response["error"]["message"] == "Invalid JSON-RPC version"
    assert "result" not in response


@pytest.mark.asyncio
async def test_missing_version_without_id(dispatcher):
    response = await dispatcher.dispatch({"method": "ping"})

    assert response["id"] is None
    assert response["error"]["code"] == -32600


@pytest.mark.asyncio
@pytest.mark.parametrize("message", [5, "ping", None, [{"jsonrpc": "2.0", "method": "ping"}]])
async def test_non_object_request(dispatcher, message):
    response = await dispatcher.dispatch(message)

    assert response["id"] is None
    assert response["error"]["code"] == -32600


@pytest.mark.asyncio
async def test_method_not_found(dispatcher):
    """Test handling of unregistered method"""
    response = await dispatcher.dispatch({"jsonrpc": "2.0", "id": "x", "method": "unknown"})

    assert response["id"] == "x"
    assert response["error"]["code"] == -32601
    assert response["error"]["message"] == "Method not found: unknown"


@pytest.mark.asyncio
async def test_missing_method(dispatcher):
    response = await dispatcher.dispatch({"jsonrpc": "2.0", "id": 3})

    assert response["error"]["code"] == -32601


@pytest.mark.asyncio
async def test_request_without_id_still_answered(dispatcher):
    response = await dispatcher.dispatch({"jsonrpc": "2.0", "method": "ping"})

    assert response == {"jsonrpc": "2.0", "id": None, "result": {"pong": True}}


@pytest.mark.asyncio
async def test_list_tools_is_stable(dispatcher, registry):
    request = {"jsonrpc": "2.0", "id": 1, "method": "listTools"}

    first = await dispatcher.dispatch(request)
    second = await dispatcher.dispatch(request)

    assert first["result"] == second["result"]
    assert len(first["result"]) == len(registry)
    assert [t["name"] for t in first["result"]] == ["add", "explode", "reject", "upper"]
    assert all("invoke" not in t for t in first["result"])


@pytest.mark.asyncio
async def test_call_tool_success(dispatcher):
    response = await dispatcher.dispatch(
        {
            "jsonrpc": "2.0",
            "id": 2,
            "method": "callTool",
            "params": {"name": "add", "input": [1, 2, 3]},
        }
    )

    assert response == {"jsonrpc": "2.0", "id": 2, "result": {"total": 6}}


@pytest.mark.asyncio
async def test_call_sync_tool(dispatcher):
    response = await dispatcher.dispatch(
        {"jsonrpc": "2.0", "id": 2, "method": "callTool", "params": {"name": "upper", "input": "hi"}}
    )

    assert response["result"] == "HI"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "params, shown",
    [
        ({"name": "nope"}, "nope"),
        ({"name": 42}, "42"),
        ({}, "None"),
        (None, "None"),
        (["add"], "None"),
    ],
)
async def test_call_tool_not_found(dispatcher, params, shown):
    request = {"jsonrpc": "2.0", "id": 9, "method": "callTool"}
    if params is not None:
        request["params"] = params

    response = await dispatcher.dispatch(request)

    assert response["id"] == 9
    assert response["error"]["code"] == -32000
    assert response["error"]["message"] == f"Tool not found: {shown}"


@pytest.mark.asyncio
async def test_tool_exception_is_reported(dispatcher):
    """Test handling of exceptions in tools"""
    response = await dispatcher.dispatch(
        {"jsonrpc": "2.0", "id": 4, "method": "callTool", "params": {"name": "explode"}}
    )

    assert response["id"] == 4
    assert response["error"]["code"] == -32000
    assert response["error"]["message"] == "kaboom"


@pytest.mark.asyncio
async def test_tool_error_data_is_kept(dispatcher):
    response = await dispatcher.dispatch(
        {"jsonrpc": "2.0", "id": 5, "method": "callTool", "params": {"name": "reject"}}
    )

    assert response["error"] == {"code": -32000, "message": "bad input", "data": {"field": "value"}}


@pytest.mark.asyncio
async def test_traceback_reported_when_enabled(registry):
    dispatcher = RpcDispatcher(registry, include_traceback=True)

    response = await dispatcher.dispatch(
        {"jsonrpc": "2.0", "id": 4, "method": "callTool", "params": {"name": "explode"}}
    )

    assert "Traceback" in response["error"]["data"]
    assert "RuntimeError: kaboom" in response["error"]["data"]


@pytest.mark.asyncio
async def test_traceback_omitted_when_disabled(registry):
    dispatcher = RpcDispatcher(registry, include_traceback=False)

    response = await dispatcher.dispatch(
        {"jsonrpc": "2.0", "id": 4, "method": "callTool", "params": {"name": "explode"}}
    )

    assert "data" not in response["error"]


@pytest.mark.asyncio
async def test_custom_request_handler(dispatcher):
    seen = []

    async def handler(params, extra: RequestHandlerExtra):
        seen.append(extra.id)
        return {"echo": params}

    dispatcher.set_request_handler("custom", handler)
    response = await dispatcher.dispatch(
        {"jsonrpc": "2.0", "id": "c1", "method": "custom", "params": {"a": 1}}
    )

    assert response["result"] == {"echo": {"a": 1}}
    assert seen == ["c1"]


@pytest.mark.asyncio
async def test_non_serializable_result(dispatcher):
    async def handler(params, extra):
        return {1, 2}

    dispatcher.set_request_handler("weird", handler)
    response = await dispatcher.dispatch({"jsonrpc": "2.0", "id": 1, "method": "weird"})

    assert response["result"].startswith("[Non-Serializable Result: set]")


@pytest.mark.asyncio
async def test_non_finite_floats_become_null(dispatcher):
    response = await dispatcher.dispatch(
        {
            "jsonrpc": "2.0",
            "id": 3,
            "method": "callTool",
            "params": {"name": "add", "input": [1e308, 1e308]},
        }
    )

    assert response == {"jsonrpc": "2.0", "id": 3, "result": {"total": None}}


@pytest.mark.asyncio
async def test_nested_nan_becomes_null(dispatcher):
    async def handler(params, extra):
        return {"values": [1.5, float("nan"), (float("-inf"), 2)], "ok": True}

    dispatcher.set_request_handler("stats", handler)
    response = await dispatcher.dispatch({"jsonrpc": "2.0", "id": 4, "method": "stats"})

    assert response["result"] == {"values": [1.5, None, [None, 2]], "ok": True}
