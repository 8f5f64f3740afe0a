"""Tests for JSON-RPC 2.0 message helpers and tool-result envelopes."""

import json

import pytest
from blogger_mcp.server.protocol import (
    validate_message,
    make_response,
    make_error,
    initialize_result,
    tools_list_result,
    tool_result_content,
    text_content,
    json_text_content,
    unwrap_text_json,
    ProtocolError,
    INVALID_REQUEST,
)


class TestValidateMessage:
    @pytest.mark.parametrize("msg, expected", [
        ({"jsonrpc": "2.0", "id": 1, "method": "tools/call"}, "request"),
        ({"jsonrpc": "2.0", "method": "notifications/initialized"}, "notification"),
        ({"jsonrpc": "2.0", "id": 1, "result": {}}, "response"),
        ({"jsonrpc": "2.0", "id": 1, "error": {"code": -1, "message": "x"}}, "error"),
    ])
    def test_message_types(self, msg, expected):
        assert validate_message(msg) == expected

    def test_not_an_object(self):
        with pytest.raises(ProtocolError) as exc_info:
            validate_message([1, 2])
        assert exc_info.value.code == INVALID_REQUEST

    def test_wrong_version(self):
        with pytest.raises(ProtocolError):
            validate_message({"jsonrpc": "1.0", "id": 1, "method": "ping"})

    def test_undeterminable(self):
        with pytest.raises(ProtocolError):
            validate_message({"jsonrpc": "2.0", "id": 7})


class TestEnvelopes:
    def test_response(self):
        assert make_response("abc", {"ok": 1}) == {"jsonrpc": "2.0", "id": "abc", "result": {"ok": 1}}

    def test_error_with_and_without_data(self):
        err = make_error(None, -32700, "Parse error")
        assert err["id"] is None
        assert "data" not in err["error"]
        assert make_error(3, -32602, "bad", data={"field": "blogId"})["error"]["data"] == {"field": "blogId"}

    def test_initialize_result_advertises_tools_only(self):
        r = initialize_result("blogger-mcp", "0.1.0", "2024-11-05")
        assert r["protocolVersion"] == "2024-11-05"
        assert r["serverInfo"] == {"name": "blogger-mcp", "version": "0.1.0"}
        assert list(r["capabilities"]) == ["tools"]

    def test_tools_list_result(self):
        tools = [{"name": "get_blog", "description": "d", "inputSchema": {"type": "object"}}]
        assert tools_list_result(tools) == {"tools": tools}

    def test_tool_result_error_flag(self):
        assert "isError" not in tool_result_content([text_content("hi")])
        assert tool_result_content([text_content("fail")], is_error=True)["isError"] is True


class TestJsonText:
    def test_json_text_content_pretty_prints(self):
        block = json_text_content({"blog": {"id": "1"}})
        assert block["type"] == "text"
        assert block["text"] == json.dumps({"blog": {"id": "1"}}, indent=2)

    def test_unwrap_parses_first_text_block(self):
        result = tool_result_content([json_text_content({"posts": [1, 2]})])
        assert unwrap_text_json(result) == {"posts": [1, 2]}

    def test_unwrap_leaves_plain_text_alone(self):
        result = tool_result_content([text_content("Blog creation is not supported")], is_error=True)
        assert unwrap_text_json(result) is result

    @pytest.mark.parametrize("result", [
        {},
        {"content": []},
        {"content": [{"type": "image"}]},
        None,
        "just a string",
    ])
    def test_unwrap_odd_shapes_unchanged(self, result):
        assert unwrap_text_json(result) == result

    def test_unwrap_is_one_level_deep(self):
        inner = json.dumps({"a": 1})
        result = tool_result_content([text_content(json.dumps(inner))])
        assert unwrap_text_json(result) == inner
