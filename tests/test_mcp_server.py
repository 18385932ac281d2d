"""Tests for the FastMCP tool, resource and prompt wrappers.

The wrappers are plain async functions; each test swaps the server's
dispatcher for one backed by the stub API.
"""

import importlib
import json

import pytest

from tools import mcp_server
from tests.conftest import BASE_URL


@pytest.fixture
def server(monkeypatch, dispatcher):
    monkeypatch.setattr(mcp_server, "dispatcher", dispatcher)
    return mcp_server


@pytest.fixture
def ready_server(server, dispatcher):
    dispatcher.session.replace_endpoint(BASE_URL)
    dispatcher.session.commit_credential("good-token")
    return server


class TestRegistration:

    def test_every_tool_is_named(self):
        assert set(mcp_server.TOOLS) >= {
            "check-connection", "set-api-url", "authenticate", "keep-session-alive",
            "authenticate-with-credentials", "logout", "set-organization",
            "list-categories", "get-category", "create-category", "update-category",
            "delete-category", "list-category-objects",
            "list-charts", "get-chart", "delete-chart", "export-chart",
        }
        assert "auth://status" in mcp_server.RESOURCES
        assert "compare-charts" in mcp_server.PROMPTS


class TestConnectionTools:

    @pytest.mark.asyncio
    async def test_check_connection_without_url(self, server):
        result = await server.check_connection()
        assert result["connected"] is False
        assert "set-api-url" in result["message"]

    @pytest.mark.asyncio
    async def test_check_connection_verified(self, ready_server, stub_api):
        stub_api.add("POST", "/tokens/keepAlive", json={})
        result = await ready_server.check_connection()
        assert result["connected"] is True

    @pytest.mark.asyncio
    async def test_check_connection_failed(self, ready_server, stub_api, dispatcher):
        stub_api.add("POST", "/tokens/keepAlive", status=401)
        result = await ready_server.check_connection()
        assert result["connected"] is False
        assert "error" in result
        assert dispatcher.session.verified is False

    @pytest.mark.asyncio
    async def test_set_api_url(self, server, dispatcher):
        result = await server.set_api_url(BASE_URL)
        assert result["message"] == f"API URL set to: {BASE_URL}"
        assert dispatcher.session.endpoint == BASE_URL

    @pytest.mark.asyncio
    async def test_set_api_url_rejects_garbage(self, server, dispatcher):
        result = await server.set_api_url("garbage")
        assert "Invalid URL format" in result["error"]
        assert dispatcher.session.endpoint is None

    @pytest.mark.asyncio
    async def test_authenticate_guide(self, server, dispatcher):
        dispatcher.session.replace_endpoint(BASE_URL)
        result = await server.authenticate()
        assert "keep-session-alive" in result["message"]

    @pytest.mark.asyncio
    async def test_keep_session_alive_with_bad_token_keeps_old(self, ready_server, stub_api, dispatcher):
        stub_api.add("POST", "/tokens/keepAlive", status=401)
        result = await ready_server.keep_session_alive(token="bad")
        assert "invalid or expired" in result["error"]
        assert dispatcher.session.credential == "good-token"

    @pytest.mark.asyncio
    async def test_keep_session_alive_without_token(self, ready_server, stub_api):
        stub_api.add("POST", "/tokens/keepAlive", json={})
        result = await ready_server.keep_session_alive()
        assert result["message"].startswith("Session kept alive")

    @pytest.mark.asyncio
    async def test_authenticate_with_credentials(self, server, stub_api, dispatcher):
        dispatcher.session.replace_endpoint(BASE_URL)
        stub_api.add("POST", "/tokens", json={"token": "pw-token"})
        result = await server.authenticate_with_credentials("ann secret")
        assert "successful" in result["message"]
        assert dispatcher.session.credential == "pw-token"

    @pytest.mark.asyncio
    async def test_authenticate_with_bad_format(self, server, dispatcher):
        dispatcher.session.replace_endpoint(BASE_URL)
        result = await server.authenticate_with_credentials("justme")
        assert "username password" in result["error"]

    @pytest.mark.asyncio
    async def test_logout_reports_both_outcomes(self, ready_server, stub_api, dispatcher):
        stub_api.add("POST", "/tokens/invalidate", status=502)
        result = await ready_server.logout()
        assert result["local_cleared"] is True
        assert result["remote_invalidated"] is False
        assert "Token cleared locally" in result["error"]
        assert dispatcher.session.credential is None

    @pytest.mark.asyncio
    async def test_set_organization(self, server, dispatcher):
        result = await server.set_organization(7)
        assert result["message"] == "Organization ID set to 7"
        assert dispatcher.session.scope == 7


class TestDataTools:

    @pytest.mark.asyncio
    async def test_list_categories_sends_paging_and_filters(self, ready_server, stub_api):
        stub_api.add("GET", "/categories", json=[{"id": 1}])
        result = await ready_server.list_categories(filters="description(eq)=Marketing", page=2, page_size=5)

        params = stub_api.last.url.params
        assert params["page"] == "2"
        assert params["pageSize"] == "5"
        assert params["description(eq)"] == "Marketing"
        assert result["data"] == [{"id": 1}]

    @pytest.mark.asyncio
    async def test_not_configured_is_an_error_dict(self, server, stub_api):
        result = await server.list_charts()
        assert "set-api-url" in result["error"]
        assert stub_api.requests == []

    @pytest.mark.asyncio
    async def test_create_category_drops_unset_fields(self, ready_server, stub_api):
        stub_api.add("POST", "/categories", json={"id": 10})
        await ready_server.create_category("Sales", 3, cascade_filters=False)
        assert json.loads(stub_api.last.content) == {
            "description": "Sales",
            "orgId": 3,
            "cascadeFilters": False,
        }

    @pytest.mark.asyncio
    async def test_update_category_uses_put(self, ready_server, stub_api):
        stub_api.add("PUT", "/categories/4", json={"id": 4})
        await ready_server.update_category(4, label="New label")
        assert stub_api.last.method == "PUT"
        assert json.loads(stub_api.last.content) == {"label": "New label"}

    @pytest.mark.asyncio
    async def test_api_error_is_reported(self, ready_server, stub_api):
        stub_api.add("DELETE", "/charts/8", status=403)
        result = await ready_server.delete_chart(8)
        assert result["error"] == "API request failed with status 403: Forbidden"

    @pytest.mark.asyncio
    async def test_export_binary_is_summarized(self, ready_server, stub_api):
        stub_api.add("GET", "/charts/2/pdf", content=b"%PDF" * 100, headers={"content-type": "application/pdf"})
        result = await ready_server.export_chart(2, "pdf")
        assert result["content_type"] == "application/pdf"
        assert result["size"] > 100
        assert result["data_preview"].endswith("...")
        assert "data" not in result

    @pytest.mark.asyncio
    async def test_export_json_returns_data(self, ready_server, stub_api):
        stub_api.add("GET", "/charts/2/json", json={"rows": [1]})
        result = await ready_server.export_chart(2, "json")
        assert result["data"] == {"rows": [1]}

    @pytest.mark.asyncio
    async def test_export_unknown_format(self, ready_server, stub_api):
        result = await ready_server.export_chart(2, "gif")
        assert "Unsupported export format" in result["error"]
        assert stub_api.requests == []


class TestResources:

    @pytest.mark.asyncio
    async def test_auth_status_unconfigured(self, server):
        text = await server.auth_status()
        assert "API URL: Not set" in text
        assert "Setup Instructions:" in text

    @pytest.mark.asyncio
    async def test_auth_status_verifies_pending_token(self, server, stub_api, dispatcher):
        dispatcher.session.replace_endpoint(BASE_URL)
        dispatcher.session.stage_credential("tok")
        stub_api.add("POST", "/tokens/keepAlive", json={})

        text = await server.auth_status()

        assert "Connection Status: Verified" in text
        assert "Ready to use: Yes" in text

    @pytest.mark.asyncio
    async def test_chart_detail_renders_json(self, ready_server, stub_api):
        stub_api.add("GET", "/charts/1", json={"id": 1})
        assert json.loads(await ready_server.chart_detail("1")) == {"id": 1}

    @pytest.mark.asyncio
    async def test_chart_export_binary_is_described(self, ready_server, stub_api):
        stub_api.add("GET", "/charts/1/png", content=b"\x89PNG", headers={"content-type": "image/png"})
        assert await ready_server.chart_export("1", "png") == "Binary data of type image/png"

    @pytest.mark.asyncio
    async def test_errors_are_rendered_as_text(self, server):
        text = await server.categories_list()
        assert text.startswith("Error fetching categories:")


class TestPrompts:

    def test_setup_note_until_ready(self, server, dispatcher):
        assert "check-connection" in server.analyze_charts()
        dispatcher.session.replace_endpoint(BASE_URL)
        dispatcher.session.commit_credential("tok")
        assert "check-connection" not in server.analyze_charts()

    def test_compare_charts_mentions_both_ids(self, server):
        text = server.compare_charts("11", "22", "csv")
        assert "chart 11" in text
        assert "chart 22" in text
        assert "in csv format" in text


class FakeMcp:

    def __init__(self):
        self.ran = False

    def run(self):
        self.ran = True


class TestMain:

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in ("API_URL", "PI_API_KEY", "PI_API_TIMEOUT", "LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)

    def test_import_ignores_bad_timeout(self, monkeypatch):
        monkeypatch.setenv("PI_API_TIMEOUT", "soon")
        reloaded = importlib.reload(mcp_server)
        assert "list-charts" in reloaded.TOOLS

    def test_bad_timeout_stops_launch(self, monkeypatch, server):
        fake = FakeMcp()
        monkeypatch.setattr(server, "mcp", fake)
        monkeypatch.setenv("PI_API_TIMEOUT", "soon")

        with pytest.raises(SystemExit):
            server.main([])
        assert fake.ran is False

    def test_launch_applies_settings(self, monkeypatch, server, dispatcher, stub_api):
        fake = FakeMcp()
        monkeypatch.setattr(server, "mcp", fake)
        monkeypatch.setenv("PI_API_TIMEOUT", "5")

        server.main(["--api-url", BASE_URL])

        assert fake.ran is True
        assert dispatcher.timeout == 5.0
        assert dispatcher.session.endpoint == BASE_URL
        assert stub_api.requests == []
