import json

import pytest

from src.servers.semrush.main import create_server, get_initialization_options

# Define test configurations for each tool
TOOL_TESTS = [
    {
        "agent": "domain",
        "mode": "overview",
        "tool": "domain_ranks",
        "params": {"domain": "https://www.semrush.com/features"},
        "report_type": "domain_ranks",
        "expected_query": {"domain": "semrush.com", "database": "us"},
    },
    {
        "agent": "domain",
        "mode": "competitors",
        "tool": "domain_competitors",
        "params": {"site": "ahrefs.com", "db": "UK", "limit": 5},
        "report_type": "domain_organic_organic",
        "expected_query": {"domain": "ahrefs.com", "database": "uk", "display_limit": "5"},
    },
    {
        "agent": "domain",
        "mode": "backlinks",
        "tool": "backlinks",
        "params": {"url": "https://moz.com/blog/"},
        "report_type": "backlinks",
        "expected_query": {"target": "moz.com/blog", "target_type": "url"},
    },
    {
        "agent": "domain",
        "mode": "backlinks",
        "tool": "backlinks_refdomains",
        "params": {"target": "moz.com"},
        "report_type": "backlinks_refdomains",
        "expected_query": {"target": "moz.com", "target_type": "root_domain"},
    },
    {
        "agent": "keyword",
        "mode": "overview",
        "tool": "keyword_overview",
        "params": {"keyword": "SEO Tools", "restrict_to_db": True},
        "report_type": "phrase_this",
        "expected_query": {"phrase": "seo tools", "database": "us"},
    },
    {
        "agent": "keyword",
        "mode": "overview",
        "tool": "batch_keyword_overview",
        "params": {"keywords": "seo, ppc, content marketing"},
        "report_type": "phrase_these",
        "expected_query": {"phrase": "seo;ppc;content marketing"},
    },
    {
        "agent": "keyword",
        "mode": "research",
        "tool": "related_keywords",
        "params": {"phrase": "running shoes", "display_limit": 10},
        "report_type": "phrase_related",
        "expected_query": {"phrase": "running shoes", "display_limit": "10"},
    },
    {
        "agent": "keyword",
        "mode": "research",
        "tool": "broad_match_keywords",
        "params": {"keyword": "coffee"},
        "report_type": "phrase_fullsearch",
        "expected_query": {"phrase": "coffee", "display_limit": "100"},
    },
    {
        "agent": "keyword",
        "mode": "research",
        "tool": "phrase_questions",
        "params": {"keyword": "link building", "database": "de"},
        "report_type": "phrase_questions",
        "expected_query": {"phrase": "link building", "database": "de"},
    },
    {
        "agent": "keyword",
        "mode": "research",
        "tool": "keyword_difficulty",
        "params": {"phrases": ["seo", "sem"]},
        "report_type": "phrase_kdi",
        "expected_query": {"phrase": "seo;sem"},
    },
    {
        "agent": "keyword",
        "mode": "domain_keywords",
        "tool": "domain_organic_keywords",
        "params": {"domain": "semrush.com", "limit": 20},
        "report_type": "domain_organic",
        "expected_query": {"domain": "semrush.com", "display_limit": "20"},
    },
    {
        "agent": "keyword",
        "mode": "domain_keywords",
        "tool": "domain_paid_keywords",
        "params": {"domain": "www.shopify.com"},
        "report_type": "domain_adwords",
        "expected_query": {"domain": "shopify.com"},
    },
]


def parse_response(result):
    assert result.content, "No content returned"
    return json.loads(result.content[0].text)


@pytest.mark.asyncio
async def test_list_tools(server, connect):
    async with connect(server) as client:
        response = await client.list_tools()

    tools = {tool.name: tool for tool in response.tools}
    assert sorted(tools) == ["semrush_domain", "semrush_keyword"]

    keyword_tool = tools["semrush_keyword"]
    assert keyword_tool.inputSchema["required"] == ["mode", "tool"]
    for name in ("research", "batch_keyword_overview", "domain_paid_keywords"):
        assert name in keyword_tool.description, f"{name} missing from description"

    description = keyword_tool.description
    assert "restrict_to_db (boolean, optional, default: false)" in description
    assert 'default: "us"' in description
    assert "one of: us, uk, ca" in description
    assert "(aliases: phrase)" in description
    assert 'example params: {"keyword": "seo tools"}' in description
    assert '"db": "uk", "restrict_to_db": true' in description

    print("✅ list_tools passed.")


@pytest.mark.asyncio
async def test_list_resources(server, connect):
    async with connect(server) as client:
        response = await client.list_resources()
    assert response.resources == []


@pytest.mark.asyncio
@pytest.mark.parametrize("test_config", TOOL_TESTS, ids=lambda c: c["tool"])
async def test_tool(server, connect, semrush_api, test_config):
    semrush_api.respond(test_config["report_type"], "Keyword;Value\nseo;1\n")

    async with connect(server) as client:
        result = await client.call_tool(
            f"semrush_{test_config['agent']}",
            {
                "mode": test_config["mode"],
                "tool": test_config["tool"],
                "params": test_config["params"],
            },
        )

    payload = parse_response(result)
    assert payload["success"], f"Tool {test_config['tool']} failed: {payload['error']}"
    assert payload["data"] == [{"Keyword": "seo", "Value": "1"}]

    query = semrush_api.last_params
    assert query["type"] == test_config["report_type"]
    for key, value in test_config["expected_query"].items():
        assert query[key] == value, f"Expected {key}={value}, got {query.get(key)}"

    print(f"✅ {test_config['tool']} passed.")


@pytest.mark.asyncio
async def test_wrong_mode_is_reported(server, connect, semrush_api):
    async with connect(server) as client:
        result = await client.call_tool(
            "semrush_domain",
            {"mode": "overview", "tool": "backlinks", "params": {"target": "moz.com"}},
        )

    payload = parse_response(result)
    assert not payload["success"]
    assert payload["error"]["kind"] == "wrong-mode"
    assert payload["error"]["correct_mode"] == "backlinks"
    assert "use mode: 'backlinks'" in payload["error"]["message"]
    assert semrush_api.requests == [], "No API call should be made"


@pytest.mark.asyncio
async def test_validation_errors_are_reported(server, connect):
    async with connect(server) as client:
        result = await client.call_tool(
            "semrush_keyword",
            {
                "mode": "overview",
                "tool": "batch_keyword_overview",
                "params": {"keywords": [f"kw {i}" for i in range(101)], "foo": 1},
            },
        )

    payload = parse_response(result)
    assert payload["error"]["kind"] == "validation"
    assert payload["error"]["errors"] == [
        "Invalid 'keywords': Provide between 1 and 100 keywords",
        "Unknown parameter: 'foo'",
    ]


@pytest.mark.asyncio
async def test_unknown_agent_and_tool_name(server, connect):
    async with connect(server) as client:
        unknown_agent = parse_response(
            await client.call_tool(
                "semrush_keywords", {"mode": "overview", "tool": "keyword_overview"}
            )
        )
        unknown_tool = parse_response(
            await client.call_tool("ahrefs_domain", {"mode": "overview", "tool": "x"})
        )

    assert unknown_agent["error"]["kind"] == "not-found"
    assert "Did you mean 'keyword'?" in unknown_agent["error"]["message"]
    assert unknown_tool["error"] == {
        "kind": "not-found",
        "message": "Unknown tool: ahrefs_domain",
    }


@pytest.mark.asyncio
async def test_api_errors_are_reported(server, connect, semrush_api):
    semrush_api.respond("domain_ranks", "rate limited", status_code=429)

    async with connect(server) as client:
        result = await client.call_tool(
            "semrush_domain",
            {"mode": "overview", "tool": "domain_ranks", "params": {"domain": "a.com"}},
        )

    payload = parse_response(result)
    assert payload["error"]["kind"] == "execution"
    assert payload["error"]["api_error_kind"] == "rate_limit"
    assert payload["error"]["status"] == 429


@pytest.mark.asyncio
async def test_missing_credentials(connect, monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "env")
    monkeypatch.delenv("SEMRUSH_API_KEY", raising=False)
    server = create_server("nobody")

    async with connect(server) as client:
        result = await client.call_tool(
            "semrush_domain",
            {"mode": "overview", "tool": "domain_ranks", "params": {"domain": "a.com"}},
        )

    payload = parse_response(result)
    assert payload["error"]["kind"] == "execution"
    assert "Semrush API key not found for user nobody" in payload["error"]["message"]


def test_initialization_options(server):
    options = get_initialization_options(server)
    assert options.server_name == "semrush-server"
    assert options.capabilities.tools is not None
