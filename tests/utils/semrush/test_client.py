import asyncio

import httpx
import pytest

from src.utils.semrush.client import RateLimiter, SemrushClient, parse_response
from src.utils.semrush.errors import SemrushApiError

DOMAIN_RANKS_CSV = (
    "Database;Domain;Rank;Organic Keywords\n"
    "us;semrush.com;1520;98765\n"
)


@pytest.mark.asyncio
async def test_domain_ranks_parses_csv(semrush_api, semrush_client):
    semrush_api.respond("domain_ranks", DOMAIN_RANKS_CSV)

    rows = await semrush_client.get_domain_ranks("semrush.com", "us", "Db,Dn,Rk,Or")

    assert rows == [
        {
            "Database": "us",
            "Domain": "semrush.com",
            "Rank": "1520",
            "Organic Keywords": "98765",
        }
    ]
    params = semrush_api.last_params
    assert params == {
        "type": "domain_ranks",
        "key": "test-key",
        "domain": "semrush.com",
        "database": "us",
        "export_columns": "Db,Dn,Rk,Or",
    }
    assert semrush_api.last_request.url.path == "/"


@pytest.mark.asyncio
async def test_backlinks_use_analytics_endpoint(semrush_api, semrush_client):
    semrush_api.respond("backlinks", "source_url;target_url\na.com/x;semrush.com\n")

    rows = await semrush_client.get_backlinks("semrush.com", 10)

    assert rows == [{"source_url": "a.com/x", "target_url": "semrush.com"}]
    assert semrush_api.last_request.url.path == "/analytics/v1/"
    assert semrush_api.last_params["target_type"] == "root_domain"
    assert semrush_api.last_params["display_limit"] == "10"

    await semrush_client.get_backlinks_refdomains("semrush.com/blog", 5)
    assert semrush_api.last_params["type"] == "backlinks_refdomains"
    assert semrush_api.last_params["target_type"] == "url"


@pytest.mark.asyncio
async def test_keyword_overview_report_types(semrush_api, semrush_client):
    await semrush_client.get_keyword_overview("seo", "us")
    assert semrush_api.last_params["type"] == "phrase_all"

    await semrush_client.get_keyword_overview("seo", "uk", restrict_to_db=True)
    assert semrush_api.last_params["type"] == "phrase_this"
    assert semrush_api.last_params["database"] == "uk"


@pytest.mark.asyncio
async def test_batch_keywords_joined_with_semicolons(semrush_api, semrush_client):
    await semrush_client.get_batch_keyword_overview(["seo", "sem"], "us")
    assert semrush_api.last_params["type"] == "phrase_these"
    assert semrush_api.last_params["phrase"] == "seo;sem"

    await semrush_client.get_keyword_difficulty(["seo", "ppc"], "de")
    assert semrush_api.last_params["type"] == "phrase_kdi"
    assert semrush_api.last_params["phrase"] == "seo;ppc"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method,report_type",
    [
        ("get_related_keywords", "phrase_related"),
        ("get_broad_match_keywords", "phrase_fullsearch"),
        ("get_phrase_questions", "phrase_questions"),
    ],
)
async def test_keyword_research_report_types(
    semrush_api, semrush_client, method, report_type
):
    await getattr(semrush_client, method)("seo", "us", 20)
    assert semrush_api.last_params["type"] == report_type
    assert semrush_api.last_params["phrase"] == "seo"
    assert semrush_api.last_params["display_limit"] == "20"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method,report_type",
    [
        ("get_domain_competitors", "domain_organic_organic"),
        ("get_domain_organic_keywords", "domain_organic"),
        ("get_domain_paid_keywords", "domain_adwords"),
    ],
)
async def test_domain_report_types(semrush_api, semrush_client, method, report_type):
    await getattr(semrush_client, method)("semrush.com", "us", 20)
    assert semrush_api.last_params["type"] == report_type
    assert semrush_api.last_params["domain"] == "semrush.com"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status,kind",
    [(401, "auth"), (403, "auth"), (400, "validation"), (429, "rate_limit"), (503, "server")],
)
async def test_http_errors_mapped_to_kinds(semrush_api, semrush_client, status, kind):
    semrush_api.respond("domain_ranks", "oops", status_code=status)

    with pytest.raises(SemrushApiError) as exc_info:
        await semrush_client.get_domain_ranks("semrush.com", "us", "Db")

    assert exc_info.value.kind == kind
    assert exc_info.value.status == status
    assert exc_info.value.endpoint == "domain_ranks"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body,kind,status",
    [
        ("ERROR 120 :: WRONG KEY - ID PAIR", "auth", 120),
        ("ERROR 132 :: API UNITS BALANCE IS ZERO", "rate_limit", 132),
        ("ERROR 429 :: TOO MANY REQUESTS", "rate_limit", 429),
        ("ERROR 70 :: SOMETHING ODD", "unknown", 70),
    ],
)
async def test_error_bodies_mapped_to_kinds(semrush_api, semrush_client, body, kind, status):
    semrush_api.respond("phrase_all", body)

    with pytest.raises(SemrushApiError) as exc_info:
        await semrush_client.get_keyword_overview("seo", "us")

    assert exc_info.value.kind == kind
    assert exc_info.value.status == status
    assert exc_info.value.message == body.split("::", 1)[1].strip()


@pytest.mark.asyncio
async def test_nothing_found_is_empty_result(semrush_api, semrush_client):
    semrush_api.respond("phrase_related", "ERROR 50 :: NOTHING FOUND")
    assert await semrush_client.get_related_keywords("zzqx", "us", 10) == []


@pytest.mark.asyncio
async def test_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = SemrushClient(
        "test-key",
        rate_limiter=RateLimiter(0),
        transport=httpx.MockTransport(handler),
    )
    with pytest.raises(SemrushApiError) as exc_info:
        await client.get_domain_ranks("semrush.com", "us", "Db")

    assert exc_info.value.kind == "network"
    assert exc_info.value.status is None


def test_api_key_required():
    with pytest.raises(ValueError, match="API key is required"):
        SemrushClient("")


def test_parse_response():
    assert parse_response("", "x") == []
    assert parse_response('{"total": 3}', "x") == {"total": 3}
    assert parse_response("A;B\n1;2\n\n3;4", "x") == [
        {"A": "1", "B": "2"},
        {"A": "3", "B": "4"},
    ]


def test_parse_response_errors():
    with pytest.raises(SemrushApiError) as exc_info:
        parse_response("A;B\n1;2;3", "domain_ranks")
    assert exc_info.value.kind == "parsing"

    with pytest.raises(SemrushApiError) as exc_info:
        parse_response("{not json", "domain_ranks")
    assert exc_info.value.kind == "parsing"


def test_readable_message():
    error = SemrushApiError("Denied", 401, "domain_ranks", "auth")
    message = error.readable_message()
    assert "Please check your API key" in message
    assert "Endpoint: domain_ranks" in message
    assert "Status: 401" in message
    assert SemrushApiError("x", kind="bogus").kind == "unknown"


@pytest.mark.asyncio
async def test_rate_limiter_paces_requests():
    clock = {"now": 100.0}
    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)
        clock["now"] += seconds

    limiter = RateLimiter(2, clock=lambda: clock["now"], sleep=fake_sleep)
    await limiter.acquire()
    await limiter.acquire()
    assert sleeps == []

    await limiter.acquire()
    assert sleeps == [1.0]


@pytest.mark.asyncio
async def test_disabled_rate_limiter_never_waits():
    limiter = RateLimiter(0)
    await asyncio.wait_for(
        asyncio.gather(*(limiter.acquire() for _ in range(50))), timeout=1
    )


@pytest.mark.asyncio
async def test_repeated_calls_are_served_from_cache(semrush_api):
    client = SemrushClient(
        "test-key",
        rate_limiter=RateLimiter(0),
        transport=httpx.MockTransport(semrush_api.handler),
        cache_ttl=60,
    )
    semrush_api.respond("domain_ranks", DOMAIN_RANKS_CSV)

    first = await client.get_domain_ranks("semrush.com", "us", "Db,Dn")
    first[0]["Rank"] = "mutated"
    second = await client.get_domain_ranks("semrush.com", "us", "Db,Dn")

    assert len(semrush_api.requests) == 1
    assert second[0]["Rank"] == "1520"

    await client.get_domain_ranks("semrush.com", "uk", "Db,Dn")
    assert len(semrush_api.requests) == 2


@pytest.mark.asyncio
async def test_errors_are_not_cached(semrush_api):
    client = SemrushClient(
        "test-key",
        rate_limiter=RateLimiter(0),
        transport=httpx.MockTransport(semrush_api.handler),
        cache_ttl=60,
    )
    semrush_api.respond("domain_ranks", "down", status_code=503)
    with pytest.raises(SemrushApiError):
        await client.get_domain_ranks("semrush.com", "us", "Db")

    semrush_api.respond("domain_ranks", DOMAIN_RANKS_CSV)
    rows = await client.get_domain_ranks("semrush.com", "us", "Db")
    assert rows[0]["Domain"] == "semrush.com"
    assert len(semrush_api.requests) == 2


@pytest.mark.asyncio
async def test_cache_disabled_with_zero_ttl(semrush_api):
    client = SemrushClient(
        "test-key",
        rate_limiter=RateLimiter(0),
        transport=httpx.MockTransport(semrush_api.handler),
        cache_ttl=0,
    )
    assert client.cache is None

    await client.get_keyword_overview("seo", "us")
    await client.get_keyword_overview("seo", "us")
    assert len(semrush_api.requests) == 2
