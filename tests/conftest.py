import httpx
import pytest

from src.utils.semrush.client import RateLimiter, SemrushClient


class FakeSemrushApi:
    """Records requests and answers with canned bodies keyed by report type"""

    def __init__(self):
        self.requests = []
        self.responses = {}

    def respond(self, report_type, body, status_code=200):
        self.responses[report_type] = (status_code, body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        report_type = request.url.params.get("type")
        status_code, body = self.responses.get(report_type, (200, ""))
        return httpx.Response(status_code, text=body)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    @property
    def last_params(self) -> dict:
        return dict(self.last_request.url.params)


@pytest.fixture
def semrush_api():
    return FakeSemrushApi()


@pytest.fixture
def semrush_client(semrush_api):
    return SemrushClient(
        "test-key",
        base_url="https://api.semrush.test",
        rate_limiter=RateLimiter(0),
        transport=httpx.MockTransport(semrush_api.handler),
    )
