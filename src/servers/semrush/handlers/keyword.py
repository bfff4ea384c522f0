from typing import Any, Dict

from src.utils.semrush.catalog import AgentDefinition, ModeDefinition, ToolDefinition
from src.utils.semrush.client import SemrushClient
from src.utils.semrush.params import (
    database_param,
    domain_param,
    keyword_param,
    keywords_array_param,
    limit_param,
    restrict_to_db_param,
)

AGENT_NAME = "keyword"


async def handle_keyword_overview(client: SemrushClient, params: Dict[str, Any]):
    return await client.get_keyword_overview(
        params["keyword"], params["database"], params["restrict_to_db"]
    )


async def handle_batch_keyword_overview(client: SemrushClient, params: Dict[str, Any]):
    return await client.get_batch_keyword_overview(
        params["keywords"], params["database"]
    )


async def handle_related_keywords(client: SemrushClient, params: Dict[str, Any]):
    return await client.get_related_keywords(
        params["keyword"], params["database"], params["limit"]
    )


async def handle_broad_match_keywords(client: SemrushClient, params: Dict[str, Any]):
    return await client.get_broad_match_keywords(
        params["keyword"], params["database"], params["limit"]
    )


async def handle_phrase_questions(client: SemrushClient, params: Dict[str, Any]):
    return await client.get_phrase_questions(
        params["keyword"], params["database"], params["limit"]
    )


async def handle_keyword_difficulty(client: SemrushClient, params: Dict[str, Any]):
    return await client.get_keyword_difficulty(params["keywords"], params["database"])


async def handle_domain_organic_keywords(client: SemrushClient, params: Dict[str, Any]):
    return await client.get_domain_organic_keywords(
        params["domain"], params["database"], params["limit"]
    )


async def handle_domain_paid_keywords(client: SemrushClient, params: Dict[str, Any]):
    return await client.get_domain_paid_keywords(
        params["domain"], params["database"], params["limit"]
    )


def _research_tool(name, description, handler, examples):
    return ToolDefinition(
        name,
        description,
        {
            "keyword": keyword_param(),
            "database": database_param(),
            "limit": limit_param(),
        },
        examples=examples,
        handler=handler,
    )


def _domain_keywords_tool(name, description, handler, examples):
    return ToolDefinition(
        name,
        description,
        {
            "domain": domain_param(),
            "database": database_param(),
            "limit": limit_param(),
        },
        examples=examples,
        handler=handler,
    )


def build_keyword_agent() -> AgentDefinition:
    """Keyword analysis: metrics, research and the keywords a domain ranks for"""
    overview = ModeDefinition(
        "overview",
        "Search volume, CPC, competition and difficulty for keywords",
        [
            ToolDefinition(
                "keyword_overview",
                "Get metrics for a single keyword, across all databases or one",
                {
                    "keyword": keyword_param(),
                    "database": database_param(),
                    "restrict_to_db": restrict_to_db_param(),
                },
                examples=[
                    {"keyword": "seo tools"},
                    {"phrase": "Digital Marketing", "db": "uk", "restrict_to_db": True},
                ],
                handler=handle_keyword_overview,
            ),
            ToolDefinition(
                "batch_keyword_overview",
                "Get metrics for up to 100 keywords in one database",
                {
                    "keywords": keywords_array_param(max_items=100),
                    "database": database_param(),
                },
                examples=[
                    {"keywords": ["seo", "content marketing"]},
                    {"phrases": "seo tools, keyword research", "database": "ca"},
                ],
                handler=handle_batch_keyword_overview,
            ),
        ],
    )

    research = ModeDefinition(
        "research",
        "Discover related keywords, broad matches, questions and difficulty",
        [
            _research_tool(
                "related_keywords",
                "Get keywords related to a phrase",
                handle_related_keywords,
                [{"keyword": "running shoes", "limit": 20}],
            ),
            _research_tool(
                "broad_match_keywords",
                "Get broad match variations of a phrase",
                handle_broad_match_keywords,
                [{"keyword": "coffee grinder", "database": "de"}],
            ),
            _research_tool(
                "phrase_questions",
                "Get question-form keywords containing a phrase",
                handle_phrase_questions,
                [{"phrase": "link building", "display_limit": 15}],
            ),
            ToolDefinition(
                "keyword_difficulty",
                "Get the difficulty index for up to 100 keywords",
                {
                    "keywords": keywords_array_param(max_items=100),
                    "database": database_param(),
                },
                examples=[{"keywords": ["seo", "backlinks", "serp features"]}],
                handler=handle_keyword_difficulty,
            ),
        ],
    )

    domain_keywords = ModeDefinition(
        "domain_keywords",
        "Keywords a domain ranks for in organic or paid search",
        [
            _domain_keywords_tool(
                "domain_organic_keywords",
                "Get organic keywords a domain ranks for",
                handle_domain_organic_keywords,
                [{"domain": "semrush.com", "limit": 50}],
            ),
            _domain_keywords_tool(
                "domain_paid_keywords",
                "Get keywords a domain bids on in paid search",
                handle_domain_paid_keywords,
                [{"site": "www.shopify.com", "db": "us"}],
            ),
        ],
    )

    return AgentDefinition(
        AGENT_NAME,
        "Research keywords: metrics, related phrases, difficulty and domain rankings",
        [overview, research, domain_keywords],
    )
