from typing import Any, Dict

from src.utils.semrush.catalog import AgentDefinition, ModeDefinition, ToolDefinition
from src.utils.semrush.client import SemrushClient
from src.utils.semrush.params import (
    database_param,
    domain_param,
    export_columns_param,
    limit_param,
    target_param,
)

AGENT_NAME = "domain"


async def handle_domain_ranks(client: SemrushClient, params: Dict[str, Any]):
    return await client.get_domain_ranks(
        params["domain"], params["database"], params["export_columns"]
    )


async def handle_domain_competitors(client: SemrushClient, params: Dict[str, Any]):
    return await client.get_domain_competitors(
        params["domain"], params["database"], params["limit"]
    )


async def handle_backlinks(client: SemrushClient, params: Dict[str, Any]):
    return await client.get_backlinks(params["target"], params["limit"])


async def handle_backlinks_refdomains(client: SemrushClient, params: Dict[str, Any]):
    return await client.get_backlinks_refdomains(params["target"], params["limit"])


def build_domain_agent() -> AgentDefinition:
    """Domain analysis: rankings, competitors and backlink profile"""
    overview = ModeDefinition(
        "overview",
        "Overall domain metrics: rank, organic and paid traffic, keyword counts",
        [
            ToolDefinition(
                "domain_ranks",
                "Get domain ranking and traffic metrics in a regional database",
                {
                    "domain": domain_param(),
                    "database": database_param(),
                    "export_columns": export_columns_param(),
                },
                examples=[
                    {"domain": "semrush.com"},
                    {"domain": "https://www.ahrefs.com/blog", "database": "uk"},
                ],
                handler=handle_domain_ranks,
            ),
        ],
    )

    competitors = ModeDefinition(
        "competitors",
        "Domains competing for the same organic keywords",
        [
            ToolDefinition(
                "domain_competitors",
                "Get organic search competitors of a domain",
                {
                    "domain": domain_param(),
                    "database": database_param(),
                    "limit": limit_param(),
                },
                examples=[
                    {"domain": "semrush.com", "limit": 10},
                    {"site": "moz.com", "db": "de"},
                ],
                handler=handle_domain_competitors,
            ),
        ],
    )

    backlinks = ModeDefinition(
        "backlinks",
        "Backlinks and referring domains pointing to a domain or URL",
        [
            ToolDefinition(
                "backlinks",
                "Get backlinks pointing to a domain or URL",
                {"target": target_param(), "limit": limit_param()},
                examples=[
                    {"target": "semrush.com"},
                    {"url": "https://ahrefs.com/blog/", "limit": 25},
                ],
                handler=handle_backlinks,
            ),
            ToolDefinition(
                "backlinks_refdomains",
                "Get domains linking to a domain or URL",
                {"target": target_param(), "limit": limit_param()},
                examples=[{"target": "semrush.com", "display_limit": 50}],
                handler=handle_backlinks_refdomains,
            ),
        ],
    )

    return AgentDefinition(
        AGENT_NAME,
        "Analyze domains: overview metrics, organic competitors and backlinks",
        [overview, competitors, backlinks],
    )
