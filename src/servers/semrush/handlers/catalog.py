from src.utils.semrush.catalog import Catalog
from src.servers.semrush.handlers.domain import build_domain_agent
from src.servers.semrush.handlers.keyword import build_keyword_agent


def build_catalog() -> Catalog:
    """Build the catalog served by the Semrush MCP server"""
    catalog = Catalog()
    catalog.register_agent(build_domain_agent())
    catalog.register_agent(build_keyword_agent())
    return catalog
