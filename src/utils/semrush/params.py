from typing import Any

from src.utils.semrush.schema import (
    ARRAY,
    BOOLEAN,
    INTEGER,
    STRING,
    ParameterSchema,
    chain,
    each,
    format_domain,
    format_target,
    lowercase,
    split_string_to_array,
)

DATABASES = [
    "us",
    "uk",
    "ca",
    "au",
    "de",
    "fr",
    "es",
    "it",
    "br",
    "ru",
    "jp",
    "in",
    "cn",
]

DOMAIN_PATTERN = r"^([a-zA-Z0-9]([a-zA-Z0-9\-]{0,61}[a-zA-Z0-9])?\.)+[a-zA-Z]{2,}$"
KEYWORD_PATTERN = r"^[\w\s\-'\",.!?]+$"

KEYWORD_MAX_LENGTH = 80

DOMAIN_RANKS_COLUMNS = "Db,Dn,Rk,Or,Ot,Oc,Ad,At,Ac,Sh,Sv"


def string_param(description: str, required: bool = False, **options: Any):
    return ParameterSchema(STRING, description, required, **options)


def integer_param(description: str, required: bool = False, **options: Any):
    return ParameterSchema(INTEGER, description, required, **options)


def boolean_param(description: str, required: bool = False, **options: Any):
    return ParameterSchema(BOOLEAN, description, required, **options)


def array_param(
    description: str, items: str = STRING, required: bool = False, **options: Any
):
    return ParameterSchema(ARRAY, description, required, items=items, **options)


def _validate_keyword(value: str):
    if not value.strip():
        return "Keyword cannot be empty"
    if "  " in value:
        return "Keyword cannot contain multiple consecutive spaces"
    if any(char in value for char in "<>{}[]\\|@#$%^&*_+="):
        return "Keyword contains unsupported special characters"
    return True


def _validate_keyword_list(value: list):
    if len(set(value)) != len(value):
        return "Duplicate keywords are not allowed"
    too_long = [k for k in value if len(k) > KEYWORD_MAX_LENGTH]
    if too_long:
        return f"Each keyword must be at most {KEYWORD_MAX_LENGTH} characters long"
    return True


def domain_param(required: bool = True, **options: Any):
    """Bare domain such as ``example.com``; URLs are reduced to their host"""
    params = {
        "aliases": ["site"],
        "transform": format_domain,
        "pattern": DOMAIN_PATTERN,
    }
    params.update(options)
    return string_param(
        'Domain name to analyze (e.g., "semrush.com", "ahrefs.com"). Do not include '
        "http:// or https:// prefixes, www. is optional. Must be a single domain "
        'string, not an array. For domain tools, use this parameter instead of "keyword".',
        required,
        **params,
    )


def target_param(required: bool = True, **options: Any):
    """Backlinks target: a domain, or a domain with a path"""
    params = {"aliases": ["url"], "transform": format_target, "min_length": 3}
    params.update(options)
    return string_param(
        'Domain or URL to analyze for backlinks (e.g., "semrush.com", '
        '"ahrefs.com/blog"). Can be a full domain or a specific URL path.',
        required,
        **params,
    )


def keyword_param(required: bool = True, **options: Any):
    params = {
        "aliases": ["phrase"],
        "transform": lowercase,
        "min_length": 2,
        "max_length": KEYWORD_MAX_LENGTH,
        "pattern": KEYWORD_PATTERN,
        "validate": _validate_keyword,
        "error_messages": {
            "type": "Keyword must be a text string",
            "length": f"Keyword must be between 2 and {KEYWORD_MAX_LENGTH} characters",
            "pattern": "Keyword contains invalid characters",
        },
    }
    params.update(options)
    return string_param(
        'Keyword or phrase to analyze (e.g., "digital marketing", "seo tools"). '
        "Must be a single string, not an array. Use specific, targeted phrases "
        "and avoid special characters.",
        required,
        **params,
    )


def keywords_array_param(max_items: int = 100, required: bool = True, **options: Any):
    params = {
        "aliases": ["phrases"],
        "transform": chain(split_string_to_array, each(lowercase)),
        "min_items": 1,
        "max_items": max_items,
        "validate": _validate_keyword_list,
        "error_messages": {
            "type": "Keywords must be provided as an array or comma-separated string",
            "length": f"Provide between 1 and {max_items} keywords",
        },
    }
    params.update(options)
    return array_param(
        f"Array of keywords to analyze (maximum {max_items}), e.g. "
        '["keyword1", "keyword2"]. A comma or semicolon separated string is '
        "also accepted.",
        STRING,
        required,
        **params,
    )


def domains_array_param(max_items: int = 5, required: bool = True, **options: Any):
    params = {
        "transform": chain(split_string_to_array, each(format_domain)),
        "min_items": 1,
        "max_items": max_items,
    }
    params.update(options)
    return array_param(
        f"Array of domains to analyze (maximum {max_items}), e.g. "
        '["example.com", "example.org"]. Each domain is formatted without '
        "http/https prefixes.",
        STRING,
        required,
        **params,
    )


def database_param(required: bool = False, **options: Any):
    """Regional database; optional databases default to ``us``"""
    params = {
        "aliases": ["db"],
        "transform": lowercase,
        "enum": DATABASES,
    }
    if not required:
        params["default"] = "us"
    params.update(options)
    return string_param(
        "Database to use (country code). Specifies which regional database to "
        'query. Default is "us" if not specified.',
        required,
        **params,
    )


def limit_param(
    required: bool = False, maximum: int = 1000, default: int = 100, **options: Any
):
    params = {
        "aliases": ["display_limit"],
        "minimum": 1,
        "maximum": maximum,
        "default": default,
    }
    params.update(options)
    return integer_param(
        f"Maximum number of results to return (range: 1-{maximum}). "
        f"Defaults to {default}.",
        required,
        **params,
    )


def restrict_to_db_param(required: bool = False, **options: Any):
    params = {"default": False}
    params.update(options)
    return boolean_param(
        "Search in a single database only. When true, only the specified "
        "database is searched; when false, results may come from all databases.",
        required,
        **params,
    )


def export_columns_param(
    default: str = DOMAIN_RANKS_COLUMNS, required: bool = False, **options: Any
):
    params = {
        "default": default,
        "pattern": r"^[A-Za-z]{2}(,[A-Za-z]{2})*$",
        "transform": lambda value: value.replace(" ", "") if isinstance(value, str) else value,
    }
    params.update(options)
    return string_param(
        "Comma separated Semrush column codes to export (e.g. \"Db,Dn,Rk,Or\"). "
        "Optional; a sensible default is used.",
        required,
        **params,
    )
