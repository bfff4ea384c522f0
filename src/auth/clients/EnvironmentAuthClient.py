import os
import logging
from typing import Any, Dict, Optional

from .BaseAuthClient import BaseAuthClient

logger = logging.getLogger("EnvironmentAuthClient")


class EnvironmentAuthClient(BaseAuthClient[Dict[str, Any]]):
    """
    Read-only credential store backed by environment variables.

    The key for a service is read from ``<SERVICE>_API_KEY`` (for example
    SEMRUSH_API_KEY) and is shared by every user.
    """

    def __init__(self, environ: Optional[Dict[str, str]] = None):
        self.environ = os.environ if environ is None else environ

    def get_user_credentials(
        self, service_name: str, user_id: str
    ) -> Optional[Dict[str, Any]]:
        variable = f"{service_name.upper()}_API_KEY"
        api_key = self.environ.get(variable)
        if not api_key:
            logger.debug(f"{variable} is not set")
            return None
        return {"api_key": api_key}
