import os
import logging
from typing import Optional

from src.auth.factory import create_auth_client

logger = logging.getLogger(__name__)


def authenticate_and_save_semrush_key(user_id: str, service_name: str) -> str:
    """Prompt for a Semrush API key and save it for the user"""
    logger.info("Starting Semrush authentication for user %s...", user_id)

    auth_client = create_auth_client()

    api_key = input("Please enter your Semrush API key: ").strip()

    if not api_key:
        raise ValueError("API key cannot be empty")

    auth_client.save_user_credentials(service_name, user_id, {"api_key": api_key})

    logger.info(
        "Semrush API key saved for user %s. You can now run the server.", user_id
    )
    return api_key


def get_semrush_credentials(
    user_id: str, service_name: str, api_key: Optional[str] = None
) -> str:
    """
    Resolve the Semrush API key for a user.

    An explicit ``api_key`` wins, then the configured credential store, then
    the SEMRUSH_API_KEY environment variable.
    """
    if api_key:
        return api_key

    auth_client = create_auth_client()
    credentials_data = auth_client.get_user_credentials(service_name, user_id)
    if credentials_data and credentials_data.get("api_key"):
        return credentials_data["api_key"]

    env_key = os.environ.get("SEMRUSH_API_KEY")
    if env_key:
        return env_key

    error_str = f"Semrush API key not found for user {user_id}."
    if os.environ.get("ENVIRONMENT", "local") == "local":
        error_str += " Please run authentication first."
    logger.error(error_str)
    raise ValueError(error_str)
