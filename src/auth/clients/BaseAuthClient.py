import abc
from typing import Dict, Any, Optional, TypeVar, Generic

# Generic type to represent any type of credentials object
CredentialsT = TypeVar("CredentialsT")


class BaseAuthClient(Generic[CredentialsT], abc.ABC):
    """
    Abstract base class for credential stores.
    The Semrush server only needs an API key per user, but stores may hold
    any JSON serializable credentials object.
    """

    @abc.abstractmethod
    def get_user_credentials(
        self, service_name: str, user_id: str
    ) -> Optional[CredentialsT]:
        """
        Retrieves stored credentials for a user

        Args:
            service_name: Name of the service (e.g., "semrush")
            user_id: Identifier for the user

        Returns:
            Credentials object if found, None otherwise
        """
        pass

    def save_user_credentials(
        self, service_name: str, user_id: str, credentials: CredentialsT
    ) -> None:
        """
        Saves user credentials after authentication

        Args:
            service_name: Name of the service (e.g., "semrush")
            user_id: Identifier for the user
            credentials: Credentials object to save
        """
        raise NotImplementedError(
            f"{type(self).__name__} does not support saving credentials"
        )

    def credentials_from_dict(self, data: Dict[str, Any]) -> CredentialsT:
        return data
