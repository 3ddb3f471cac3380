"""Registry of resource kinds handled by the migration engine."""

from typing import Dict, Iterable, List, Optional

from ..api.client import CheckoutClient
from ..config.config import Config
from ..resources.base import ResourceClient
from ..resources.http import HttpResourceClient
from .exceptions import UnknownResourceKindError


class ResourceRegistry:
    """Ordered mapping of resource kind to its client.

    Registration order is the order kinds are detected, planned and reported.
    """

    def __init__(self, clients: Optional[Dict[str, ResourceClient]] = None):
        self._clients: Dict[str, ResourceClient] = {}
        for kind, client in (clients or {}).items():
            self.register(kind, client)

    def register(self, kind: str, client: ResourceClient) -> None:
        if not kind:
            raise ValueError('Resource kind must not be empty')
        if kind in self._clients:
            raise ValueError(f'Resource kind already registered: {kind}')
        self._clients[kind] = client

    def get(self, kind: str) -> ResourceClient:
        try:
            return self._clients[kind]
        except KeyError:
            raise UnknownResourceKindError(kind, self._clients) from None

    @property
    def kinds(self) -> List[str]:
        return list(self._clients)

    def resolve(self, kinds: Optional[Iterable[str]] = None) -> List[str]:
        """Validate requested kinds and return them in registration order.

        Raises:
            UnknownResourceKindError: If any requested kind is not registered
        """
        if kinds is None:
            return self.kinds

        requested = list(kinds)
        for kind in requested:
            if kind not in self._clients:
                raise UnknownResourceKindError(kind, self._clients)
        return [kind for kind in self._clients if kind in requested]

    def __contains__(self, kind: str) -> bool:
        return kind in self._clients

    def __len__(self) -> int:
        return len(self._clients)

    @classmethod
    def from_config(cls, config: Config, client: CheckoutClient) -> 'ResourceRegistry':
        """Build one HTTP resource client per configured kind."""
        registry = cls()
        for kind, kind_config in config.migration.kinds.items():
            registry.register(kind, HttpResourceClient(client, kind, kind_config.endpoint))
        return registry
