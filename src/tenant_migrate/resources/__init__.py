"""Resource clients: the capability the migration engine is written against."""

from .base import ResourceClient
from .http import HttpResourceClient
from .memory import InMemoryResourceClient

__all__ = ['ResourceClient', 'HttpResourceClient', 'InMemoryResourceClient']
