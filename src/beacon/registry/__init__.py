"""
Discovery registry client

This package provides:
1. RegistryClient: HTTP client for register / update / deregister
2. The request and response payloads exchanged with the registry
3. CallResult: explicit success/failure value returned by every call
"""

from .client import RegistryClient
from .models import (
    NODE_TYPE,
    CallResult,
    DiscoveryNode,
    DiscoveryTarget,
    PluginInfo,
    RegistrationInfo,
)

__all__ = [
    'NODE_TYPE',
    'CallResult',
    'DiscoveryNode',
    'DiscoveryTarget',
    'PluginInfo',
    'RegistrationInfo',
    'RegistryClient',
]
