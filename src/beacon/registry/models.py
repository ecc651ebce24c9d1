"""Payloads exchanged with the discovery registry."""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Optional, TypeVar

from ..errors import ProtocolError, RegistryCallError


NODE_TYPE = "JVM"

T = TypeVar("T")


@dataclass
class RegistrationInfo:
    """Body of a register call. Built fresh for every attempt."""
    realm: str
    callback: str

    @classmethod
    def create(cls, prefix: str, callback: str) -> 'RegistrationInfo':
        """Build a request whose realm carries a random suffix."""
        return cls(realm=f"{prefix}-{uuid.uuid4()}", callback=callback)

    def to_dict(self) -> Dict[str, Any]:
        return {"realm": self.realm, "callback": self.callback}


@dataclass
class PluginInfo:
    """Identity assigned by the registry to a successful registration."""
    id: str
    token: Optional[str] = None

    @classmethod
    def from_response(cls, data: Any) -> 'PluginInfo':
        """Extract the plugin from a ``{"data": {"result": {...}}}`` envelope."""
        try:
            result = data["data"]["result"]
            plugin_id = result["id"]
        except (KeyError, TypeError):
            raise ProtocolError("register response has no data.result.id") from None
        if not plugin_id:
            raise ProtocolError("register response has an empty plugin id")
        token = result.get("token")
        return cls(id=str(plugin_id), token=str(token) if token is not None else None)


@dataclass
class DiscoveryTarget:
    connect_url: str
    alias: str

    def to_dict(self) -> Dict[str, Any]:
        return {"connectUrl": self.connect_url, "alias": self.alias}


@dataclass
class DiscoveryNode:
    """Descriptor published to the registry after registering."""
    node_id: str
    target: DiscoveryTarget
    node_type: str = NODE_TYPE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.node_id,
            "nodeType": self.node_type,
            "target": self.target.to_dict(),
        }


@dataclass
class CallResult(Generic[T]):
    """Outcome of a registry call: a value on success, an error otherwise."""
    value: Optional[T] = None
    error: Optional[RegistryCallError] = field(default=None)

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> 'CallResult[T]':
        return cls(value=value)

    @classmethod
    def failure(cls, error: RegistryCallError) -> 'CallResult[T]':
        return cls(error=error)
