from __future__ import annotations
from typing import Any, Dict, Optional
from .base_client import BaseClient
from .config import ClientConfig
from .request import ApiRequest
from .transport import CancelSignal

# Supported resources
ACCOUNT = 'account'
BROKER = 'broker'
CHECK = 'check'
CHECK_BUNDLE = 'checkbundle'
CONTACT_GROUP = 'contact_group'
GRAPH = 'graph'
RULE_SET = 'rule_set'
RULE_SET_GROUP = 'rule_set_group'
TEMPLATE = 'template'
USER = 'user'


class CirconusClient(BaseClient):
    """Circonus API v2 client (add/edit/delete/get/list on any resource)."""

    @classmethod
    def from_env(cls, transport: Any = None) -> 'CirconusClient':
        return cls(ClientConfig.from_env(), transport=transport)

    def add(self, resource: str, data: Any, params: Optional[Dict[str, str]] = None,
            cancel: Optional[CancelSignal] = None) -> Any:
        return self.send(ApiRequest('POST', resource, data, params or {}), cancel=cancel)

    def edit(self, resource: str, id: str, data: Any, cancel: Optional[CancelSignal] = None) -> Any:
        return self.send(ApiRequest('PUT', f"{resource}/{id}", data), cancel=cancel)

    def delete(self, resource: str, id: str, data: Any = None, cancel: Optional[CancelSignal] = None) -> Any:
        return self.send(ApiRequest('DELETE', f"{resource}/{id}", data), cancel=cancel)

    def get(self, resource: str, id: str, params: Optional[Dict[str, str]] = None,
            cancel: Optional[CancelSignal] = None) -> Any:
        return self.send(ApiRequest('GET', f"{resource}/{id}", params=params or {}), cancel=cancel)

    def list(self, resource: str, params: Optional[Dict[str, str]] = None, cancel: Optional[CancelSignal] = None) -> Any:
        return self.send(ApiRequest('GET', resource, params=params or {}), cancel=cancel)
