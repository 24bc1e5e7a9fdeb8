from __future__ import annotations
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping


@dataclass(frozen=True)
class ApiRequest:
    """One logical call against the API, independent of how many attempts it takes."""
    method: str
    resource: str
    data: Any = None
    params: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'method', self.method.upper())
        object.__setattr__(self, 'params', MappingProxyType({str(k): str(v) for k, v in (self.params or {}).items()}))
