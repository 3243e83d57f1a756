from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol


class RegistrySearchPort(Protocol):
    def search(self, name: str, postal_code: str) -> List[Dict[str, Any]]:
        ...


class GeoLabelPort(Protocol):
    def department(self, code: Optional[str]) -> Dict[str, str]:
        ...

    def region(self, code: Optional[str]) -> Dict[str, str]:
        ...
