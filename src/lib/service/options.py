from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Tuple

from src.config.defaults import DEFAULT_RESPONSE_TYPES, SERVICE_CONFIG, load_service_config


@dataclass(frozen=True)
class ClientOptions:
    app_key: str | None = None
    persist: bool = False
    response_types: Tuple[str, ...] = DEFAULT_RESPONSE_TYPES
    request_options: Dict[str, Any] = field(default_factory=dict)
    base_url: str = SERVICE_CONFIG["url"]
    timeout: float = SERVICE_CONFIG["timeout"]

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "ClientOptions":
        if data is None:
            return cls()
        response_types = data.get("response_types", data.get("responseType"))
        return cls(
            app_key=data.get("app_key", data.get("appKey")),
            persist=bool(data.get("persist", False)),
            response_types=tuple(response_types) if response_types else DEFAULT_RESPONSE_TYPES,
            request_options=dict(data.get("request_options", data.get("options")) or {}),
            base_url=str(data.get("base_url") or SERVICE_CONFIG["url"]).rstrip("/"),
            timeout=float(data.get("timeout", SERVICE_CONFIG["timeout"])),
        )

    @classmethod
    def from_env(cls) -> "ClientOptions":
        config = load_service_config()
        return cls(
            app_key=config["app_key"],
            persist=bool(config["persist"]),
            base_url=str(config["url"]),
            timeout=float(config["timeout"]),
        )

    def update(self, **overrides: Any) -> "ClientOptions":
        merged = self.as_dict()
        merged.update({key: value for key, value in overrides.items() if value is not None})
        return ClientOptions.from_mapping(merged)

    def as_dict(self) -> dict[str, Any]:
        return {
            "app_key": self.app_key,
            "persist": self.persist,
            "response_types": list(self.response_types),
            "request_options": dict(self.request_options),
            "base_url": self.base_url,
            "timeout": self.timeout,
        }


__all__ = ["ClientOptions"]
