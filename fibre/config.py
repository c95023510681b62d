from pathlib import Path
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProxyOverride(BaseModel):
    model_config = ConfigDict(frozen=True)

    match: str = ''
    path: str = ''

    @property
    def enabled(self) -> bool:
        return bool(self.match) and bool(self.path)


class ProxyRule(BaseModel):
    """
    A single reverse-proxy route.

    ``path`` is the inbound route pattern (Starlette syntax, e.g.
    ``/api/v2/{rest:path}``), ``host`` the upstream target as
    ``scheme://host[:port]``.
    """
    model_config = ConfigDict(frozen=True)

    path: str
    host: str
    override: ProxyOverride = Field(default_factory=ProxyOverride)
    # upstream TLS certificates are not verified unless this is switched off
    trust_upstream_blindly: bool = True

    @field_validator('host')
    @classmethod
    def host_has_scheme_and_netloc(cls, value: str) -> str:
        parts = urlsplit(value)
        if not parts.scheme or not parts.netloc:
            raise ValueError(f'upstream target {value!r} needs a scheme and a host')
        return value


class ServiceConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    instance: str
    address: str = '127.0.0.1:8080'
    api_key: str | None = None
    web_root: Path = Path('web')
    proxies: list[ProxyRule] = Field(default_factory=list)

    @field_validator('address')
    @classmethod
    def address_has_port(cls, value: str) -> str:
        host, sep, port = value.rpartition(':')
        if not sep or not port.isdigit():
            raise ValueError(f'address {value!r} must be host:port')
        return value

    @property
    def host(self) -> str:
        return self.address.rpartition(':')[0] or '0.0.0.0'

    @property
    def port(self) -> int:
        return int(self.address.rpartition(':')[2])
