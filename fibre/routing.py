from urllib.parse import urlsplit

from .config import ProxyOverride

# Prefix substitution for proxied paths

def rewrite_path(path: str, override: ProxyOverride) -> str:
    if not override.enabled or not path.startswith(override.match):
        return path
    suffix = path[len(override.match):]
    return override.path + suffix


def split_upstream(target: str) -> tuple[str, str]:
    parts = urlsplit(target)
    return parts.scheme, parts.netloc
