from urllib.parse import urljoin


def resolve_uri(base: str, location: str) -> str:
    """Resolve a relative platform path against the base URL."""
    if location.startswith("http://") or location.startswith("https://"):
        return location
    if not base:
        return location
    return urljoin(base.rstrip("/") + "/", location.lstrip("/"))
