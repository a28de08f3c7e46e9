"""Public URL construction for uploaded objects.

Priority order:
    1. custom/CDN domain:  <domain>/<key>
    2. forced path style:  <scheme>://<host>/<bucket>/<key>
    3. virtual-hosted:     <scheme>://<bucket>.<host>/<key>
"""

from urllib.parse import urlsplit

from image_host.keys import strip_trailing_slash


def normalize_endpoint(endpoint: str) -> str:
    """Prepend ``https://`` to an endpoint that has no scheme."""
    if endpoint and not endpoint.startswith("http"):
        return f"https://{endpoint}"
    return endpoint


def domain_url(domain: str, key: str) -> str:
    return f"{strip_trailing_slash(domain)}/{key}"


def build_object_url(
    key: str,
    *,
    endpoint: str,
    bucket: str,
    custom_domain: str | None = None,
    force_path_style: bool = False,
) -> str:
    """Return the public URL of ``key`` in ``bucket``.

    Example:
        >>> build_object_url("k", endpoint="https://s3.amazonaws.com", bucket="b")
        'https://b.s3.amazonaws.com/k'
        >>> build_object_url("k", endpoint="https://s3.amazonaws.com", bucket="b", force_path_style=True)
        'https://s3.amazonaws.com/b/k'
    """
    if custom_domain:
        return domain_url(custom_domain, key)

    parts = urlsplit(normalize_endpoint(endpoint))
    if force_path_style:
        return f"{parts.scheme}://{parts.netloc}/{bucket}/{key}"
    return f"{parts.scheme}://{bucket}.{parts.netloc}/{key}"
