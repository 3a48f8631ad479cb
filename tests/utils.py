from __future__ import annotations

import socket

TENANT_ID = "tenant-1"
OTHER_TENANT_ID = "tenant-2"


def make_headers(tenant_id: str = TENANT_ID) -> dict[str, str]:
    return {"X-Tenant-Id": tenant_id}


def unused_port_url(path: str = "/hook") -> str:
    """URL on a local port nothing listens on (connection refused)."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    return f"http://127.0.0.1:{port}{path}"
