"""
Client IP extraction for interaction audit records.

Only headers set by the hosting proxy are trusted. X-Forwarded-For and
X-Real-IP can be injected by clients and are ignored.
"""

from fastapi import Request


def get_secure_client_ip(request: Request) -> str:
    """
    Extract the client IP address from a request.

    Priority:
    1. X-Envoy-External-Address (set by the edge proxy, not spoofable)
    2. request.client.host (direct connection, local development)
    3. "unknown"
    """
    envoy_ip = request.headers.get("X-Envoy-External-Address")
    if envoy_ip:
        return envoy_ip.split(",")[0].strip()

    if request.client:
        return request.client.host

    return "unknown"
