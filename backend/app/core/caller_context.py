"""
Explicit identity of the caller of a quiz engine operation.

Every engine entry point takes a CallerContext instead of looking the user up
from ambient request state. The FastAPI dependency that builds it lives in
app.core.auth; tests construct it directly.
"""
import re
from dataclasses import dataclass
from typing import Optional

_MOBILE_UA = re.compile(r"mobile|android|iphone|ipad", re.IGNORECASE)
_MAX_USER_AGENT_LENGTH = 255


def device_type_from_user_agent(user_agent: Optional[str]) -> str:
    """Classify a User-Agent as "mobile" or "desktop"."""
    if user_agent and _MOBILE_UA.search(user_agent):
        return "mobile"
    return "desktop"


@dataclass(frozen=True)
class CallerContext:
    """Authenticated caller plus the request metadata recorded on sessions."""

    user_id: int
    user_agent: Optional[str] = None
    client_ip: Optional[str] = None

    @property
    def device_type(self) -> str:
        return device_type_from_user_agent(self.user_agent)

    @property
    def browser(self) -> Optional[str]:
        if not self.user_agent:
            return None
        return self.user_agent[:_MAX_USER_AGENT_LENGTH]
