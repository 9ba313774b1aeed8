from typing import Dict, Optional

import httpx

DEFAULT_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_8_3) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/27.0.1453.116 Safari/537.36"
)

ACCEPT = "application/json, text/javascript, */*; q=0.01"
REQUESTED_WITH = "XMLHttpRequest"
# compression off: the body must reach the caller exactly as sent
ACCEPT_ENCODING = "none"
ACCEPT_LANGUAGE = "en-US,en;q=0.8"


class HeaderPolicy:
    def __init__(self, agent: str = "", custom: Optional[Dict[str, str]] = None):
        """Fixed browser-like headers plus caller overrides.

        Args:
            agent: User-Agent to send. Empty means DEFAULT_AGENT.
            custom: Extra headers, applied after the fixed set so they always win.
        """
        self.agent = agent
        self.custom: Dict[str, str] = dict(custom or {})

    def set(self, name: str, value: str) -> None:
        self.custom[name] = value

    def remove(self, name: str) -> None:
        self.custom.pop(name, None)

    @property
    def user_agent(self) -> str:
        return self.agent or DEFAULT_AGENT

    def defaults(self, origin: str) -> Dict[str, str]:
        return {
            'Accept': ACCEPT,
            'Origin': origin,
            'X-Requested-With': REQUESTED_WITH,
            'User-Agent': self.user_agent,
            'Accept-Encoding': ACCEPT_ENCODING,
            'Accept-Language': ACCEPT_LANGUAGE,
        }

    def apply(self, request: httpx.Request, origin: str) -> None:
        for name, value in self.defaults(origin).items():
            request.headers[name] = value
        for name, value in self.custom.items():
            request.headers[name] = value
