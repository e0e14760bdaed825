"""Host-app hooks for confirmed gestures.

An in-process host hands `on_tap`, `on_like`, `on_share`, ... straight to the
controller. Behind the WebSocket bridge the host app lives in another process,
so the same bindings are declared as HTTP endpoints instead:

    # hooks.yml
    like: http://localhost:3000/quote/favorite
    share:
      url: http://localhost:3000/quote/share
      method: PUT

Each confirmed outcome is sent once, as the JSON body of a single request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx
import yaml

from gesture_menu.config import ConfigError
from gesture_menu.controller import GestureOutcome, OutcomeKind

logger = logging.getLogger("gesture_menu.hooks")

# Outcomes that carry a host callback; dismissed/discarded/cancelled never do
BINDABLE = (
    OutcomeKind.TAP,
    OutcomeKind.DOUBLE_TAP,
    OutcomeKind.LIKE,
    OutcomeKind.SHARE,
    OutcomeKind.COLLECT,
)


@dataclass(frozen=True)
class HostHook:
    url: str
    method: str = "POST"

    @classmethod
    def parse(cls, value) -> HostHook:
        """Accept a bare URL or a `{url, method}` mapping."""
        if isinstance(value, str) and value:
            return cls(url=value)
        if isinstance(value, dict) and value.get("url"):
            return cls(url=str(value["url"]), method=str(value.get("method", "POST")).upper())
        raise ConfigError(f"hook must be a URL or a mapping with 'url', got {value!r}")

    def to_dict(self) -> dict:
        return {"url": self.url, "method": self.method}


class HostHooks:
    """Forwards confirmed outcomes to the host app's endpoints.

    Usage:
        hooks = HostHooks.from_yaml("hooks.yml")
        await hooks.dispatch(outcome)  # once per resolved outcome
        await hooks.aclose()
    """

    def __init__(
        self,
        bindings: dict[OutcomeKind, HostHook],
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 5.0,
    ):
        self.bindings = dict(bindings)
        self._client = client
        self._timeout = timeout
        self.sent = 0
        self.failures = 0

    @classmethod
    def from_dict(cls, data: dict, client: Optional[httpx.AsyncClient] = None) -> HostHooks:
        bindings = {}
        for name, value in data.items():
            try:
                kind = OutcomeKind(name)
            except ValueError:
                raise ConfigError(f"unknown outcome {name!r}") from None
            if kind not in BINDABLE:
                raise ConfigError(f"{name} has no host callback to bind")
            bindings[kind] = HostHook.parse(value)
        return cls(bindings, client=client)

    @classmethod
    def from_yaml(cls, path: str | Path, client: Optional[httpx.AsyncClient] = None) -> HostHooks:
        path = Path(path)
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigError(f"cannot read {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"invalid YAML in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"{path} must map outcome names to hooks")

        hooks = cls.from_dict(data, client=client)
        logger.info("Loaded %d host hooks from %s", len(hooks.bindings), path)
        return hooks

    def to_dict(self) -> dict:
        return {kind.value: hook.to_dict() for kind, hook in self.bindings.items()}

    async def dispatch(self, outcome: GestureOutcome) -> Optional[bool]:
        """Call the hook bound to `outcome`. None when nothing is bound."""
        hook = self.bindings.get(outcome.kind)
        if hook is None:
            return None

        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)

        try:
            resp = await self._client.request(hook.method, hook.url, json=outcome.to_dict())
            resp.raise_for_status()
        except httpx.HTTPError as e:
            self.failures += 1
            logger.warning("Hook %s %s failed: %s", hook.method, hook.url, e)
            return False

        self.sent += 1
        logger.debug("Hook %s -> %s %s (%d)", outcome.kind.value, hook.method, hook.url, resp.status_code)
        return True

    async def aclose(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None
