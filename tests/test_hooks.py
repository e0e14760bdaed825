"""Tests for host-app hooks."""

import asyncio
import json

import httpx
import pytest
import yaml

from gesture_menu.config import ConfigError
from gesture_menu.controller import GestureOutcome, OutcomeKind
from gesture_menu.hooks import HostHook, HostHooks


def outcome(kind):
    return GestureOutcome(
        kind=kind,
        pointer_id=0,
        start_position=(500.0, 1000.0),
        down_time=1000.0,
        end_time=1600.0,
        center_angle=274.4,
        drag=(0.0, -80.0),
    )


def mock_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def dispatch_all(hooks, kinds):
    async def scenario():
        try:
            return [await hooks.dispatch(outcome(k)) for k in kinds]
        finally:
            await hooks.aclose()

    return asyncio.run(scenario())


class TestHostHook:
    def test_bare_url(self):
        assert HostHook.parse("http://host/like") == HostHook("http://host/like", "POST")

    def test_mapping(self):
        hook = HostHook.parse({"url": "http://host/share", "method": "put"})
        assert hook.method == "PUT"

    @pytest.mark.parametrize("value", ["", None, 42, {"method": "POST"}])
    def test_rejects_malformed(self, value):
        with pytest.raises(ConfigError):
            HostHook.parse(value)


class TestBindings:
    def test_from_dict(self):
        hooks = HostHooks.from_dict({
            "like": "http://host/like",
            "collect": {"url": "http://host/collect", "method": "PUT"},
        })
        assert set(hooks.bindings) == {OutcomeKind.LIKE, OutcomeKind.COLLECT}
        assert hooks.to_dict()["collect"] == {"url": "http://host/collect", "method": "PUT"}

    @pytest.mark.parametrize("name", ["dismissed", "discarded", "cancelled"])
    def test_outcomes_without_callback_rejected(self, name):
        with pytest.raises(ConfigError):
            HostHooks.from_dict({name: "http://host/x"})

    def test_unknown_outcome(self):
        with pytest.raises(ConfigError):
            HostHooks.from_dict({"wave": "http://host/x"})

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "hooks.yml"
        path.write_text(yaml.safe_dump({"share": "http://host/share"}))
        assert list(HostHooks.from_yaml(path).bindings) == [OutcomeKind.SHARE]

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "hooks.yml"
        path.write_text("")
        assert HostHooks.from_yaml(path).bindings == {}

    def test_yaml_errors(self, tmp_path):
        with pytest.raises(ConfigError):
            HostHooks.from_yaml(tmp_path / "missing.yml")

        path = tmp_path / "list.yml"
        path.write_text("- http://host/like\n")
        with pytest.raises(ConfigError):
            HostHooks.from_yaml(path)


class TestDispatch:
    def test_sends_outcome_to_bound_endpoint(self):
        seen = []

        def handler(request):
            seen.append((request.method, str(request.url), json.loads(request.content)))
            return httpx.Response(204)

        hooks = HostHooks(
            {OutcomeKind.LIKE: HostHook("http://host/like", "PUT")},
            client=mock_client(handler),
        )
        assert dispatch_all(hooks, [OutcomeKind.LIKE]) == [True]

        method, url, body = seen[0]
        assert (method, url) == ("PUT", "http://host/like")
        assert body["outcome"] == "like"
        assert body["drag"] == [0.0, -80.0]
        assert hooks.sent == 1

    def test_unbound_outcome_is_skipped(self):
        seen = []
        hooks = HostHooks(
            {OutcomeKind.LIKE: HostHook("http://host/like")},
            client=mock_client(lambda r: seen.append(r) or httpx.Response(200)),
        )
        assert dispatch_all(hooks, [OutcomeKind.TAP, OutcomeKind.DISMISSED]) == [None, None]
        assert seen == []

    def test_error_status_counts_as_failure(self):
        hooks = HostHooks(
            {OutcomeKind.SHARE: HostHook("http://host/share")},
            client=mock_client(lambda r: httpx.Response(503)),
        )
        assert dispatch_all(hooks, [OutcomeKind.SHARE]) == [False]
        assert hooks.failures == 1
        assert hooks.sent == 0

    def test_connection_error_does_not_raise(self):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        hooks = HostHooks(
            {OutcomeKind.COLLECT: HostHook("http://host/collect")},
            client=mock_client(refuse),
        )
        assert dispatch_all(hooks, [OutcomeKind.COLLECT, OutcomeKind.COLLECT]) == [False, False]
        assert hooks.failures == 2
