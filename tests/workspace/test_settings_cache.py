import asyncio
from unittest.mock import AsyncMock

import pytest
from lsprotocol.types import (
    ConfigurationParams,
    DidCloseTextDocumentParams,
    TextDocumentIdentifier,
)

from fv1ls.workspace.settings_cache import (
    CONFIGURATION_SECTION,
    DEFAULT_MAX_NUMBER_OF_PROBLEMS,
    ServerSettings,
    SettingsCache,
)

URI = "file:///project/delay.spn"
OTHER_URI = "file:///project/chorus.spn"


class TestServerSettings:

    def test_defaults(self):
        assert ServerSettings().max_number_of_problems == DEFAULT_MAX_NUMBER_OF_PROBLEMS
        assert DEFAULT_MAX_NUMBER_OF_PROBLEMS == 100

    def test_from_dict(self):
        settings = ServerSettings.from_dict({"maxNumberOfProblems": 5})
        assert settings.max_number_of_problems == 5

    def test_unknown_keys_are_ignored(self):
        settings = ServerSettings.from_dict(
            {"maxNumberOfProblems": 3, "trace": {"server": "verbose"}, "other": 1}
        )
        assert settings == ServerSettings(max_number_of_problems=3)

    @pytest.mark.parametrize(
        "data",
        [None, [], "100", {}, {"maxNumberOfProblems": "many"},
         {"maxNumberOfProblems": None}, {"maxNumberOfProblems": True}],
    )
    def test_malformed_values_fall_back_to_default(self, data):
        assert ServerSettings.from_dict(data) == ServerSettings()

    def test_negative_limit_clamps_to_zero(self):
        assert ServerSettings.from_dict({"maxNumberOfProblems": -4}).max_number_of_problems == 0

    def test_float_limit_is_truncated(self):
        assert ServerSettings.from_dict({"maxNumberOfProblems": 2.9}).max_number_of_problems == 2


class TestGlobalSettings:

    @pytest.mark.asyncio
    async def test_get_returns_global_settings_without_fetching(self, server):
        cache = SettingsCache(server, per_resource=False)

        settings = await cache.get(URI)

        assert settings == ServerSettings()
        server.workspace_configuration_async.assert_not_called()
        assert not cache.is_cached(URI)

    @pytest.mark.asyncio
    async def test_update_global_reads_section(self, server):
        cache = SettingsCache(server, per_resource=False)

        cache.update_global({CONFIGURATION_SECTION: {"maxNumberOfProblems": 1}})

        assert (await cache.get(URI)).max_number_of_problems == 1
        assert (await cache.get(OTHER_URI)).max_number_of_problems == 1

    @pytest.mark.parametrize(
        "payload", [None, {}, {"someOtherServer": {"maxNumberOfProblems": 1}}, "x"]
    )
    def test_update_global_without_section_restores_defaults(self, server, payload):
        cache = SettingsCache(server, per_resource=False)
        cache.update_global({CONFIGURATION_SECTION: {"maxNumberOfProblems": 1}})

        cache.update_global(payload)

        assert cache.global_settings == ServerSettings()

    def test_invalidate_all_keeps_global_settings(self, server):
        cache = SettingsCache(server, per_resource=False)
        cache.update_global({CONFIGURATION_SECTION: {"maxNumberOfProblems": 7}})

        cache.invalidate_all()

        assert cache.global_settings.max_number_of_problems == 7


class TestPerResourceSettings:

    @pytest.fixture
    def cache(self, server):
        return SettingsCache(server, per_resource=True)

    @pytest.mark.asyncio
    async def test_get_fetches_scoped_configuration(self, cache, server):
        server.workspace_configuration_async.return_value = [{"maxNumberOfProblems": 12}]

        settings = await cache.get(URI)

        assert settings.max_number_of_problems == 12
        server.workspace_configuration_async.assert_called_once()
        params = server.workspace_configuration_async.call_args.args[0]
        assert isinstance(params, ConfigurationParams)
        assert len(params.items) == 1
        assert params.items[0].scope_uri == URI
        assert params.items[0].section == CONFIGURATION_SECTION

    @pytest.mark.asyncio
    async def test_empty_response_gives_defaults(self, cache, server):
        server.workspace_configuration_async.return_value = []

        assert await cache.get(URI) == ServerSettings()

    @pytest.mark.asyncio
    async def test_resolved_entry_is_reused(self, cache, server):
        await cache.get(URI)
        await cache.get(URI)

        assert server.workspace_configuration_async.call_count == 1
        assert cache.is_cached(URI)

    @pytest.mark.asyncio
    async def test_concurrent_gets_share_one_fetch(self, cache, server):
        release = asyncio.Event()

        async def slow_fetch(params):
            await release.wait()
            return [{"maxNumberOfProblems": 4}]

        server.workspace_configuration_async = AsyncMock(side_effect=slow_fetch)

        waiters = [asyncio.ensure_future(cache.get(URI)) for _ in range(3)]
        for _ in range(3):
            await asyncio.sleep(0)

        # Pending entry is cached before the editor answers.
        assert cache.is_cached(URI)
        assert server.workspace_configuration_async.call_count == 1

        release.set()
        results = await asyncio.gather(*waiters)

        assert [r.max_number_of_problems for r in results] == [4, 4, 4]
        assert server.workspace_configuration_async.call_count == 1

    @pytest.mark.asyncio
    async def test_each_resource_has_its_own_entry(self, cache, server):
        await cache.get(URI)
        await cache.get(OTHER_URI)

        assert server.workspace_configuration_async.call_count == 2
        assert sorted(cache.cached_uris) == sorted([URI, OTHER_URI])

    @pytest.mark.asyncio
    async def test_invalidate_all_causes_exactly_one_new_fetch(self, cache, server):
        await cache.get(URI)
        server.workspace_configuration_async.return_value = [{"maxNumberOfProblems": 2}]

        cache.invalidate_all()
        assert cache.cached_uris == []

        first, second = await asyncio.gather(cache.get(URI), cache.get(URI))

        assert first.max_number_of_problems == 2
        assert second.max_number_of_problems == 2
        assert server.workspace_configuration_async.call_count == 2

    @pytest.mark.asyncio
    async def test_forget_drops_only_one_entry(self, cache, server):
        await cache.get(URI)
        await cache.get(OTHER_URI)

        cache.forget(URI)

        assert not cache.is_cached(URI)
        assert cache.is_cached(OTHER_URI)

        await cache.get(URI)
        assert server.workspace_configuration_async.call_count == 3

    def test_forget_unknown_uri_is_noop(self, cache):
        cache.forget("file:///never/opened.spn")

    @pytest.mark.asyncio
    async def test_failed_fetch_propagates_and_is_evicted(self, cache, server):
        server.workspace_configuration_async.side_effect = RuntimeError("client error")

        with pytest.raises(RuntimeError, match="client error"):
            await cache.get(URI)

        assert not cache.is_cached(URI)

        server.workspace_configuration_async.side_effect = None
        server.workspace_configuration_async.return_value = [{"maxNumberOfProblems": 9}]

        assert (await cache.get(URI)).max_number_of_problems == 9
        assert server.workspace_configuration_async.call_count == 2

    @pytest.mark.asyncio
    async def test_close_hook_forgets_document(self, server):
        cache = server.settings_cache
        cache.per_resource = True
        await cache.get(URI)

        await server.text_sync_manager._broadcast_on_close(
            DidCloseTextDocumentParams(text_document=TextDocumentIdentifier(uri=URI))
        )

        assert not cache.is_cached(URI)
