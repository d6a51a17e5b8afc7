"""
Unit Tests for RouteConfig finalize.

Test Aspects Covered:
    ✅ Business Logic: default authenticator installation
    ✅ Edge Cases: idempotence, conflicting config, frozen after finalize
"""

from __future__ import annotations

import pytest

from restpipe import ConfigurationError, MemoryStore, Options, RestApi, RouteConfig


@pytest.fixture
def secured_api() -> RestApi:
    return RestApi(Options(store=MemoryStore(), jwt_secret="route-config-secret-long-enough", log_level=-1))


class TestFinalize:
    def test_plain_config_untouched(self, secured_api: RestApi) -> None:
        config = RouteConfig().finalize(secured_api)

        assert config.finalized
        assert config.authenticate is None

    def test_installs_default_authenticator(self, secured_api: RestApi) -> None:
        config = RouteConfig(use_default_auth=True).finalize(secured_api)

        assert callable(config.authenticate)

    def test_is_idempotent(self, secured_api: RestApi) -> None:
        config = RouteConfig(use_default_auth=True)
        first = config.finalize(secured_api).authenticate

        config.finalize(secured_api)

        assert config.authenticate is first

    def test_conflicting_authenticate(self, secured_api: RestApi) -> None:
        config = RouteConfig(use_default_auth=True, authenticate=lambda req: True)

        with pytest.raises(ConfigurationError):
            config.finalize(secured_api)
        assert not config.finalized

    def test_default_auth_needs_secret(self) -> None:
        api = RestApi(Options(store=MemoryStore(), log_level=-1))

        with pytest.raises(ConfigurationError):
            RouteConfig(use_default_auth=True).finalize(api)

    def test_frozen_after_finalize(self, secured_api: RestApi) -> None:
        config = RouteConfig().finalize(secured_api)

        with pytest.raises(ConfigurationError):
            config.authorize = lambda req: True

    def test_mutable_before_finalize(self) -> None:
        config = RouteConfig()
        config.uri_model_name = "things"

        assert config.uri_model_name == "things"
