"""Tests for action policies and the environment multiplier."""

import pytest

from admission.core.config import RateLimitSettings, Settings
from admission.core.errors import ValidationAppError
from admission.core.policies import (
    Action,
    Policy,
    PolicyResolver,
    base_policy,
    compute_limit_multiplier,
    resolve_policy,
)


@pytest.mark.parametrize("action", list(Action))
def test_every_action_has_a_valid_policy(action: Action) -> None:
    policy = resolve_policy(action)

    assert policy.action is action
    assert policy.max_requests >= 1
    assert policy.window_ms > 0


def test_known_policies() -> None:
    assert resolve_policy(Action.CHECKOUT) == Policy(Action.CHECKOUT, 10, 60_000)
    assert resolve_policy(Action.LICENSE_CLAIM) == Policy(Action.LICENSE_CLAIM, 5, 60_000)
    assert resolve_policy(Action.TEAPOT) == Policy(Action.TEAPOT, 1, 5_000)
    assert resolve_policy(Action.DEFAULT) == Policy(Action.DEFAULT, 30, 60_000)
    assert resolve_policy(Action.ACCOUNT_DELETE).window_ms == 3_600_000


def test_multiplier_scales_requests_not_window() -> None:
    base = base_policy(Action.CHECKOUT)
    relaxed = resolve_policy(Action.CHECKOUT, multiplier=10)

    assert relaxed.max_requests == base.max_requests * 10
    assert relaxed.window_ms == resolve_policy(Action.CHECKOUT).window_ms


def test_action_values_are_the_wire_names() -> None:
    assert Action("license-claim") is Action.LICENSE_CLAIM
    with pytest.raises(ValueError):
        Action("unknown-action")


def test_resolver_precomputes_every_action() -> None:
    resolver = PolicyResolver(multiplier=10)

    assert resolver.multiplier == 10
    for action in Action:
        assert resolver.resolve(action) == resolve_policy(action, 10)


def test_resolver_rejects_non_positive_multiplier() -> None:
    with pytest.raises(ValidationAppError) as exc_info:
        PolicyResolver(multiplier=0)

    assert exc_info.value.code == "invalid_limit_multiplier"


class TestLimitMultiplier:
    @pytest.fixture(autouse=True)
    def _clean_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CI", "false")
        monkeypatch.delenv("APP_SITE_URL", raising=False)
        monkeypatch.delenv("RATE_LIMIT_RELAXED", raising=False)

    def test_production_uses_strict_limits(self) -> None:
        cfg = Settings(app_env="production")
        assert compute_limit_multiplier(cfg) == 1

    @pytest.mark.parametrize("env", ["development", "testing"])
    def test_lenient_environments_relax_limits(self, env: str) -> None:
        cfg = Settings(app_env=env)
        assert compute_limit_multiplier(cfg) == 10

    def test_ci_relaxes_limits(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CI", "true")
        assert compute_limit_multiplier(Settings(app_env="production")) == 10

    def test_localhost_site_relaxes_limits(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APP_SITE_URL", "http://localhost:3000")
        assert compute_limit_multiplier(Settings(app_env="production")) == 10

    def test_explicit_override_wins(self) -> None:
        strict = Settings(app_env="development", rate_limit=RateLimitSettings(relaxed=False))
        relaxed = Settings(
            app_env="production",
            rate_limit=RateLimitSettings(relaxed=True, relaxed_multiplier=3),
        )

        assert compute_limit_multiplier(strict) == 1
        assert compute_limit_multiplier(relaxed) == 3

    def test_resolver_from_settings(self) -> None:
        resolver = PolicyResolver.from_settings(Settings(app_env="production"))
        assert resolver.resolve(Action.CHECKOUT).max_requests == 10
