"""Rate limit policies per protected action.

The set of actions is closed: every protected operation is an ``Action``
member and ``base_policy`` matches on all of them. Adding an action without
adding its policy is flagged by the type checker through ``assert_never``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import assert_never

from admission.core.config import Settings
from admission.core.errors import ValidationAppError
from admission.core.window import parse_window

logger = logging.getLogger(__name__)


class Action(str, Enum):
    """Protected operations, each with its own rate limit bucket."""

    CHECKOUT = "checkout"
    LOGIN_OTP = "login-otp"
    LICENSE_CLAIM = "license-claim"
    LICENSE_CLAIM_BATCH = "license-claim-batch"
    CLAIM_BY_TOKEN = "claim-by-token"
    CERTIFICATE = "certificate"
    FILE_UPLOAD = "file-upload"
    LEARN_UPLOAD = "learn-upload"
    LEARN_ASSET = "learn-asset"
    SITE_BANNERS = "site-banners"
    CONTENT_MUTATION = "content-mutation"
    ADMIN_MUTATION = "admin-mutation"
    PROFILE_UPDATE = "profile-update"
    ACCOUNT_DELETE = "account-delete"
    COMMUNITY_POST = "community-post"
    COMMUNITY_ANSWER = "community-answer"
    TEAPOT = "teapot"
    DEFAULT = "default"


@dataclass(frozen=True)
class BasePolicy:
    """Production policy before any environment multiplier."""

    max_requests: int
    window: str


@dataclass(frozen=True)
class Policy:
    """Resolved policy: scaled request budget and window in milliseconds."""

    action: Action
    max_requests: int
    window_ms: int


def base_policy(action: Action) -> BasePolicy:
    """Return the production policy for ``action``."""

    match action:
        case Action.CHECKOUT:
            return BasePolicy(10, "1 m")
        case Action.LOGIN_OTP:
            return BasePolicy(5, "10 m")
        case Action.LICENSE_CLAIM | Action.CLAIM_BY_TOKEN:
            return BasePolicy(5, "1 m")
        case Action.LICENSE_CLAIM_BATCH:
            return BasePolicy(3, "1 m")
        case Action.CERTIFICATE:
            return BasePolicy(10, "1 m")
        case Action.FILE_UPLOAD | Action.LEARN_UPLOAD:
            return BasePolicy(10, "10 m")
        case Action.LEARN_ASSET:
            return BasePolicy(60, "1 m")
        case Action.SITE_BANNERS:
            return BasePolicy(60, "1 m")
        case Action.CONTENT_MUTATION | Action.ADMIN_MUTATION:
            return BasePolicy(20, "1 m")
        case Action.PROFILE_UPDATE:
            return BasePolicy(10, "1 m")
        case Action.ACCOUNT_DELETE:
            return BasePolicy(3, "1 h")
        case Action.COMMUNITY_POST:
            return BasePolicy(5, "10 m")
        case Action.COMMUNITY_ANSWER:
            return BasePolicy(10, "10 m")
        case Action.TEAPOT:
            return BasePolicy(1, "5 s")
        case Action.DEFAULT:
            return BasePolicy(30, "1 m")
        case _:
            assert_never(action)


def resolve_policy(action: Action, multiplier: int = 1) -> Policy:
    """Resolve ``action`` to a policy, scaling only its request budget.

    Args:
        action: Protected action.
        multiplier: Factor applied to ``max_requests``; the window is never
            scaled.

    Returns:
        Policy with the window parsed to milliseconds.
    """

    base = base_policy(action)
    return Policy(
        action=action,
        max_requests=base.max_requests * multiplier,
        window_ms=parse_window(base.window),
    )


def compute_limit_multiplier(cfg: Settings) -> int:
    """Compute the process-wide multiplier applied to every policy.

    An explicit ``RATE_LIMIT_RELAXED`` wins; otherwise development, testing,
    CI and localhost deployments get relaxed limits.
    """

    relaxed = cfg.rate_limit.relaxed
    if relaxed is None:
        relaxed = cfg.is_lenient_environment
    return cfg.rate_limit.relaxed_multiplier if relaxed else 1


class PolicyResolver:
    """Resolves every action once at construction; lookups are read-only."""

    def __init__(self, multiplier: int = 1) -> None:
        if multiplier < 1:
            raise ValidationAppError(
                code="invalid_limit_multiplier",
                message="multiplier must be >= 1",
                details={"hint": "Set RATE_LIMIT_RELAXED_MULTIPLIER to a positive integer"},
            )

        self._multiplier = multiplier
        self._policies: dict[Action, Policy] = {
            action: resolve_policy(action, multiplier) for action in Action
        }
        logger.info(
            "rate_limit.policies_resolved",
            extra={"multiplier": multiplier, "actions": len(self._policies)},
        )

    @classmethod
    def from_settings(cls, cfg: Settings) -> "PolicyResolver":
        return cls(compute_limit_multiplier(cfg))

    @property
    def multiplier(self) -> int:
        return self._multiplier

    def resolve(self, action: Action) -> Policy:
        return self._policies[action]
