"""Request throttling for account and booking writes.

Each ``RateLimitScope`` maps to a rule read from settings at call time. A
subject (client IP for auth, user id for booking writes) gets its own sliding
window inside a scope.
"""

import logging
import math
import threading
import time
from abc import ABC, abstractmethod
from collections import defaultdict, deque
from dataclasses import dataclass
from enum import Enum
from uuid import uuid4

import redis

from framebook.core.config import Settings

logger = logging.getLogger(__name__)


class RateLimitScope(str, Enum):
    REGISTER = "register"
    LOGIN = "login"
    BOOKING_CREATE = "booking_create"
    BOOKING_ACTION = "booking_action"


@dataclass(frozen=True)
class RateLimitRule:
    scope: RateLimitScope
    limit: int
    window_seconds: int


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    retry_after: int = 0


def rule_for(scope: RateLimitScope, config: Settings) -> RateLimitRule:
    match scope:
        case RateLimitScope.REGISTER:
            limit, window = config.auth_register_max_attempts, config.auth_rate_limit_window_seconds
        case RateLimitScope.LOGIN:
            limit, window = config.auth_login_max_attempts, config.auth_rate_limit_window_seconds
        case RateLimitScope.BOOKING_CREATE:
            limit, window = config.booking_create_max_attempts, config.booking_rate_limit_window_seconds
        case RateLimitScope.BOOKING_ACTION:
            limit, window = config.booking_action_max_attempts, config.booking_rate_limit_window_seconds
    return RateLimitRule(scope=scope, limit=limit, window_seconds=window)


class RateLimiter(ABC):
    @abstractmethod
    def hit(self, rule: RateLimitRule, subject: str) -> RateLimitDecision:
        """Record one attempt by ``subject`` and decide whether it may proceed."""

    @abstractmethod
    def reset(self) -> None:
        raise NotImplementedError


class InMemoryRateLimiter(RateLimiter):
    def __init__(self) -> None:
        self._attempts: dict[tuple[str, str], deque[float]] = defaultdict(deque)
        self._lock = threading.Lock()

    def hit(self, rule: RateLimitRule, subject: str) -> RateLimitDecision:
        now = time.monotonic()
        with self._lock:
            attempts = self._attempts[(rule.scope.value, subject)]
            while attempts and attempts[0] <= now - rule.window_seconds:
                attempts.popleft()

            if len(attempts) >= rule.limit:
                wait = attempts[0] + rule.window_seconds - now
                return RateLimitDecision(allowed=False, retry_after=max(1, math.ceil(wait)))

            attempts.append(now)
            return RateLimitDecision(allowed=True)

    def reset(self) -> None:
        with self._lock:
            self._attempts.clear()


class RedisRateLimiter(RateLimiter):
    """Sorted set of attempt timestamps per scope and subject.

    The attempt is recorded and counted in one MULTI block. A denied attempt is
    removed again so it does not extend the window.
    """

    def __init__(self, redis_url: str, prefix: str = "framebook:rl") -> None:
        self._client = redis.Redis.from_url(redis_url, socket_connect_timeout=0.2, socket_timeout=0.2)
        self._prefix = prefix

    def hit(self, rule: RateLimitRule, subject: str) -> RateLimitDecision:
        key = f"{self._prefix}:{rule.scope.value}:{subject}"
        now_ms = int(time.time() * 1000)
        window_ms = rule.window_seconds * 1000
        member = f"{now_ms}:{uuid4().hex}"

        pipe = self._client.pipeline(transaction=True)
        pipe.zremrangebyscore(key, "-inf", now_ms - window_ms)
        pipe.zadd(key, {member: now_ms})
        pipe.zcard(key)
        pipe.zrange(key, 0, 0, withscores=True)
        pipe.pexpire(key, window_ms)
        _, _, attempts, oldest, _ = pipe.execute()

        if attempts <= rule.limit:
            return RateLimitDecision(allowed=True)

        self._client.zrem(key, member)
        oldest_ms = int(oldest[0][1]) if oldest else now_ms
        wait_ms = oldest_ms + window_ms - now_ms
        return RateLimitDecision(allowed=False, retry_after=max(1, math.ceil(wait_ms / 1000)))

    def reset(self) -> None:
        keys = list(self._client.scan_iter(match=f"{self._prefix}:*"))
        if keys:
            self._client.delete(*keys)


class FallbackRateLimiter(RateLimiter):
    def __init__(self, primary: RateLimiter, fallback: RateLimiter) -> None:
        self._primary = primary
        self._fallback = fallback

    def hit(self, rule: RateLimitRule, subject: str) -> RateLimitDecision:
        try:
            return self._primary.hit(rule, subject)
        except redis.RedisError:
            logger.warning("rate_limiter_fallback scope=%s", rule.scope.value)
            return self._fallback.hit(rule, subject)

    def reset(self) -> None:
        try:
            self._primary.reset()
        except redis.RedisError:
            logger.warning("rate_limiter_reset_failed backend=primary")
        self._fallback.reset()


def build_rate_limiter(config: Settings) -> RateLimiter:
    memory = InMemoryRateLimiter()
    if config.rate_limit_backend.strip().lower() == "redis":
        return FallbackRateLimiter(primary=RedisRateLimiter(redis_url=config.rate_limit_redis_url), fallback=memory)
    return memory
