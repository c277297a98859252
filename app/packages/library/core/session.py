"""登录会话：服务端保存带滑动过期的会话，令牌中的 ``sid`` 指向这里的记录。

- 每次认证请求都会刷新 TTL，退出登录删除单个会话；
- 账号被停用或删除时撤销其全部会话；
- 生产环境使用 Redis，测试或 Redis 不可用时回退到进程内存。
"""

from __future__ import annotations

import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Set, Tuple

import redis

from app.packages.library.core.config import get_settings
from app.packages.library.core.logger import logger

SESSION_KEY_PREFIX = "library:session:"
USER_SESSIONS_KEY_PREFIX = "library:user-sessions:"


class SessionBackend:
    """会话后端接口。"""

    def create_session(self, user_id: int, ttl_seconds: int) -> str:  # pragma: no cover - interface definition
        raise NotImplementedError

    def touch_session(self, session_id: str, user_id: int, ttl_seconds: int) -> bool:  # pragma: no cover
        raise NotImplementedError

    def delete_session(self, session_id: str) -> None:  # pragma: no cover
        raise NotImplementedError

    def revoke_user_sessions(self, user_id: int) -> int:  # pragma: no cover
        raise NotImplementedError


class RedisSessionBackend(SessionBackend):
    """会话值为所属用户 ID；另以集合记录每个用户的会话，便于批量撤销。"""

    def __init__(self, url: str) -> None:
        self._client = redis.Redis.from_url(url, decode_responses=True)
        self._client.ping()

    def create_session(self, user_id: int, ttl_seconds: int) -> str:
        session_id = uuid.uuid4().hex
        pipe = self._client.pipeline()
        pipe.set(SESSION_KEY_PREFIX + session_id, str(user_id), ex=ttl_seconds)
        pipe.sadd(USER_SESSIONS_KEY_PREFIX + str(user_id), session_id)
        pipe.expire(USER_SESSIONS_KEY_PREFIX + str(user_id), ttl_seconds)
        pipe.execute()
        return session_id

    def touch_session(self, session_id: str, user_id: int, ttl_seconds: int) -> bool:
        key = SESSION_KEY_PREFIX + session_id
        if self._client.get(key) != str(user_id):
            return False
        pipe = self._client.pipeline()
        pipe.expire(key, ttl_seconds)
        pipe.expire(USER_SESSIONS_KEY_PREFIX + str(user_id), ttl_seconds)
        pipe.execute()
        return True

    def delete_session(self, session_id: str) -> None:
        key = SESSION_KEY_PREFIX + session_id
        owner = self._client.get(key)
        pipe = self._client.pipeline()
        pipe.delete(key)
        if owner is not None:
            pipe.srem(USER_SESSIONS_KEY_PREFIX + owner, session_id)
        pipe.execute()

    def revoke_user_sessions(self, user_id: int) -> int:
        index_key = USER_SESSIONS_KEY_PREFIX + str(user_id)
        session_ids = self._client.smembers(index_key)
        if not session_ids:
            return 0
        pipe = self._client.pipeline()
        for session_id in session_ids:
            pipe.delete(SESSION_KEY_PREFIX + session_id)
        pipe.delete(index_key)
        pipe.execute()
        return len(session_ids)


class InMemorySessionBackend(SessionBackend):
    """进程内实现，过期的会话在下次访问时清除。"""

    def __init__(self) -> None:
        self._sessions: Dict[str, Tuple[int, datetime]] = {}
        self._by_user: Dict[int, Set[str]] = {}
        self._lock = threading.Lock()

    def create_session(self, user_id: int, ttl_seconds: int) -> str:
        session_id = uuid.uuid4().hex
        with self._lock:
            self._sessions[session_id] = (user_id, _expires_after(ttl_seconds))
            self._by_user.setdefault(user_id, set()).add(session_id)
        return session_id

    def touch_session(self, session_id: str, user_id: int, ttl_seconds: int) -> bool:
        with self._lock:
            record = self._sessions.get(session_id)
            if record is None:
                return False
            owner, expires_at = record
            if owner != user_id or expires_at < datetime.now(timezone.utc):
                self._discard(session_id, owner)
                return False
            self._sessions[session_id] = (owner, _expires_after(ttl_seconds))
            return True

    def delete_session(self, session_id: str) -> None:
        with self._lock:
            record = self._sessions.get(session_id)
            if record is not None:
                self._discard(session_id, record[0])

    def revoke_user_sessions(self, user_id: int) -> int:
        with self._lock:
            session_ids = self._by_user.pop(user_id, set())
            for session_id in session_ids:
                self._sessions.pop(session_id, None)
            return len(session_ids)

    def _discard(self, session_id: str, owner: int) -> None:
        self._sessions.pop(session_id, None)
        owned = self._by_user.get(owner)
        if owned is not None:
            owned.discard(session_id)
            if not owned:
                del self._by_user[owner]


def _expires_after(ttl_seconds: int) -> datetime:
    return datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds)


_backend: Optional[SessionBackend] = None
_backend_lock = threading.Lock()


def _get_backend() -> SessionBackend:
    global _backend
    if _backend is not None:
        return _backend

    with _backend_lock:
        if _backend is not None:
            return _backend
        settings = get_settings()
        if settings.session_backend.lower() == "memory":
            _backend = InMemorySessionBackend()
            return _backend
        try:
            _backend = RedisSessionBackend(settings.redis_url)
            logger.info("Session store initialized with Redis at %s", settings.redis_url)
        except redis.RedisError as exc:  # pragma: no cover - fallback path
            logger.warning("Redis unavailable (%s), falling back to in-memory session store", exc)
            _backend = InMemorySessionBackend()
    return _backend


def create_session(user_id: int, ttl_seconds: int) -> str:
    """创建会话并返回会话 ID。"""
    return _get_backend().create_session(user_id, ttl_seconds)


def touch_session(session_id: str, user_id: int, ttl_seconds: int) -> bool:
    """刷新会话 TTL，若会话不存在、已过期或用户不匹配则返回 ``False``。"""
    return _get_backend().touch_session(session_id, user_id, ttl_seconds)


def delete_session(session_id: str) -> None:
    _get_backend().delete_session(session_id)


def revoke_user_sessions(user_id: int) -> int:
    """撤销账号的全部会话，返回撤销数量。"""
    revoked = _get_backend().revoke_user_sessions(user_id)
    if revoked:
        logger.info("Revoked %d sessions of user %s", revoked, user_id)
    return revoked
