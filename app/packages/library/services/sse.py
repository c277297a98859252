"""SSE 连接注册表：按 key 保存唯一的订阅流，供转换完成回调推送事件。

注册表是进程内对象，由应用启动时创建并挂在 ``app.state`` 上；进程重启后
未送达的事件不会重放。同一 key 的新订阅会替换旧订阅，旧流随即收到结束信号。
"""

from __future__ import annotations

import asyncio
import json
import threading
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, Optional

from app.packages.library.core.constants import SSE_EVENT_CONNECTED
from app.packages.library.core.logger import get_logger

logger = get_logger("sse")

# 放入队列后使订阅流退出
_CLOSE = object()


@dataclass
class Subscription:
    key: str
    loop: asyncio.AbstractEventLoop
    queue: asyncio.Queue = field(default_factory=asyncio.Queue)


def format_sse(event: Dict[str, Any]) -> str:
    return f"data: {json.dumps(event, ensure_ascii=False)}\n\n"


class SSEConnectionRegistry:
    """一个 key 对应一个订阅；``publish`` 可在任意线程调用。"""

    def __init__(self, *, keepalive_seconds: float = 15.0) -> None:
        self.keepalive_seconds = keepalive_seconds
        self._subscriptions: Dict[str, Subscription] = {}
        self._lock = threading.Lock()

    def subscribe(self, key: str) -> Subscription:
        """在当前事件循环中登记订阅，替换同 key 的旧订阅。"""
        subscription = Subscription(key=key, loop=asyncio.get_running_loop())
        with self._lock:
            previous = self._subscriptions.get(key)
            self._subscriptions[key] = subscription
        if previous is not None:
            logger.info("SSE subscriber for %s replaced", key)
            self._deliver(previous, _CLOSE)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            if self._subscriptions.get(subscription.key) is subscription:
                del self._subscriptions[subscription.key]

    def is_subscribed(self, key: str) -> bool:
        with self._lock:
            return key in self._subscriptions

    def publish(self, key: str, event: Dict[str, Any]) -> bool:
        """把事件投递给 key 当前的订阅者，没有订阅者时丢弃并返回 ``False``。"""
        with self._lock:
            subscription = self._subscriptions.get(key)
        if subscription is None:
            logger.info("No SSE subscriber for %s, event %s dropped", key, event.get("type"))
            return False
        return self._deliver(subscription, event)

    @staticmethod
    def _deliver(subscription: Subscription, item: Any) -> bool:
        try:
            subscription.loop.call_soon_threadsafe(subscription.queue.put_nowait, item)
        except RuntimeError:
            # 订阅所在的事件循环已关闭
            return False
        return True

    async def stream(self, subscription: Subscription, *, keepalive_seconds: Optional[float] = None) -> AsyncIterator[str]:
        """生成 SSE 文本帧：先发送 connected 事件，空闲时发送保活注释。"""
        interval = keepalive_seconds if keepalive_seconds is not None else self.keepalive_seconds
        try:
            yield format_sse({"type": SSE_EVENT_CONNECTED, "uuid": subscription.key})
            while True:
                try:
                    item = await asyncio.wait_for(subscription.queue.get(), timeout=interval)
                except asyncio.TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                if item is _CLOSE:
                    break
                yield format_sse(item)
        finally:
            self.unsubscribe(subscription)
