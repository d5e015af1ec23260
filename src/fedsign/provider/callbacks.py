"""コールバック形式のSDK呼び出しを await 可能にするブリッジ."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional, Tuple

logger = logging.getLogger(__name__)


async def await_callback(
    invoke: Callable[[Callable[..., None]], None],
    timeout: Optional[float] = None,
    label: str = "provider",
) -> Tuple[Any, ...]:
    """コールバックを1回限りの Future に包んで完了を待つ.

    コールバックは任意のスレッドから呼ばれてよい. 2回目以降の呼び出しは無視する.

    Args:
        invoke: 完了コールバックを受け取り、SDK呼び出しを開始する関数
        timeout: 待機の上限秒数（None なら無制限）
        label: ログ出力用の呼び出し名

    Returns:
        コールバックに渡された引数のタプル

    Raises:
        asyncio.TimeoutError: timeout 内にコールバックが呼ばれなかった場合
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future[Tuple[Any, ...]] = loop.create_future()

    def _resolve(args: Tuple[Any, ...]) -> None:
        if future.done():
            logger.debug("provider.callback.ignored call=%s reason=already_done", label)
            return
        future.set_result(args)

    def on_complete(*args: Any) -> None:
        try:
            loop.call_soon_threadsafe(_resolve, args)
        except RuntimeError:
            # ループ終了後に届いたコールバック
            logger.debug("provider.callback.dropped call=%s reason=loop_closed", label)

    invoke(on_complete)
    if timeout is None:
        return await future
    return await asyncio.wait_for(future, timeout=timeout)
