"""基于 httpx 的 SSE 流式请求公共逻辑。

open_event_stream 同步完成“建立连接 + 检查状态码”，
因此鉴权失败、限流等错误在 stream_chat 返回之前就会抛出；
返回的 ExitStack 持有 client 和 response，由 ByteStream 的后台线程负责关闭。
"""

import json
from contextlib import ExitStack
from typing import Any, Dict, Iterator, Tuple

import httpx

from chat_core.domain.exceptions import ApiError, NetworkError, RateLimitError


def open_event_stream(
    url: str,
    payload: Dict[str, Any],
    headers: Dict[str, str],
    *,
    timeout: float,
    provider: str,
) -> Tuple[ExitStack, Any]:
    stack = ExitStack()
    try:
        client = stack.enter_context(httpx.Client(timeout=timeout, trust_env=False))
        resp = stack.enter_context(client.stream("POST", url, json=payload, headers=headers))
        if resp.status_code == 429:
            raise RateLimitError(code="RATE_LIMIT", message=f"{provider} rate limit", provider=provider)
        if resp.status_code >= 400:
            resp.read()
            raise ApiError(
                code="API_ERROR",
                message=resp.text,
                provider=provider,
                http_status=resp.status_code,
            )
    except httpx.RequestError as e:
        stack.close()
        raise NetworkError(code="NETWORK_ERROR", message=str(e), provider=provider) from e
    except BaseException:
        stack.close()
        raise
    return stack, resp


def iter_sse_payloads(resp: Any, *, provider: str) -> Iterator[Dict[str, Any]]:
    """逐条解析 `data:` 行中的 JSON，忽略空行、[DONE] 与无法解析的行。"""

    try:
        for line in resp.iter_lines():
            if not line:
                continue
            data_str = line
            if data_str.startswith("data:"):
                data_str = data_str[5:].strip()
            else:
                data_str = data_str.strip()
            if not data_str or data_str == "[DONE]":
                continue
            try:
                payload = json.loads(data_str)
            except json.JSONDecodeError:
                continue
            if isinstance(payload, dict):
                yield payload
    except httpx.HTTPError as e:
        raise NetworkError(code="NETWORK_ERROR", message=str(e), provider=provider) from e
