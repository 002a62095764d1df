from __future__ import annotations  # Content-service LLM request gateway

import json
import logging
import os
import threading
from typing import Any, Dict, Optional, Protocol, Sequence, Type, TypeVar

import httpx
from langchain_core.messages import BaseMessage
from langchain_core.runnables import RunnableLambda
from pydantic import BaseModel, ValidationError

from config.routing import LlmRoute


logger = logging.getLogger(__name__)  # Module logger setup


_ROUTE_LOCKS: Dict[str, threading.Lock] = {}
_ROUTE_LOCKS_GUARD = threading.Lock()

_ROLE_ALIASES = {"human": "user", "ai": "assistant"}


class HttpClient(Protocol):  # Minimal HTTP client protocol
    def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> "HttpResponse": ...


class HttpResponse(Protocol):  # Minimal HTTP response protocol
    @property
    def status_code(self) -> int: ...

    def json(self) -> Any: ...


class LlmGatewayError(RuntimeError):  # Transport, status or payload failure
    pass


T = TypeVar("T", bound=BaseModel)


def _route_lock(cfg: LlmRoute) -> threading.Lock:
    key = cfg.name or f"{cfg.base_url}{cfg.endpoint}"
    with _ROUTE_LOCKS_GUARD:
        return _ROUTE_LOCKS.setdefault(key, threading.Lock())


def chat(
    messages: Sequence[Dict[str, str]],
    schema: Type[T],
    *,
    cfg: LlmRoute,
    client: Optional[HttpClient] = None,
) -> T:  # Send chat messages and validate the reply against ``schema``
    if cfg.sequential:
        with _route_lock(cfg):
            return _exchange(messages, schema, cfg, client)
    return _exchange(messages, schema, cfg, client)


def _exchange(messages: Sequence[Dict[str, str]], schema: Type[T], cfg: LlmRoute, client: Optional[HttpClient]) -> T:
    base = list(messages)
    if cfg.enforce_json:
        schema_json = json.dumps(schema.model_json_schema(), indent=2)
        base.insert(0, {"role": "system", "content": "Reply with a single JSON object matching this schema:\n" + schema_json})
    attempts = cfg.max_retries + 1
    last_error: Optional[Exception] = None
    for attempt in range(attempts):
        outgoing = list(base)
        if last_error is not None:
            outgoing.append({"role": "system", "content": _retry_hint(str(last_error))})
        logger.info("content-service request route=%s model=%s attempt=%d/%d", cfg.name, cfg.model, attempt + 1, attempts)
        content = _post(cfg, outgoing, client)
        try:
            return schema.model_validate_json(_strip_code_fences(content))
        except ValidationError as exc:
            logger.warning("content-service reply failed validation route=%s: %s", cfg.name, exc)
            last_error = exc
    raise LlmGatewayError("LLM output validation failed") from last_error


def _post(cfg: LlmRoute, messages: Sequence[Dict[str, str]], client: Optional[HttpClient]) -> str:
    payload: Dict[str, Any] = {"model": cfg.model, "messages": list(messages)}
    if cfg.response_format:
        payload["response_format"] = {"type": cfg.response_format}
    headers = {"Content-Type": "application/json"}
    if cfg.api_key_env:
        api_key = os.getenv(cfg.api_key_env)
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
    headers.update(cfg.extra_headers)
    url = f"{cfg.base_url}{cfg.endpoint}"
    try:
        if client is not None:
            response = client.post(url, json=payload, headers=headers, timeout=cfg.timeout_s)
        else:
            with httpx.Client(timeout=cfg.timeout_s) as http_client:
                response = http_client.post(url, json=payload, headers=headers)
    except Exception as exc:  # noqa: BLE001
        logger.error("content-service transport failure route=%s: %s", cfg.name, exc)
        raise LlmGatewayError("LLM transport failed") from exc
    if response.status_code >= 400:
        raise LlmGatewayError(f"LLM returned status {response.status_code}")
    try:
        data = response.json()
    except ValueError as exc:
        raise LlmGatewayError("LLM payload was not JSON") from exc
    return _extract_content(data)


def runnable(route: LlmRoute, schema: Type[T]) -> RunnableLambda:  # Expose the route as a LangChain runnable
    def _invoke(payload: Any) -> T:
        return chat(_coerce_messages(payload), schema, cfg=route)

    return RunnableLambda(_invoke)


def _extract_content(data: Any) -> str:  # Pull the assistant message out of an OpenAI-style body
    if isinstance(data, dict):
        choices = data.get("choices")
        if isinstance(choices, list) and choices and isinstance(choices[0], dict):
            message = choices[0].get("message")
            if isinstance(message, dict) and isinstance(message.get("content"), str):
                return message["content"]
        if isinstance(data.get("content"), str):
            return data["content"]
    raise LlmGatewayError("LLM response missing content")


def _strip_code_fences(content: str) -> str:
    text = content.strip()
    if not text.startswith("```"):
        return text
    lines = text.splitlines()[1:]
    if lines and lines[-1].strip() == "```":
        lines = lines[:-1]
    return "\n".join(lines).strip()


def _retry_hint(error_text: str) -> str:
    reason = error_text.splitlines()[0].strip() if error_text else ""
    if len(reason) > 200:
        reason = reason[:197] + "..."
    return f"The previous reply failed validation. Reason: {reason}. Return a single JSON object that matches the schema."


def _coerce_messages(payload: Any) -> Sequence[Dict[str, str]]:  # Convert prompt values into role/content dicts
    if hasattr(payload, "to_messages"):
        payload = payload.to_messages()
    if isinstance(payload, dict):
        return [payload]
    if isinstance(payload, BaseMessage):
        return [_message_dict(payload)]
    if isinstance(payload, (list, tuple)):
        if all(isinstance(item, dict) for item in payload):
            return list(payload)
        if all(isinstance(item, BaseMessage) for item in payload):
            return [_message_dict(item) for item in payload]
    raise TypeError("Unsupported message payload for LLM runnable")


def _message_dict(message: BaseMessage) -> Dict[str, str]:
    content = message.content
    if not isinstance(content, str):
        content = json.dumps(content)
    return {"role": _ROLE_ALIASES.get(message.type, message.type), "content": content}
