"""
Base LLM Client

Provides the shared async LLM client used by the summarizer backend.

Features:
- Supports both Ollama and VLLM backends
- Availability probing for the configured backend
- One-shot and streaming generation
- Connection pooling per instance
- Request/response/metrics logging

Usage:
    config = LLMConfig(
        backend="ollama",  # or "vllm"
        ollama_url="http://localhost:11434",
        model="gemma3:4b",
        task_name="summarize"
    )

    client = BaseLLMClient(config)
    response = await client.generate_text_with_logging(prompt)

    async for token in client.stream_text_with_logging(prompt):
        ...
"""

import json
import time
import asyncio
import aiohttp
from dataclasses import dataclass
from typing import AsyncIterator, Callable, Optional, Dict, Any

from config import get_model_context_length, estimate_tokens, CONTEXT_WARNING_THRESHOLD
from logs.logging_config import (
    get_llm_logger,
    log_llm_request,
    log_llm_response,
    log_llm_metrics,
)

logger = get_llm_logger()


@dataclass
class LLMConfig:
    """
    Configuration for an LLM client instance.

    Example:
        config = LLMConfig(
            backend="vllm",
            vllm_url="http://prod-gpu:8000",
            model="llama3:70b",
            task_name="summarize"
        )
    """
    # Backend selection: "ollama" or "vllm"
    backend: str = "ollama"

    # Ollama settings
    ollama_url: str = "http://localhost:11434"

    # VLLM settings
    vllm_url: str = "http://localhost:8000"

    # Model settings
    model: str = "gemma3:4b"
    temperature: float = 0.3
    max_tokens: int = 512

    # Connection settings
    timeout: int = 120
    pool_limit: int = 20

    # Logging identifier
    task_name: str = "unknown"

    def get_backend_url(self) -> str:
        """Get the URL for the configured backend."""
        if self.backend == "vllm":
            return self.vllm_url
        return self.ollama_url

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "backend": self.backend,
            "ollama_url": self.ollama_url,
            "vllm_url": self.vllm_url,
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "timeout": self.timeout,
            "pool_limit": self.pool_limit,
            "task_name": self.task_name,
        }


class BaseLLMClient:
    """
    LLM client with shared logic for Ollama and VLLM backends.

    Every call is logged (request, response preview, metrics line). Transport
    failures are converted to RuntimeError with a readable message.
    """

    def __init__(self, config: LLMConfig):
        self.config = config
        self._session: Optional[aiohttp.ClientSession] = None
        self._tag = f"[{config.task_name.upper()}_LLM]"

        logger.debug(
            f"{self._tag} Initialized | "
            f"backend={config.backend} | model={config.model} | "
            f"url={config.get_backend_url()}"
        )

    async def get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session for this instance."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout)
            connector = aiohttp.TCPConnector(
                limit=self.config.pool_limit,
                limit_per_host=self.config.pool_limit
            )
            self._session = aiohttp.ClientSession(
                timeout=timeout,
                connector=connector
            )
            logger.debug(f"{self._tag} Session created | backend={self.config.backend}")
        return self._session

    async def close(self):
        """Close this instance's session."""
        if self._session and not self._session.closed:
            await self._session.close()
            logger.debug(f"{self._tag} Session closed")
        self._session = None

    # =====================
    # Availability
    # =====================

    async def check_availability(self) -> str:
        """
        Check the backend.

        Returns:
            "available" when the backend answers and serves the configured
            model, "downloadable" when Ollama answers but the model is not
            pulled yet, "unavailable" otherwise.
        """
        if self.config.backend == "vllm":
            url = f"{self.config.vllm_url}/v1/models"
        else:
            url = f"{self.config.ollama_url}/api/tags"

        try:
            session = await self.get_session()
            async with session.get(url, timeout=aiohttp.ClientTimeout(total=5)) as r:
                if r.status != 200:
                    logger.warning(f"{self._tag} Availability check failed | url={url} | status={r.status}")
                    return "unavailable"
                data = await r.json(content_type=None)
        except (asyncio.TimeoutError, aiohttp.ClientError, ValueError) as e:
            logger.warning(f"{self._tag} Availability check failed | url={url} | error={e}")
            return "unavailable"

        if self.config.backend == "vllm":
            models = [m.get("id") for m in data.get("data", [])]
        else:
            models = [m.get("name") for m in data.get("models", [])]

        if self.config.model in models:
            return "available"
        if self.config.backend == "vllm":
            logger.warning(f"{self._tag} Model not served | model={self.config.model} | served={models}")
            return "unavailable"
        return "downloadable"

    async def pull_model(self, monitor: Optional[Callable[[float], None]] = None) -> None:
        """
        Pull the configured model into Ollama, reporting download progress
        as a fraction in [0, 1] to monitor.

        Raises:
            RuntimeError: If the pull fails
        """
        url = f"{self.config.ollama_url}/api/pull"
        logger.info(f"{self._tag} Pulling model | model={self.config.model}")

        try:
            session = await self.get_session()
            async with session.post(url, json={"model": self.config.model, "stream": True}) as r:
                r.raise_for_status()
                async for line in r.content:
                    if not line.strip():
                        continue
                    try:
                        data = json.loads(line.decode("utf-8"))
                    except json.JSONDecodeError:
                        continue
                    if data.get("error"):
                        raise RuntimeError(f"Model pull failed: {data['error']}")
                    total = data.get("total")
                    completed = data.get("completed")
                    if monitor and total and completed is not None:
                        monitor(completed / total)

        except asyncio.TimeoutError:
            raise RuntimeError(f"{self.config.task_name.title()} model download timed out.")

        except aiohttp.ClientError as e:
            raise RuntimeError(f"{self.config.task_name.title()} model download failed: {e}")

        logger.info(f"{self._tag} Model ready | model={self.config.model}")

    # =====================
    # One-shot Generation
    # =====================

    def _context_usage(self, prompt: str, model: str) -> None:
        context_limit = get_model_context_length(model)
        tokens = estimate_tokens(prompt)
        usage = (tokens / context_limit) * 100 if context_limit else 0
        if usage >= CONTEXT_WARNING_THRESHOLD:
            logger.warning(
                f"{self._tag} High context usage | tokens~{tokens} | limit={context_limit} | usage={usage:.1f}%"
            )

    async def generate_text_with_logging(
        self,
        prompt: str,
        model: str = None,
        temperature: float = None,
        max_tokens: int = None,
        task: str = None,
    ) -> str:
        """
        Generate text using the configured backend with full logging.

        Args:
            prompt: The prompt to send to the LLM
            model: Override model (uses config.model if not specified)
            temperature: Override temperature
            max_tokens: Override max_tokens
            task: Override task name for logging

        Returns:
            Generated text response
        """
        model_name = model or self.config.model
        temp = temperature if temperature is not None else self.config.temperature
        max_tok = max_tokens if max_tokens is not None else self.config.max_tokens
        task_name = task or self.config.task_name

        call_id = log_llm_request(
            model=model_name,
            backend=self.config.backend,
            task=task_name,
            prompt=prompt,
            temperature=temp,
            max_tokens=max_tok
        )
        self._context_usage(prompt, model_name)

        start_time = time.time()
        status = "success"
        response = ""

        try:
            if self.config.backend == "vllm":
                response = await self._call_vllm(prompt, model_name, temp, max_tok)
            else:
                response = await self._call_ollama(prompt, model_name, temp, max_tok)
            return response

        except Exception as e:
            status = "error"
            log_llm_response(
                call_id=call_id,
                model=model_name,
                backend=self.config.backend,
                response="",
                latency_ms=(time.time() - start_time) * 1000,
                status=status,
                error_message=str(e)
            )
            raise

        finally:
            latency_ms = (time.time() - start_time) * 1000
            if status == "success":
                log_llm_response(
                    call_id=call_id,
                    model=model_name,
                    backend=self.config.backend,
                    response=response,
                    latency_ms=latency_ms,
                )
            log_llm_metrics(
                request_id=call_id,
                model=model_name,
                backend=self.config.backend,
                task=task_name,
                latency_ms=latency_ms,
                prompt_chars=len(prompt),
                response_chars=len(response),
                status=status,
            )

    async def _call_ollama(
        self,
        prompt: str,
        model: str,
        temperature: float,
        max_tokens: int
    ) -> str:
        """Call the Ollama generate API."""
        url = f"{self.config.ollama_url}/api/generate"

        payload = {
            "model": model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": temperature,
                "num_predict": max_tokens
            }
        }

        logger.debug(f"{self._tag} Calling Ollama | url={url} | model={model}")

        try:
            session = await self.get_session()
            async with session.post(url, json=payload) as r:
                r.raise_for_status()
                response_data = await r.json()
                return response_data.get("response", "").strip()

        except asyncio.TimeoutError:
            logger.error(f"{self._tag} Ollama timeout | model={model}")
            raise RuntimeError(
                f"{self.config.task_name.title()} LLM request timed out. Please try again."
            )

        except aiohttp.ClientError as e:
            logger.error(f"{self._tag} Ollama request failed | model={model} | error={e}")
            raise RuntimeError(
                f"{self.config.task_name.title()} LLM service unavailable. Please try again later."
            )

    async def _call_vllm(
        self,
        prompt: str,
        model: str,
        temperature: float,
        max_tokens: int
    ) -> str:
        """Call the VLLM chat completions API."""
        url = f"{self.config.vllm_url}/v1/chat/completions"

        payload = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
            "max_tokens": max_tokens
        }

        logger.debug(f"{self._tag} Calling VLLM | url={url} | model={model}")

        try:
            session = await self.get_session()
            async with session.post(url, json=payload) as r:
                r.raise_for_status()
                response_data = await r.json()
                return response_data["choices"][0]["message"]["content"].strip()

        except asyncio.TimeoutError:
            logger.error(f"{self._tag} VLLM timeout | model={model}")
            raise RuntimeError(
                f"{self.config.task_name.title()} LLM request timed out. Please try again."
            )

        except aiohttp.ClientError as e:
            logger.error(f"{self._tag} VLLM request failed | model={model} | error={e}")
            raise RuntimeError(
                f"{self.config.task_name.title()} LLM service unavailable. Please try again later."
            )

    # =====================
    # Streaming Generation
    # =====================

    async def stream_text_with_logging(
        self,
        prompt: str,
        model: str = None,
        temperature: float = None,
        max_tokens: int = None,
        task: str = None,
    ) -> AsyncIterator[str]:
        """
        Stream tokens from the configured backend.

        Unlike one-shot generation, errors are re-raised after logging so the
        caller can fall back to a one-shot call.

        Yields:
            Text deltas as they are generated
        """
        model_name = model or self.config.model
        temp = temperature if temperature is not None else self.config.temperature
        max_tok = max_tokens if max_tokens is not None else self.config.max_tokens
        task_name = f"{task or self.config.task_name}_stream"

        call_id = log_llm_request(
            model=model_name,
            backend=self.config.backend,
            task=task_name,
            prompt=prompt,
            temperature=temp,
            max_tokens=max_tok
        )
        self._context_usage(prompt, model_name)

        start_time = time.time()
        full_response = []
        status = "success"

        if self.config.backend == "vllm":
            stream = self._stream_vllm(prompt, model_name, temp, max_tok)
        else:
            stream = self._stream_ollama(prompt, model_name, temp, max_tok)

        try:
            async for token in stream:
                full_response.append(token)
                yield token

        except asyncio.TimeoutError:
            status = "error"
            logger.error(f"{self._tag} Stream timeout | model={model_name}")
            raise RuntimeError(
                f"{self.config.task_name.title()} LLM stream timed out."
            )

        except aiohttp.ClientError as e:
            status = "error"
            logger.error(f"{self._tag} Stream error | model={model_name} | error={e}")
            raise RuntimeError(
                f"{self.config.task_name.title()} LLM stream failed: {e}"
            )

        finally:
            latency_ms = (time.time() - start_time) * 1000
            complete_response = "".join(full_response)
            log_llm_response(
                call_id=call_id,
                model=model_name,
                backend=self.config.backend,
                response=complete_response,
                latency_ms=latency_ms,
                status=status,
                error_message=None if status == "success" else "stream failed"
            )
            log_llm_metrics(
                request_id=call_id,
                model=model_name,
                backend=self.config.backend,
                task=task_name,
                latency_ms=latency_ms,
                prompt_chars=len(prompt),
                response_chars=len(complete_response),
                status=status,
                streaming=True,
            )

    async def _stream_ollama(
        self,
        prompt: str,
        model: str,
        temperature: float,
        max_tokens: int
    ) -> AsyncIterator[str]:
        session = await self.get_session()
        async with session.post(
            f"{self.config.ollama_url}/api/generate",
            json={
                "model": model,
                "prompt": prompt,
                "stream": True,
                "options": {"temperature": temperature, "num_predict": max_tokens}
            }
        ) as response:
            response.raise_for_status()

            async for line in response.content:
                if not line:
                    continue
                try:
                    data = json.loads(line.decode("utf-8"))
                except json.JSONDecodeError:
                    continue
                token = data.get("response", "")
                if token:
                    yield token
                if data.get("done", False):
                    break

    async def _stream_vllm(
        self,
        prompt: str,
        model: str,
        temperature: float,
        max_tokens: int
    ) -> AsyncIterator[str]:
        session = await self.get_session()
        async with session.post(
            f"{self.config.vllm_url}/v1/chat/completions",
            json={
                "model": model,
                "messages": [{"role": "user", "content": prompt}],
                "temperature": temperature,
                "max_tokens": max_tokens,
                "stream": True
            }
        ) as response:
            response.raise_for_status()

            async for line in response.content:
                line_str = line.decode("utf-8").strip()
                if not line_str.startswith("data: "):
                    continue
                data_str = line_str[6:]
                if data_str == "[DONE]":
                    break
                try:
                    data = json.loads(data_str)
                except json.JSONDecodeError:
                    continue
                delta = data.get("choices", [{}])[0].get("delta", {})
                token = delta.get("content", "")
                if token:
                    yield token

    def get_backend_info(self) -> Dict[str, Any]:
        """Get information about this client's backend configuration."""
        info = self.config.to_dict()
        info["active_url"] = self.config.get_backend_url()
        return info
