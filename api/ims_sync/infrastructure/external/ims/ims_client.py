"""
Cliente HTTP asincrono de la API de IMS.

Requisitos cubiertos:
- httpx.AsyncClient
- rate-limit/backoff (429, 5xx)
- limite global de requests simultaneos (semaforo)
- sobre de respuesta: lista directa o {"data": [...]}
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from loguru import logger

from ims_sync.shared.exceptions.sync import ImsApiError


@dataclass(frozen=True)
class ImsCredentials:
    base_url: str
    token: str

    @property
    def authorization(self) -> str:
        # IMS espera el token sin el prefijo "Bearer "
        token = self.token.strip()
        if token.lower().startswith("bearer "):
            token = token[len("bearer "):]
        return token


class ImsClient:
    """
    Cliente HTTP de IMS. Retorna listas de items ya materializadas.

    Importante:
    - No interpreta campos: eso se decide en los procesadores.
    - Todo error (red, timeout, HTTP no 2xx tras reintentos, payload invalido)
      se convierte en ImsApiError.
    """

    def __init__(
        self,
        credentials: ImsCredentials,
        *,
        timeout_s: float = 300.0,
        max_concurrency: int = 4,
        max_retries: int = 3,
        min_backoff_s: float = 0.8,
        max_backoff_s: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._creds = credentials
        self._timeout_s = timeout_s
        self._max_concurrency = max(1, max_concurrency)
        self._max_retries = max_retries
        self._min_backoff_s = min_backoff_s
        self._max_backoff_s = max_backoff_s
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._semaphore: Optional[asyncio.Semaphore] = None

    @property
    def base_url(self) -> str:
        return self._creds.base_url.rstrip("/")

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout_s,
                transport=self._transport,
                headers={
                    "Authorization": self._creds.authorization,
                    "Accept": "application/json",
                    "Content-Type": "application/json",
                },
            )
        return self._client

    def _get_semaphore(self) -> asyncio.Semaphore:
        # Se crea perezosamente para quedar ligado al event loop en uso.
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self._max_concurrency)
        return self._semaphore

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def get_items(
        self,
        url: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json_body: Optional[dict[str, Any]] = None,
    ) -> list[dict[str, Any]]:
        """
        GET que retorna la lista de items de la respuesta.

        IMS recibe los codigos de planta como cuerpo JSON en un GET.
        """
        async with self._get_semaphore():
            payload = await self._request_json("GET", url, params=params, json_body=json_body)
        return self._extract_items(payload, url)

    @staticmethod
    def _extract_items(payload: Any, url: str) -> list[dict[str, Any]]:
        items = payload.get("data") if isinstance(payload, dict) else payload
        if items is None:
            return []
        if not isinstance(items, list):
            raise ImsApiError(f"Respuesta de IMS con formato inesperado en {url}", url=url)
        return [item for item in items if isinstance(item, dict)]

    async def _request_json(
        self,
        method: str,
        url: str,
        *,
        params: Optional[dict[str, Any]],
        json_body: Optional[dict[str, Any]],
    ) -> Any:
        """
        Request HTTP con backoff para 429/5xx y errores de red.

        Estrategia:
        - 429: respeta Retry-After si existe, si no exponencial con jitter simple.
        - 5xx / red: exponencial con jitter.
        - 4xx (no 429): error inmediato (config/auth mal).
        """
        client = self._get_client()

        for attempt in range(self._max_retries + 1):
            try:
                resp = await client.request(method, url, params=params, json=json_body)
            except httpx.HTTPError as e:
                if attempt >= self._max_retries:
                    raise ImsApiError(f"Error de red contra IMS ({url}): {e}", url=url) from e
                await self._sleep_backoff(attempt, None, reason=str(e))
                continue

            if 200 <= resp.status_code < 300:
                try:
                    return resp.json()
                except ValueError as e:
                    raise ImsApiError(f"IMS devolvio JSON invalido en {url}", url=url) from e

            # Errores recuperables
            if resp.status_code == 429 or 500 <= resp.status_code < 600:
                if attempt >= self._max_retries:
                    raise ImsApiError(
                        f"IMS error {resp.status_code} tras {attempt} reintentos: {resp.text[:500]}",
                        status_code=resp.status_code,
                        url=url,
                    )
                await self._sleep_backoff(attempt, resp.headers.get("Retry-After"), reason=str(resp.status_code))
                continue

            # Errores no recuperables
            raise ImsApiError(
                f"IMS request fallo {resp.status_code}: {resp.text[:500]}",
                status_code=resp.status_code,
                url=url,
            )

        raise ImsApiError(f"IMS request sin respuesta: {url}", url=url)

    async def _sleep_backoff(self, attempt: int, retry_after: Optional[str], *, reason: str) -> None:
        if retry_after:
            try:
                sleep_s = float(retry_after)
            except ValueError:
                sleep_s = self._min_backoff_s
        else:
            # Exponencial simple + jitter proporcional
            base = min(self._max_backoff_s, self._min_backoff_s * (2 ** attempt))
            sleep_s = base + (0.15 * base)
        logger.warning(f"IMS reintento {attempt + 1}/{self._max_retries} en {sleep_s:.1f}s ({reason})")
        await asyncio.sleep(sleep_s)
