"""
HTTP Client Singleton com connection pooling.

Centraliza as chamadas para a API de campanhas:
- Reutilização de conexões
- Connection pooling configurável
- HTTP/2 multiplexing (bulk remove dispara N DELETEs em paralelo)
- Timeout padronizado
- Fechamento gracioso no shutdown
"""

import httpx
import logging
from typing import Optional

from audiencia.core.config import ApiConfig, settings

logger = logging.getLogger(__name__)

# Cliente HTTP global (singleton)
_client: Optional[httpx.AsyncClient] = None


async def get_http_client() -> httpx.AsyncClient:
    """
    Obtém o cliente HTTP singleton.

    Cria o cliente na primeira chamada com configurações otimizadas.

    Returns:
        httpx.AsyncClient configurado com pooling
    """
    global _client
    if _client is None:
        _client = httpx.AsyncClient(
            timeout=httpx.Timeout(
                connect=ApiConfig.CONNECT_TIMEOUT,
                read=settings.API_TIMEOUT_SECONDS,
                write=settings.API_TIMEOUT_SECONDS,
                pool=ApiConfig.POOL_TIMEOUT,
            ),
            limits=httpx.Limits(
                max_connections=ApiConfig.MAX_CONNECTIONS,
                max_keepalive_connections=ApiConfig.MAX_KEEPALIVE_CONNECTIONS,
                keepalive_expiry=ApiConfig.KEEPALIVE_EXPIRY_SECONDS,
            ),
            http2=True,
            headers={
                "User-Agent": "Audiencia-Campanhas/1.0",
                "Accept": "application/json",
            },
            follow_redirects=True,
        )
        logger.info("HTTP client singleton criado com pooling configurado")

    return _client


async def close_http_client() -> None:
    """
    Fecha o cliente HTTP.

    Deve ser chamado no shutdown da aplicação para liberar recursos.
    """
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
        logger.info("HTTP client singleton fechado")
