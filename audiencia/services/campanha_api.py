"""
Cliente da API de campanhas (clientes, grupos e importacao).

Todas as respostas vem no envelope {code, message, results}; o cliente
devolve apenas `results` ja convertido para os tipos de dominio e
transforma qualquer falha em BackendError.

Leituras (GET) tem retry com backoff exponencial em falhas de transporte.
Escritas nunca sao repetidas.
"""

import logging
from typing import Any, List, Optional

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from audiencia.core.config import ApiConfig, settings
from audiencia.core.exceptions import BackendError
from audiencia.services.http_client import get_http_client
from audiencia.services.membros.types import (
    FilterMode,
    GroupDetail,
    ImportResult,
    Page,
)

logger = logging.getLogger(__name__)


def _mensagem_erro(response: httpx.Response) -> str:
    """Extrai a mensagem do envelope de erro, com fallback para o HTTP status."""
    try:
        data = response.json()
    except ValueError:
        data = None

    if isinstance(data, dict) and data.get("message"):
        return data["message"]
    return f"HTTP {response.status_code}"


def _unwrap(response: httpx.Response) -> Any:
    """Retorna o campo results do envelope (pode ser None)."""
    if not response.content:
        return None
    try:
        data = response.json()
    except ValueError as e:
        raise BackendError("Resposta invalida da API", response.status_code, original_error=e)
    if isinstance(data, dict):
        return data.get("results")
    return None


class CampaignApiClient:
    """Cliente async das rotas /campaign consumidas pela tela de membros."""

    def __init__(self, base_url: Optional[str] = None):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    @retry(
        stop=stop_after_attempt(ApiConfig.MAX_RETRIES),
        wait=wait_exponential(
            multiplier=1,
            min=ApiConfig.RETRY_WAIT_MIN_SECONDS,
            max=ApiConfig.RETRY_WAIT_MAX_SECONDS,
        ),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _get(self, path: str, params: Optional[dict] = None) -> httpx.Response:
        """GET com retry; so falhas de transporte sao repetidas."""
        client = await get_http_client()
        response = await client.get(self._url(path), params=params)
        response.raise_for_status()
        return response

    async def _read(self, path: str, params: Optional[dict] = None) -> Any:
        try:
            response = await self._get(path, params)
        except httpx.HTTPStatusError as e:
            raise BackendError(
                _mensagem_erro(e.response), e.response.status_code, original_error=e
            ) from e
        except httpx.HTTPError as e:
            logger.warning(f"Falha de rede em GET {path}: {e}")
            raise BackendError(f"Falha de comunicacao com a API: {e}", original_error=e) from e
        return _unwrap(response)

    async def _write(self, method: str, path: str, **kwargs) -> Any:
        client = await get_http_client()
        try:
            if method == "POST":
                response = await client.post(self._url(path), **kwargs)
            elif method == "DELETE":
                response = await client.delete(self._url(path), **kwargs)
            else:
                raise ValueError(f"Metodo nao suportado: {method}")
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise BackendError(
                _mensagem_erro(e.response), e.response.status_code, original_error=e
            ) from e
        except httpx.HTTPError as e:
            logger.warning(f"Falha de rede em {method} {path}: {e}")
            raise BackendError(f"Falha de comunicacao com a API: {e}", original_error=e) from e
        return _unwrap(response)

    async def list_customers(
        self,
        page: int,
        page_size: int,
        search: str = "",
        filter_group_id: Optional[str] = None,
        filter_type: Optional[FilterMode] = None,
    ) -> Page:
        """
        Busca uma pagina de candidatos.

        Args:
            page: Numero da pagina (comeca em 1)
            page_size: Capacidade da pagina
            search: Texto de busca (omitido se vazio)
            filter_group_id: Grupo de referencia do filtro de membros
            filter_type: member/non_member; ALL ou None nao filtra

        Returns:
            Page com candidatos e total
        """
        params = {"page": page, "page_size": page_size}
        if search:
            params["search"] = search
        if filter_type is not None and filter_type is not FilterMode.ALL:
            params["filter_group_id"] = filter_group_id
            params["filter_type"] = filter_type.value

        return Page.from_dict(await self._read("/customers", params))

    async def get_group(self, group_id: str) -> GroupDetail:
        """Busca o grupo com a lista completa de membros."""
        data = await self._read(f"/groups/{group_id}")
        if not data:
            raise BackendError(f"Grupo {group_id} sem dados na resposta")
        return GroupDetail.from_dict(data)

    async def add_members(self, group_id: str, customer_ids: List[str]) -> None:
        """Adiciona clientes ao grupo em uma unica chamada."""
        await self._write(
            "POST",
            f"/groups/{group_id}/members",
            json={"customer_ids": list(customer_ids)},
        )
        logger.info(f"{len(customer_ids)} cliente(s) adicionados ao grupo {group_id}")

    async def remove_member(self, group_id: str, customer_id: str) -> None:
        """Remove um cliente do grupo (nao existe remocao em lote na API)."""
        await self._write("DELETE", f"/groups/{group_id}/members/{customer_id}")
        logger.info(f"Cliente {customer_id} removido do grupo {group_id}")

    async def import_customers(
        self,
        content: bytes,
        filename: str = "customers.csv",
        group_id: Optional[str] = None,
    ) -> ImportResult:
        """
        Envia CSV para importacao de clientes.

        Args:
            content: Bytes do arquivo CSV
            filename: Nome do arquivo enviado
            group_id: Se informado, os importados entram no grupo

        Returns:
            ImportResult com quantidade importada e erros por linha
        """
        data = {"group_id": group_id} if group_id else None
        result = ImportResult.from_dict(
            await self._write(
                "POST",
                "/customers/import",
                files={"file": (filename, content, "text/csv")},
                data=data,
            )
        )
        logger.info(f"Importacao concluida: {result.imported} importados, {len(result.errors)} erros")
        return result
