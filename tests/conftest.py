"""
Configuração global de testes - Fixtures compartilhadas.

Este arquivo contém fixtures reutilizáveis em todos os testes do projeto.
Factories e fakes ficam em tests/fakes.py para poderem ser importados
diretamente pelos módulos de teste.

Usage:
    Fixtures aqui definidas são automaticamente disponíveis em todos os testes.
"""

from unittest.mock import AsyncMock

import pytest

from tests.fakes import (
    FakeCampaignApi,
    FakePrompt,
    criar_candidatos,
    criar_mock_http_response,
)
from audiencia.core.tasks import reset_task_failure_counts


# =============================================================================
# FIXTURES DE DADOS
# =============================================================================


@pytest.fixture
def candidatos():
    """45 candidatos prontos (3 paginas de 20: 20 + 20 + 5)."""
    return criar_candidatos(45)


@pytest.fixture
def fake_api(candidatos):
    """
    Backend fake com grupo g1 contendo c001 e c002, e grupo g2 vazio.

    Uso:
        async def test_algo(fake_api):
            fake_api.fail("add_members")
            fake_api.fail_remove_ids = {"c001"}
    """
    return FakeCampaignApi(candidatos, groups={"g1": ["c001", "c002"], "g2": []})


@pytest.fixture
def prompt():
    """Prompt que confirma tudo e registra avisos."""
    return FakePrompt()


# =============================================================================
# FIXTURES DE MOCKS - Serviços Externos
# =============================================================================


@pytest.fixture
def mock_http_client():
    """
    Mock do httpx.AsyncClient singleton.

    Uso:
        mock_http_client.get.return_value = criar_mock_http_response(200, {...})
    """
    client = AsyncMock()
    client.get = AsyncMock(return_value=criar_mock_http_response(200, {"results": None}))
    client.post = AsyncMock(return_value=criar_mock_http_response(200, {"results": None}))
    client.delete = AsyncMock(return_value=criar_mock_http_response(200, {"results": None}))
    return client


@pytest.fixture(autouse=True)
def _limpar_contadores_tasks():
    """Contadores de falha de tasks sao globais; zera a cada teste."""
    reset_task_failure_counts()
    yield
