"""
Configurações da aplicação.
Carrega variáveis de ambiente.
"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Configurações carregadas do .env"""

    # App
    APP_NAME: str = "Audiencia Campanhas"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # API de campanhas (grupos, clientes, importacao)
    # Todas as rotas ficam sob o prefixo /campaign do backend
    API_BASE_URL: str = "http://localhost:3000/campaign"
    API_TIMEOUT_SECONDS: float = 30.0

    # Lista de candidatos (scroll infinito)
    PAGE_SIZE: int = 20  # Itens por pagina; pagina menor que isso = fim da lista
    SCROLL_THRESHOLD_PX: int = 50  # Distancia do fim que dispara a proxima pagina

    # Busca
    SEARCH_DEBOUNCE_MS: int = 500

    @property
    def search_debounce_seconds(self) -> float:
        """Periodo de silencio da busca em segundos (asyncio trabalha em segundos)."""
        return self.SEARCH_DEBOUNCE_MS / 1000

    @property
    def api_base_url(self) -> str:
        """URL base sem barra final, pronta para concatenar rotas."""
        return self.API_BASE_URL.rstrip("/")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignora variáveis extras do .env


class ApiConfig:
    """
    Configuracoes do cliente HTTP da API de campanhas.

    Retry vale apenas para leituras (GET); escritas nunca sao repetidas.
    """

    # Retry
    MAX_RETRIES: int = 3
    RETRY_WAIT_MIN_SECONDS: float = 0.5
    RETRY_WAIT_MAX_SECONDS: float = 5.0

    # Pool de conexoes
    MAX_CONNECTIONS: int = 100
    MAX_KEEPALIVE_CONNECTIONS: int = 20
    KEEPALIVE_EXPIRY_SECONDS: float = 30.0

    # Timeouts (segundos)
    CONNECT_TIMEOUT: float = 10.0
    POOL_TIMEOUT: float = 5.0


@lru_cache()
def get_settings() -> Settings:
    """Retorna instância cacheada das configurações."""
    return Settings()


settings = get_settings()
