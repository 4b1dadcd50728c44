"""
Testes do logging estruturado.
"""
import json
import logging

import pytest

from audiencia.core.logging import (
    ColoredFormatter,
    JSONFormatter,
    get_logger,
    setup_logging,
)


@pytest.fixture
def root_logger_restaurado():
    """setup_logging mexe no root logger; restaura ao final."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(msg="Membros recarregados", level=logging.INFO, **attrs):
    record = logging.LogRecord("audiencia.teste", level, __file__, 10, msg, None, None)
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:

    def test_gera_json_com_campos_basicos(self):
        saida = json.loads(JSONFormatter().format(_record()))

        assert saida["level"] == "INFO"
        assert saida["logger"] == "audiencia.teste"
        assert saida["message"] == "Membros recarregados"

    def test_inclui_campos_extras(self):
        record = _record(extra_fields={"grupo_id": "g1"})

        saida = json.loads(JSONFormatter().format(record))

        assert saida["grupo_id"] == "g1"


class TestColoredFormatter:

    def test_colore_nivel(self):
        formatter = ColoredFormatter(fmt="%(levelname)s | %(message)s")

        saida = formatter.format(_record(level=logging.ERROR))

        assert "\033[31m" in saida
        assert "Membros recarregados" in saida


class TestGetLogger:

    def test_sem_campos_retorna_logger(self):
        assert isinstance(get_logger("audiencia.teste"), logging.Logger)

    def test_com_campos_anexa_extra(self, caplog):
        logger = get_logger("audiencia.teste", grupo_id="g1")

        with caplog.at_level(logging.INFO, logger="audiencia.teste"):
            logger.info("Abrindo grupo")

        assert caplog.records[-1].extra_fields == {"grupo_id": "g1"}


class TestSetupLogging:

    def test_producao_usa_json(self, monkeypatch, root_logger_restaurado):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("LOG_LEVEL", "WARNING")

        setup_logging()

        assert len(root_logger_restaurado.handlers) == 1
        assert isinstance(root_logger_restaurado.handlers[0].formatter, JSONFormatter)
        assert root_logger_restaurado.level == logging.WARNING
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_desenvolvimento_usa_cores(self, monkeypatch, root_logger_restaurado):
        monkeypatch.setenv("ENVIRONMENT", "development")
        monkeypatch.delenv("LOG_LEVEL", raising=False)

        setup_logging()

        assert isinstance(root_logger_restaurado.handlers[0].formatter, ColoredFormatter)
        assert root_logger_restaurado.level == logging.INFO
