import os

# O engine global e criado no import de consignacao.database
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["ENABLE_SCHEDULED_JOBS"] = "false"

from datetime import datetime
from decimal import Decimal
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from consignacao.api.deps import get_db
from consignacao.config import settings
from consignacao.main import app
from consignacao.models import Base, TipoAtribuicao, TipoPagamento
from consignacao.services.faixa_service import faixa_service
from consignacao.services.uso_service import uso_service

TIPO = TipoAtribuicao.CORPORATE
ENTIDADE = "CORP001"
PISO = 871026572


def _sqlite_dsn(db_path: Path) -> str:
    return f"sqlite:///{db_path.as_posix()}"


@pytest.fixture
def engine(tmp_path: Path):
    engine = create_engine(
        _sqlite_dsn(tmp_path / "consignacao.db"),
        connect_args={"check_same_thread": False, "timeout": 30}
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def piso_baixo(monkeypatch):
    """Permite faixas pequenas como [500, 600]"""
    monkeypatch.setattr(settings, "NUMERO_CONSIGNACAO_MINIMO", 1)


def conceder(db, inicio, fim, tipo=TIPO, entidade=ENTIDADE, admin="admin"):
    return faixa_service.conceder(
        db,
        tipo_atribuicao=tipo,
        entidade_id=entidade,
        numero_inicial=inicio,
        numero_final=fim,
        concedido_por=admin
    )


def registrar(db, numero, tipo=TIPO, entidade=ENTIDADE, usado_em=None, **dados):
    dados.setdefault("referencia_reserva", f"BK-{numero}")
    return uso_service.registrar_uso(
        db,
        tipo,
        entidade,
        numero,
        usado_em=usado_em or datetime(2025, 3, 10, 12, 0),
        **dados
    )


def dados_reserva(referencia, peso=None, valor_total="0", valor_frete="0", usado_em=None, **extra):
    dados = {
        "referencia_reserva": referencia,
        "tipo_pagamento": TipoPagamento.FP,
        "peso": Decimal(peso) if peso is not None else None,
        "valor_frete": Decimal(valor_frete),
        "valor_total": Decimal(valor_total),
        "usado_em": usado_em or datetime(2025, 3, 10, 12, 0),
    }
    dados.update(extra)
    return dados
