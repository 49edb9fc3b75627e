from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from consignacao.core.exceptions import FaixasEsgotadas, PeriodoInvalido
from consignacao.models import EncargoManualPeriodo, LancamentoAcerto, StatusReserva, TipoAtribuicao, UsoConsignacao
from consignacao.services.acerto_service import AcertoService, acerto_service
from consignacao.services.alocador_service import alocador_service
from consignacao.services.uso_service import uso_service

from conftest import ENTIDADE, PISO, TIPO, conceder, dados_reserva, registrar


def _uso(**campos) -> UsoConsignacao:
    return UsoConsignacao(**campos)


def test_fluxo_completo_com_acerto(db) -> None:
    conceder(db, 871026572, 871026574)

    reservas = [("BK-1", "2", "500"), ("BK-2", "3", "750"), ("BK-3", "0", "300")]
    numeros = []
    for referencia, peso, total in reservas:
        uso = alocador_service.alocar_e_registrar(
            db, TIPO, ENTIDADE, dados_reserva(referencia, peso=peso, valor_total=total)
        )
        numeros.append(uso.numero_consignacao)

    assert numeros == [871026572, 871026573, 871026574]
    with pytest.raises(FaixasEsgotadas):
        alocador_service.alocar_e_registrar(db, TIPO, ENTIDADE, dados_reserva("BK-4"))

    relatorio = acerto_service.calcular_periodo(db, 3, 2025, TIPO, ENTIDADE)

    assert relatorio["total_transacoes"] == 3
    assert relatorio["peso_total"] == 5
    assert relatorio["comissao_total"] == 50
    assert relatorio["total_geral"] == 1550
    assert relatorio["encargo_automatico"] == 1500
    assert relatorio["encargo_manual"] is None
    assert relatorio["encargo_efetivo"] == 1500
    assert relatorio["saldo_restante"] == 50


def test_acerto_e_idempotente(db) -> None:
    conceder(db, PISO, PISO + 9)
    registrar(db, PISO, peso=Decimal("2"), valor_total=Decimal("500"))
    registrar(db, PISO + 1, peso_real="1.5", valor_total=Decimal("200"))
    registrar(db, PISO + 2, valor_total=Decimal("100"))

    primeiro = acerto_service.calcular_periodo(db, 3, 2025, TIPO, ENTIDADE)
    segundo = acerto_service.calcular_periodo(db, 3, 2025, TIPO, ENTIDADE)

    assert primeiro == segundo
    assert db.query(LancamentoAcerto).count() == 3


def test_lancamento_preenchido_nao_e_recalculado(db) -> None:
    conceder(db, PISO, PISO + 9)
    uso = registrar(db, PISO, peso=Decimal("2"), valor_total=Decimal("500"))
    acerto_service.calcular_periodo(db, 3, 2025, TIPO, ENTIDADE)

    uso.peso = Decimal("7")
    db.commit()

    relatorio = acerto_service.calcular_periodo(db, 3, 2025, TIPO, ENTIDADE)
    assert relatorio["peso_total"] == 2
    assert relatorio["comissao_total"] == 20


def test_lancamento_zerado_e_preenchido_depois(db) -> None:
    conceder(db, PISO, PISO + 9)
    uso = registrar(db, PISO, valor_total=Decimal("500"))
    assert acerto_service.calcular_periodo(db, 3, 2025, TIPO, ENTIDADE)["peso_total"] == 0

    uso.peso_real = "4"
    db.commit()

    relatorio = acerto_service.calcular_periodo(db, 3, 2025, TIPO, ENTIDADE)
    assert relatorio["peso_total"] == 4
    assert relatorio["comissao_total"] == 40


@pytest.mark.parametrize(
    "campos, esperado",
    [
        ({"peso": Decimal("2.5"), "peso_real": "9"}, Decimal("2.5")),
        ({"peso": Decimal("0"), "peso_real": "3.2"}, Decimal("3.2")),
        ({"peso": None, "peso_real": "2.5 kg"}, Decimal("2.5")),
        ({"peso_real": "abc", "peso_por_kg": "4"}, Decimal("4")),
        ({"peso_real": "", "peso_por_kg": ".5"}, Decimal("0.5")),
        ({"peso_real": "n/a", "peso_por_kg": "?"}, Decimal("0")),
        ({}, Decimal("0")),
    ],
)
def test_extrair_peso(campos, esperado) -> None:
    assert acerto_service.extrair_peso(_uso(**campos)) == esperado


def test_apenas_peso_real(db) -> None:
    conceder(db, PISO, PISO + 9)
    registrar(db, PISO, peso_real="2.5", valor_total=Decimal("100"))

    relatorio = acerto_service.calcular_periodo(db, 3, 2025, TIPO, ENTIDADE)

    assert relatorio["peso_total"] == Decimal("2.5")
    assert relatorio["comissao_total"] == 25


def test_reservas_canceladas_e_outros_meses_ficam_fora(db) -> None:
    conceder(db, PISO, PISO + 9)
    registrar(db, PISO, peso=Decimal("1"), valor_total=Decimal("100"), usado_em=datetime(2025, 3, 1, 0, 0))
    registrar(db, PISO + 1, peso=Decimal("1"), valor_total=Decimal("100"), usado_em=datetime(2025, 3, 31, 23, 59, 59))
    registrar(db, PISO + 2, peso=Decimal("1"), valor_total=Decimal("100"), usado_em=datetime(2025, 4, 1))
    cancelado = registrar(db, PISO + 3, peso=Decimal("1"), valor_total=Decimal("100"))
    uso_service.atualizar_status_reserva(db, cancelado.id, StatusReserva.CANCELLED)

    relatorio = acerto_service.calcular_periodo(db, 3, 2025, TIPO, ENTIDADE)

    assert relatorio["total_transacoes"] == 2
    assert relatorio["total_geral"] == 200


def test_acerto_global_soma_todas_as_entidades(db) -> None:
    conceder(db, PISO, PISO + 9)
    conceder(db, PISO + 10, PISO + 19, tipo=TipoAtribuicao.MEDICINE, entidade="MED-1")
    registrar(db, PISO, peso=Decimal("1"), valor_total=Decimal("100"))
    registrar(db, PISO + 10, tipo=TipoAtribuicao.MEDICINE, entidade="MED-1", peso=Decimal("2"), valor_total=Decimal("300"))

    relatorio = acerto_service.calcular_periodo(db, 3, 2025)

    assert relatorio["total_transacoes"] == 2
    assert relatorio["total_geral"] == 400
    assert relatorio["comissao_total"] == 30


def test_encargo_manual_substitui_o_calculado(db) -> None:
    conceder(db, PISO, PISO + 9)
    registrar(db, PISO, peso=Decimal("2"), valor_total=Decimal("500"))

    acerto_service.definir_encargo_manual(db, 3, 2025, Decimal("300"), TIPO, ENTIDADE, observacao="Ajuste")
    relatorio = acerto_service.calcular_periodo(db, 3, 2025, TIPO, ENTIDADE)

    assert relatorio["encargo_automatico"] == 480
    assert relatorio["encargo_manual"] == 300
    assert relatorio["encargo_efetivo"] == 300
    assert relatorio["saldo_restante"] == 200

    assert acerto_service.remover_encargo_manual(db, 3, 2025, TIPO, ENTIDADE) is True
    assert acerto_service.remover_encargo_manual(db, 3, 2025, TIPO, ENTIDADE) is False
    assert acerto_service.calcular_periodo(db, 3, 2025, TIPO, ENTIDADE)["encargo_efetivo"] == 480


def test_encargo_da_entidade_tem_precedencia_sobre_o_global(db) -> None:
    acerto_service.definir_encargo_manual(db, 3, 2025, Decimal("100"))
    acerto_service.definir_encargo_manual(db, 3, 2025, Decimal("200"), TIPO, ENTIDADE)

    assert acerto_service.obter_encargo_manual(db, 3, 2025, TIPO, ENTIDADE).valor == 200
    assert acerto_service.obter_encargo_manual(db, 3, 2025, TIPO, "OUTRA").valor == 100
    assert acerto_service.obter_encargo_manual(db, 3, 2025).valor == 100
    assert acerto_service.obter_encargo_manual(db, 4, 2025) is None


def test_definir_encargo_substitui_o_anterior(db) -> None:
    primeiro = acerto_service.definir_encargo_manual(db, 3, 2025, Decimal("100"))
    segundo = acerto_service.definir_encargo_manual(db, 3, 2025, Decimal("150"))

    assert primeiro.id == segundo.id
    assert segundo.valor == 150


@pytest.mark.parametrize("mes, ano", [(0, 2025), (13, 2025), (6, 2019), (6, 2101)])
def test_periodo_invalido(db, mes, ano) -> None:
    with pytest.raises(PeriodoInvalido):
        acerto_service.calcular_periodo(db, mes, ano)
    with pytest.raises(PeriodoInvalido):
        acerto_service.definir_encargo_manual(db, mes, ano, Decimal("10"))


def test_limites_periodo() -> None:
    inicio, fim = acerto_service.limites_periodo(2, 2024)

    assert inicio == datetime(2024, 2, 1)
    assert fim == datetime(2024, 2, 29, 23, 59, 59, 999999)


def _como_texto(relatorio: dict) -> dict:
    """Valores como seriam serializados (Decimal('20.000') != Decimal('20.00') em texto)"""
    texto = {chave: str(valor) for chave, valor in relatorio.items() if chave != "linhas"}
    texto["linhas"] = [{chave: str(valor) for chave, valor in linha.items()} for linha in relatorio["linhas"]]
    return texto


def test_acerto_repetido_tem_mesma_escala_com_peso_fracionado(db) -> None:
    conceder(db, PISO, PISO + 9)
    registrar(db, PISO, peso_real="2.3456", valor_total=Decimal("100"))
    registrar(db, PISO + 1, peso=Decimal("2"), valor_total=Decimal("500"))

    primeiro = acerto_service.calcular_periodo(db, 3, 2025, TIPO, ENTIDADE)
    segundo = acerto_service.calcular_periodo(db, 3, 2025, TIPO, ENTIDADE)

    assert _como_texto(primeiro) == _como_texto(segundo)
    assert str(primeiro["linhas"][0]["peso"]) == "2.346"
    assert str(primeiro["linhas"][0]["comissao"]) == "23.46"
    assert str(primeiro["comissao_total"]) == "43.46"
    assert str(primeiro["encargo_automatico"]) == "556.54"

    lancamento = db.query(LancamentoAcerto).order_by(LancamentoAcerto.id).first()
    assert lancamento.peso == Decimal("2.346")
    assert lancamento.comissao == Decimal("23.46")


def test_novo_uso_altera_apenas_a_sua_parcela(db) -> None:
    conceder(db, PISO, PISO + 9)
    registrar(db, PISO, peso=Decimal("2"), valor_total=Decimal("500"))
    registrar(db, PISO + 1, peso_real="1.25", valor_total=Decimal("200"))

    antes = acerto_service.calcular_periodo(db, 3, 2025, TIPO, ENTIDADE)

    registrar(db, PISO + 2, peso=Decimal("3.5"), valor_total=Decimal("300"), usado_em=datetime(2025, 3, 20))
    depois = acerto_service.calcular_periodo(db, 3, 2025, TIPO, ENTIDADE)

    assert depois["total_transacoes"] == antes["total_transacoes"] + 1
    assert depois["peso_total"] - antes["peso_total"] == Decimal("3.5")
    assert depois["comissao_total"] - antes["comissao_total"] == 35
    assert depois["total_geral"] - antes["total_geral"] == 300
    assert depois["encargo_automatico"] - antes["encargo_automatico"] == 265
    assert depois["saldo_restante"] - antes["saldo_restante"] == 35

    anteriores = {linha["uso_id"]: linha for linha in antes["linhas"]}
    for linha in depois["linhas"]:
        if linha["uso_id"] in anteriores:
            assert str(linha["peso"]) == str(anteriores[linha["uso_id"]]["peso"])
            assert str(linha["comissao"]) == str(anteriores[linha["uso_id"]]["comissao"])


def test_encargo_global_e_unico_por_periodo(db) -> None:
    db.add(EncargoManualPeriodo(mes=3, ano=2025, valor=Decimal("100")))
    db.commit()

    db.add(EncargoManualPeriodo(mes=3, ano=2025, valor=Decimal("200")))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()

    db.add(EncargoManualPeriodo(mes=4, ano=2025, valor=Decimal("200")))
    db.commit()
    assert db.query(EncargoManualPeriodo).count() == 2


def test_definir_encargo_criado_por_outra_requisicao(db, monkeypatch) -> None:
    acerto_service.definir_encargo_manual(db, 3, 2025, Decimal("100"))

    buscas = []
    buscar_real = AcertoService._buscar_encargo

    def busca_antes_do_insert_concorrente(*args):
        buscas.append(1)
        if len(buscas) == 1:
            return None
        return buscar_real(acerto_service, *args)

    monkeypatch.setattr(acerto_service, "_buscar_encargo", busca_antes_do_insert_concorrente)

    encargo = acerto_service.definir_encargo_manual(db, 3, 2025, Decimal("250"))

    assert encargo.valor == 250
    assert db.query(EncargoManualPeriodo).count() == 1
