from conftest import PISO

API = "/api/v1"


def _conceder(client, inicio, fim, entidade="CORP001"):
    return client.post(f"{API}/faixas/", json={
        "tipo_atribuicao": "corporate",
        "entidade_id": entidade,
        "numero_inicial": inicio,
        "numero_final": fim,
        "concedido_por": "admin",
        "email_atribuido": "ops@corp.example.com"
    })


def _alocar(client, referencia, **extra):
    corpo = {"referencia_reserva": referencia, "valor_frete": "1000", "valor_total": "1380"}
    corpo.update(extra)
    return client.post(f"{API}/consignacoes/corporate/CORP001/alocar", json=corpo)


def test_health(client) -> None:
    assert client.get("/health").json() == {"status": "healthy"}


def test_conceder_e_consultar_faixas(client) -> None:
    resposta = _conceder(client, PISO, PISO + 9)
    assert resposta.status_code == 201
    faixa = resposta.json()
    assert faixa["total_numeros"] == 10
    assert faixa["codigo"].startswith("FX-")

    ativas = client.get(f"{API}/faixas/corporate/CORP001").json()
    assert [f["id"] for f in ativas] == [faixa["id"]]

    listagem = client.get(f"{API}/faixas/", params={"entidade_id": "CORP001"}).json()
    assert listagem["total"] == 1

    maior = client.get(f"{API}/faixas/maior-numero").json()
    assert maior["proximo_inicio"] == PISO + 10


def test_erros_de_concessao(client) -> None:
    assert _conceder(client, PISO - 5, PISO).status_code == 400
    assert _conceder(client, PISO, PISO + 9).status_code == 201

    sobreposta = _conceder(client, PISO + 5, PISO + 20, entidade="CORP002")
    assert sobreposta.status_code == 409
    assert "CORP001" in sobreposta.json()["detail"]

    invertida = _conceder(client, PISO + 30, PISO + 20)
    assert invertida.status_code == 422


def test_alocar_ate_esgotar(client) -> None:
    assert client.get(f"{API}/consignacoes/corporate/CORP001/proximo").status_code == 400

    _conceder(client, PISO, PISO + 1)
    assert client.get(f"{API}/consignacoes/corporate/CORP001/proximo").json() == {"numero_consignacao": PISO}

    primeira = _alocar(client, "BK-1", peso="2")
    segunda = _alocar(client, "BK-2")
    terceira = _alocar(client, "BK-3")

    assert primeira.status_code == 201
    assert primeira.json()["numero_consignacao"] == PISO
    assert primeira.json()["status_pagamento"] == "unpaid"
    assert segunda.json()["numero_consignacao"] == PISO + 1
    assert terceira.status_code == 400
    assert "Solicite ao administrador" in terceira.json()["detail"]

    resumo = client.get(f"{API}/faixas/corporate/CORP001/resumo").json()
    assert resumo["total_usado"] == 2
    assert resumo["total_disponivel"] == 0
    assert resumo["percentual_uso"] == 100


def test_consultas_e_cancelamento_de_uso(client) -> None:
    _conceder(client, PISO, PISO + 9)
    uso = _alocar(client, "BK-1").json()
    _alocar(client, "BK-2", tipo_pagamento="TP")

    assert len(client.get(f"{API}/consignacoes/corporate/CORP001/nao-pagos").json()) == 2
    apenas_tp = client.get(f"{API}/consignacoes/corporate/CORP001/nao-pagos", params={"tipo_pagamento": "TP"}).json()
    assert [u["referencia_reserva"] for u in apenas_tp] == ["BK-2"]

    cancelado = client.patch(f"{API}/consignacoes/uso/{uso['id']}/status-reserva", json={"status_reserva": "cancelled"})
    assert cancelado.json()["status_reserva"] == "cancelled"

    historico = client.get(f"{API}/consignacoes/corporate/CORP001/uso").json()
    assert historico["total"] == 2

    assert client.patch(f"{API}/consignacoes/uso/999/status-reserva", json={"status_reserva": "completed"}).status_code == 404


def test_revogar_faixa(client) -> None:
    faixa = _conceder(client, PISO, PISO + 9).json()

    revogada = client.post(f"{API}/faixas/{faixa['id']}/revogar")

    assert revogada.json()["ativo"] is False
    assert client.get(f"{API}/faixas/corporate/CORP001").json() == []
    assert client.post(f"{API}/faixas/999/revogar").status_code == 404


def test_acerto_e_encargo_manual(client) -> None:
    _conceder(client, PISO, PISO + 9)
    _alocar(client, "BK-1", peso="2", valor_total="500", usado_em="2025-03-10T10:00:00")
    _alocar(client, "BK-2", peso_real="3", valor_total="750", usado_em="2025-03-11T10:00:00")

    params = {"mes": 3, "ano": 2025, "tipo_atribuicao": "corporate", "entidade_id": "CORP001"}
    relatorio = client.get(f"{API}/acertos/", params=params).json()
    assert relatorio["total_transacoes"] == 2
    assert float(relatorio["comissao_total"]) == 50
    assert float(relatorio["encargo_automatico"]) == 1200

    definido = client.put(f"{API}/acertos/encargo-manual", json={
        "mes": 3, "ano": 2025, "valor": "1000",
        "tipo_atribuicao": "corporate", "entidade_id": "CORP001"
    })
    assert definido.status_code == 200

    relatorio = client.get(f"{API}/acertos/", params=params).json()
    assert float(relatorio["encargo_efetivo"]) == 1000
    assert float(relatorio["saldo_restante"]) == 250

    assert client.delete(f"{API}/acertos/encargo-manual", params=params).status_code == 204
    assert client.get(f"{API}/acertos/encargo-manual", params=params).status_code == 404

    assert client.get(f"{API}/acertos/", params={"mes": 13, "ano": 2025}).status_code == 400
    assert client.get(f"{API}/acertos/", params={"mes": 3, "ano": 2025, "entidade_id": "CORP001"}).status_code == 400


def test_faturamento(client) -> None:
    _conceder(client, PISO, PISO + 9)
    _alocar(client, "BK-1", usado_em="2025-03-10T10:00:00")

    corpo = {
        "tipo_atribuicao": "corporate",
        "entidade_id": "CORP001",
        "data_inicio": "2025-03-01T00:00:00",
        "data_fim": "2025-03-31T23:59:59"
    }
    criada = client.post(f"{API}/faturas/", json=corpo)
    assert criada.status_code == 201
    fatura = criada.json()
    assert float(fatura["total_geral"]) == 1380
    assert len(fatura["itens"]) == 1

    assert client.post(f"{API}/faturas/", json=corpo).status_code == 409

    pdf = client.get(f"{API}/faturas/{fatura['id']}/pdf")
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")

    paga = client.patch(f"{API}/faturas/{fatura['id']}/pagar", json={"forma_pagamento": "UPI"})
    assert paga.json()["status"] == "paid"
    assert client.patch(f"{API}/faturas/{fatura['id']}/pagar", json={}).status_code == 400

    assert client.get(f"{API}/faturas/999").status_code == 404


def test_acerto_repetido_devolve_a_mesma_resposta(client) -> None:
    _conceder(client, PISO, PISO + 9)
    _alocar(client, "BK-1", peso="2", valor_total="500", usado_em="2025-03-10T10:00:00")
    _alocar(client, "BK-2", peso_real="2.3456", valor_total="100", usado_em="2025-03-11T10:00:00")

    params = {"mes": 3, "ano": 2025, "tipo_atribuicao": "corporate", "entidade_id": "CORP001"}
    primeira = client.get(f"{API}/acertos/", params=params).json()
    segunda = client.get(f"{API}/acertos/", params=params).json()

    assert primeira == segunda
    assert primeira["comissao_total"] == "43.46"
    assert primeira["encargo_automatico"] == "556.54"


def test_listagem_resumo_e_vencidas_de_faturas(client) -> None:
    _conceder(client, PISO, PISO + 9)
    _alocar(client, "BK-1", usado_em="2025-03-10T10:00:00")
    _alocar(client, "BK-2", usado_em="2025-04-10T10:00:00")

    for inicio, fim in [("2025-03-01T00:00:00", "2025-03-31T23:59:59"), ("2025-04-01T00:00:00", "2025-04-30T23:59:59")]:
        assert client.post(f"{API}/faturas/", json={
            "tipo_atribuicao": "corporate",
            "entidade_id": "CORP001",
            "data_inicio": inicio,
            "data_fim": fim
        }).status_code == 201

    faturas = client.get(f"{API}/faturas/", params={"tipo_atribuicao": "corporate", "entidade_id": "CORP001"}).json()
    assert faturas["total"] == 2
    assert "itens" not in faturas["items"][0]

    client.patch(f"{API}/faturas/{faturas['items'][0]['id']}/pagar", json={})
    em_aberto = client.get(f"{API}/faturas/", params={"status": "unpaid", "page_size": 1}).json()
    assert em_aberto["total"] == 1
    assert em_aberto["total_pages"] == 1

    resumo = client.get(f"{API}/faturas/resumo/corporate/CORP001").json()
    assert resumo["total_faturas"] == 2
    assert resumo["faturas_pagas"] == 1
    assert resumo["faturas_em_aberto"] == 1
    assert float(resumo["valor_total"]) == 2760

    # Vencimento e o fim do mes de emissao: nada vencido ainda
    assert client.get(f"{API}/faturas/vencidas").json() == []
    assert client.get(f"{API}/faturas/", params={"entidade_id": "CORP001"}).status_code == 400
