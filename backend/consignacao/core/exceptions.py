"""
Erros de dominio da numeracao de consignacoes

Todos herdam de ConsignacaoError e carregam o status HTTP correspondente.
As rotas nao tratam esses erros: o handler registrado em setup_error_handling
converte para a mesma resposta de um HTTPException ({"detail": ...}).
"""
import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ConsignacaoError(Exception):
    status_code = 400
    mensagem_padrao = "Erro na operacao de consignacao"

    def __init__(self, mensagem: str = None):
        self.mensagem = mensagem or self.mensagem_padrao
        super().__init__(self.mensagem)


# ============ FAIXAS ============

class FaixaInvalida(ConsignacaoError):
    """Faixa fora do piso, invertida ou maior que o maximo permitido"""
    mensagem_padrao = "Faixa de numeracao invalida"


class FaixaSobreposta(ConsignacaoError):
    """Faixa cruza outra faixa ativa (em qualquer entidade)"""
    status_code = 409

    def __init__(self, conflitante):
        self.conflitante = conflitante
        super().__init__(
            f"A faixa informada sobrepoe a faixa {conflitante.numero_inicial}-{conflitante.numero_final} "
            f"({conflitante.codigo}) ja atribuida a {conflitante.tipo_atribuicao.value}:{conflitante.entidade_id}"
        )


# ============ ALOCACAO ============

class SemAtribuicao(ConsignacaoError):
    def __init__(self, tipo_atribuicao: str):
        super().__init__(
            f"Nenhuma faixa de consignacao atribuida a este {tipo_atribuicao}. "
            "Solicite ao administrador a atribuicao de numeros antes de fazer reservas."
        )


class FaixasEsgotadas(ConsignacaoError):
    mensagem_padrao = (
        "Todos os numeros de todas as faixas atribuidas ja foram usados. "
        "Solicite ao administrador uma nova faixa."
    )


class AlocacaoContencao(ConsignacaoError):
    """Limite de tentativas excedido disputando numeros com outra requisicao"""
    status_code = 503
    mensagem_padrao = "Muitas reservas simultaneas para esta entidade. Tente novamente."


class UsoDuplicado(ConsignacaoError):
    """
    Sinal interno da constraint de unicidade. O alocador captura e tenta
    de novo; nunca deve chegar ao cliente pela rota de alocacao.
    """
    status_code = 409
    mensagem_padrao = "Este numero de consignacao ja esta em uso"


class NumeroNaoAtribuido(ConsignacaoError):
    mensagem_padrao = "Numero de consignacao fora das faixas ativas desta entidade"


# ============ ACERTO / FATURAMENTO ============

class PeriodoInvalido(ConsignacaoError):
    mensagem_padrao = "Periodo invalido"


class TransicaoStatusInvalida(ConsignacaoError):
    mensagem_padrao = "Transicao de status nao permitida"


class FaturaDuplicada(ConsignacaoError):
    status_code = 409
    mensagem_padrao = "Ja existe fatura para este periodo"


class SemUsosParaFaturar(ConsignacaoError):
    mensagem_padrao = "Nenhum envio FP em aberto no periodo informado"


class RegistroNaoEncontrado(ConsignacaoError):
    status_code = 404
    mensagem_padrao = "Registro nao encontrado"


def setup_error_handling(app: FastAPI):
    """Registra o handler que converte ConsignacaoError em resposta HTTP"""

    @app.exception_handler(ConsignacaoError)
    async def consignacao_error_handler(request: Request, exc: ConsignacaoError):
        if exc.status_code >= 500:
            logger.warning(f"[ERRO] {request.url.path}: {exc.mensagem}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.mensagem}
        )
