"""
Models do sistema - Numeração de consignações

IMPORTANTE: A unicidade de numero consumido é garantida pela constraint
uq_uso_entidade_numero em usos_consignacao, não por verificação na aplicação
"""

from consignacao.models.base import Base, TimestampMixin
from consignacao.models.sequencia import Sequencia
from consignacao.models.atribuicao import AtribuicaoConsignacao, TipoAtribuicao
from consignacao.models.uso_consignacao import (
    UsoConsignacao,
    StatusPagamento,
    TipoPagamento,
    StatusReserva,
    TRANSICOES_PAGAMENTO,
)
from consignacao.models.acerto import LancamentoAcerto, EncargoManualPeriodo
from consignacao.models.fatura import Fatura, ItemFatura, StatusFatura, TRANSICOES_FATURA

__all__ = [
    "Base",
    "TimestampMixin",
    "Sequencia",
    "AtribuicaoConsignacao",
    "TipoAtribuicao",
    "UsoConsignacao",
    "StatusPagamento",
    "TipoPagamento",
    "StatusReserva",
    "TRANSICOES_PAGAMENTO",
    "LancamentoAcerto",
    "EncargoManualPeriodo",
    "Fatura",
    "ItemFatura",
    "StatusFatura",
    "TRANSICOES_FATURA",
]
