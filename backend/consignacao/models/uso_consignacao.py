"""
Livro de uso de numeros de consignacao
Cada linha prova que um numero foi consumido por uma reserva
"""
from sqlalchemy import Column, Integer, BigInteger, String, Numeric, DateTime, ForeignKey, JSON, Index, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from consignacao.models.base import Base, TimestampMixin, valores_enum
from consignacao.models.atribuicao import TipoAtribuicao
from datetime import datetime
import enum


class StatusPagamento(str, enum.Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    INVOICED = "invoiced"


class TipoPagamento(str, enum.Enum):
    FP = "FP"  # Freight Paid
    TP = "TP"  # To Pay


class StatusReserva(str, enum.Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Progressao do pagamento: nunca regride
TRANSICOES_PAGAMENTO = {
    StatusPagamento.UNPAID: [StatusPagamento.PAID, StatusPagamento.INVOICED],
    StatusPagamento.INVOICED: [StatusPagamento.PAID],
    StatusPagamento.PAID: [],
}


class UsoConsignacao(Base, TimestampMixin):
    """
    Registro de consumo de um numero de consignacao.

    Livro somente-inclusao: nunca e deletado. Cancelamento de reserva
    altera status_reserva, mas o numero continua consumido.

    Unicidade: no maximo um registro por (tipo_atribuicao, entidade_id, numero_consignacao).
    E a constraint do banco que garante isso sob concorrencia.
    """
    __tablename__ = "usos_consignacao"

    id = Column(Integer, primary_key=True, index=True)

    # Entidade que consumiu o numero
    tipo_atribuicao = Column(
        SQLEnum(TipoAtribuicao, name="tipo_atribuicao_enum", values_callable=valores_enum),
        nullable=False
    )
    entidade_id = Column(String(64), nullable=False)

    numero_consignacao = Column(BigInteger, nullable=False)
    referencia_reserva = Column(String(100), nullable=False, index=True)
    dados_reserva = Column(JSON, nullable=True)  # Snapshot da reserva no momento do uso

    usado_em = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    status_reserva = Column(
        SQLEnum(StatusReserva, name="status_reserva_enum", values_callable=valores_enum),
        default=StatusReserva.ACTIVE,
        nullable=False
    )

    # Pagamento
    status_pagamento = Column(
        SQLEnum(StatusPagamento, name="status_pagamento_enum", values_callable=valores_enum),
        default=StatusPagamento.UNPAID,
        nullable=False,
        index=True
    )
    tipo_pagamento = Column(
        SQLEnum(TipoPagamento, name="tipo_pagamento_enum", values_callable=valores_enum),
        default=TipoPagamento.FP,
        nullable=False
    )
    fatura_id = Column(Integer, ForeignKey("faturas.id"), nullable=True, index=True)

    # Valores copiados da reserva (nao recalculados depois)
    peso = Column(Numeric(12, 3), nullable=True)  # Peso cobravel
    peso_real = Column(String(30), nullable=True)  # Como digitado na reserva
    peso_por_kg = Column(String(30), nullable=True)  # Como digitado na reserva
    valor_frete = Column(Numeric(15, 2), default=0, nullable=False)
    valor_total = Column(Numeric(15, 2), default=0, nullable=False)

    # Relacionamentos
    fatura = relationship("Fatura", back_populates="usos")

    __table_args__ = (
        UniqueConstraint(
            'tipo_atribuicao', 'entidade_id', 'numero_consignacao',
            name='uq_uso_entidade_numero'
        ),
        Index('ix_uso_entidade_pagamento', 'tipo_atribuicao', 'entidade_id', 'status_pagamento'),
    )

    def __repr__(self):
        return f"<UsoConsignacao #{self.numero_consignacao} {self.tipo_atribuicao.value}:{self.entidade_id}>"
