from sqlalchemy import Column, Integer, BigInteger, String, Numeric, DateTime, Date, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from consignacao.models.base import Base, TimestampMixin, valores_enum
from consignacao.models.atribuicao import TipoAtribuicao
import enum


class StatusFatura(str, enum.Enum):
    UNPAID = "unpaid"
    PAID = "paid"


TRANSICOES_FATURA = {
    StatusFatura.UNPAID: [StatusFatura.PAID],
}


class Fatura(Base, TimestampMixin):
    """
    Fatura consolidada dos envios FP nao pagos de uma entidade num periodo

    Fluxo:
    UNPAID -> PAID (ao pagar, os usos vinculados passam para 'paid')
    """
    __tablename__ = "faturas"

    id = Column(Integer, primary_key=True, index=True)
    numero = Column(String(20), nullable=False, unique=True)  # FT-AAAA-NNNNN

    tipo_atribuicao = Column(
        SQLEnum(TipoAtribuicao, name="tipo_atribuicao_enum", values_callable=valores_enum),
        nullable=False
    )
    entidade_id = Column(String(64), nullable=False)

    # Periodo faturado
    data_inicio = Column(DateTime, nullable=False)
    data_fim = Column(DateTime, nullable=False)
    data_vencimento = Column(Date, nullable=False)

    # Totais
    percentual_combustivel = Column(Numeric(5, 2), nullable=False)
    subtotal = Column(Numeric(15, 2), default=0, nullable=False)
    total_awb = Column(Numeric(15, 2), default=0, nullable=False)
    total_combustivel = Column(Numeric(15, 2), default=0, nullable=False)
    total_cgst = Column(Numeric(15, 2), default=0, nullable=False)
    total_sgst = Column(Numeric(15, 2), default=0, nullable=False)
    total_geral = Column(Numeric(15, 2), default=0, nullable=False)

    # Pagamento
    status = Column(
        SQLEnum(StatusFatura, name="status_fatura_enum", values_callable=valores_enum),
        default=StatusFatura.UNPAID,
        nullable=False
    )
    data_pagamento = Column(DateTime, nullable=True)
    forma_pagamento = Column(String(50), nullable=True)
    referencia_pagamento = Column(String(100), nullable=True)

    criado_por = Column(String(100), nullable=True)

    # Relacionamentos
    itens = relationship("ItemFatura", back_populates="fatura", cascade="all, delete-orphan", order_by="ItemFatura.id")
    usos = relationship("UsoConsignacao", back_populates="fatura")

    __table_args__ = (
        UniqueConstraint('tipo_atribuicao', 'entidade_id', 'data_inicio', 'data_fim', name='uq_fatura_entidade_periodo'),
    )


class ItemFatura(Base):
    """
    Linha da fatura (um envio)
    """
    __tablename__ = "itens_fatura"

    id = Column(Integer, primary_key=True, index=True)
    fatura_id = Column(Integer, ForeignKey("faturas.id"), nullable=False, index=True)
    uso_id = Column(Integer, ForeignKey("usos_consignacao.id"), nullable=False)

    numero_consignacao = Column(BigInteger, nullable=False)
    data_reserva = Column(DateTime, nullable=False)
    peso = Column(Numeric(12, 3), default=0)

    valor_frete = Column(Numeric(15, 2), default=0)
    taxa_awb = Column(Numeric(15, 2), default=0)
    valor_combustivel = Column(Numeric(15, 2), default=0)
    valor_cgst = Column(Numeric(15, 2), default=0)
    valor_sgst = Column(Numeric(15, 2), default=0)
    valor_total = Column(Numeric(15, 2), default=0)

    fatura = relationship("Fatura", back_populates="itens")
