"""
Models do acerto mensal (settlement)
- LancamentoAcerto: cache de peso/comissao por registro de uso
- EncargoManualPeriodo: encargo do periodo definido manualmente pelo admin
"""
from sqlalchemy import Column, Integer, String, Numeric, Text, ForeignKey, UniqueConstraint, Index, text, Enum as SQLEnum
from sqlalchemy.orm import relationship
from consignacao.models.base import Base, TimestampMixin, valores_enum
from consignacao.models.atribuicao import TipoAtribuicao


class LancamentoAcerto(Base, TimestampMixin):
    """
    Peso e comissao calculados para um registro de uso.

    Uma vez preenchidos (ambos > 0) nao sao recalculados:
    o acerto pode ser reexecutado sem alterar valores ja fechados.
    """
    __tablename__ = "lancamentos_acerto"

    id = Column(Integer, primary_key=True, index=True)
    uso_id = Column(Integer, ForeignKey("usos_consignacao.id"), nullable=False, unique=True)

    mes = Column(Integer, nullable=False)
    ano = Column(Integer, nullable=False)

    peso = Column(Numeric(12, 3), nullable=False, default=0)
    comissao = Column(Numeric(15, 2), nullable=False, default=0)

    uso = relationship("UsoConsignacao")

    __table_args__ = (
        Index('ix_lancamento_periodo', 'ano', 'mes'),
    )


class EncargoManualPeriodo(Base, TimestampMixin):
    """
    Encargo do periodo informado manualmente.

    Quando existe, substitui o encargo calculado no relatorio, mas o valor
    automatico continua sendo calculado e exibido.
    Entidade nula = encargo global do periodo.
    """
    __tablename__ = "encargos_manuais_periodo"

    id = Column(Integer, primary_key=True, index=True)
    mes = Column(Integer, nullable=False)
    ano = Column(Integer, nullable=False)

    tipo_atribuicao = Column(
        SQLEnum(TipoAtribuicao, name="tipo_atribuicao_enum", values_callable=valores_enum),
        nullable=True
    )
    entidade_id = Column(String(64), nullable=True)

    valor = Column(Numeric(15, 2), nullable=False, default=0)
    observacao = Column(Text, nullable=True)
    definido_por = Column(String(100), nullable=True)

    __table_args__ = (
        UniqueConstraint('ano', 'mes', 'tipo_atribuicao', 'entidade_id', name='uq_encargo_periodo_entidade'),
        # NULL nunca e igual a NULL na constraint acima: um unico encargo global por periodo
        Index(
            'uq_encargo_periodo_global', 'ano', 'mes',
            unique=True,
            postgresql_where=text('entidade_id IS NULL'),
            sqlite_where=text('entidade_id IS NULL')
        ),
    )
