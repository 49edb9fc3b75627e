"""
Faixas de numeração de consignação atribuídas a cada entidade
(corporativo, usuário de escritório, entregador, conta de medicamentos)
"""
from sqlalchemy import Column, Integer, BigInteger, String, Text, Boolean, DateTime, Index, CheckConstraint, Enum as SQLEnum
from consignacao.models.base import Base, TimestampMixin, valores_enum
from datetime import datetime
import enum


class TipoAtribuicao(str, enum.Enum):
    """Tipos de entidade que podem receber faixas de numeração"""
    CORPORATE = "corporate"
    OFFICE_USER = "office_user"
    COURIER_BOY = "courier_boy"
    MEDICINE = "medicine"


class AtribuicaoConsignacao(Base, TimestampMixin):
    """
    Faixa [numero_inicial, numero_final] concedida por um administrador.

    Regras:
    - Entre as faixas ATIVAS não pode haver sobreposição (no sistema inteiro,
      não só por entidade: a numeração é um espaço global)
    - Uma entidade pode ter várias faixas; elas são consumidas em ordem
      crescente de numero_inicial
    - Nunca é alterada depois de criada, exceto o campo `ativo` (revogação)
    """
    __tablename__ = "atribuicoes_consignacao"

    id = Column(Integer, primary_key=True, index=True)
    codigo = Column(String(20), nullable=False, unique=True)  # FX-2025-00001

    # Dono da faixa
    tipo_atribuicao = Column(
        SQLEnum(TipoAtribuicao, name="tipo_atribuicao_enum", values_callable=valores_enum),
        nullable=False
    )
    entidade_id = Column(String(64), nullable=False)
    nome_atribuido = Column(String(200), nullable=True)
    email_atribuido = Column(String(200), nullable=True)

    # Faixa (inclusiva)
    numero_inicial = Column(BigInteger, nullable=False)
    numero_final = Column(BigInteger, nullable=False)
    total_numeros = Column(Integer, nullable=False)

    # Concessao
    concedido_por = Column(String(100), nullable=False)
    concedido_em = Column(DateTime, default=datetime.utcnow, nullable=False)
    observacoes = Column(Text, nullable=True)

    ativo = Column(Boolean, default=True, nullable=False)
    revogado_em = Column(DateTime, nullable=True)

    __table_args__ = (
        CheckConstraint('numero_final >= numero_inicial', name='ck_atribuicao_faixa_ordenada'),
        Index('ix_atribuicao_entidade', 'tipo_atribuicao', 'entidade_id', 'ativo'),
        Index('ix_atribuicao_faixa', 'numero_inicial', 'numero_final'),
    )

    @property
    def faixa_display(self) -> str:
        return f"{self.numero_inicial} - {self.numero_final}"

    def __repr__(self):
        return f"<AtribuicaoConsignacao {self.codigo} {self.tipo_atribuicao.value}:{self.entidade_id} ({self.faixa_display})>"
