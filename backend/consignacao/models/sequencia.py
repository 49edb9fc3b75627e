"""
Modelo para controle de sequências numéricas
Garante que números nunca reiniciem mesmo se registros forem deletados
"""
from sqlalchemy import Column, Integer, String, UniqueConstraint
from consignacao.models.base import Base


class Sequencia(Base):
    """
    Armazena o último número usado para cada tipo de sequência por escopo/ano.
    Esta tabela NUNCA deve ser limpa, garantindo sequência contínua.

    A linha (escopo, prefixo, ano) também serve de trava: quem precisa
    serializar uma operação (ex: concessão de faixas) faz SELECT ... FOR UPDATE nela.
    """
    __tablename__ = "sequencias"

    id = Column(Integer, primary_key=True, index=True)
    escopo = Column(String(80), nullable=False, index=True)  # "global" ou "corporate:<id>"
    prefixo = Column(String(10), nullable=False)  # FX, FT
    ano = Column(Integer, nullable=False)
    ultimo_numero = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint('escopo', 'prefixo', 'ano', name='uq_sequencia_escopo_prefixo_ano'),
    )
