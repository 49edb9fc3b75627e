from sqlalchemy import Column, DateTime
from datetime import datetime
from consignacao.database import Base


class TimestampMixin:
    """
    Mixin para campos de auditoria temporal
    Todas as tabelas terão created_at e updated_at
    """
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


def valores_enum(enum_cls):
    """
    values_callable para colunas Enum: grava o valor ('corporate', 'unpaid')
    e não o nome do membro
    """
    return [membro.value for membro in enum_cls]


# Base já foi definida em database.py
# Aqui apenas importamos e exportamos para facilitar
__all__ = ['Base', 'TimestampMixin', 'valores_enum']
