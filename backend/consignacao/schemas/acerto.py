from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from consignacao.models.atribuicao import TipoAtribuicao


class LinhaAcerto(BaseModel):
    """Um registro de uso no relatório"""
    uso_id: int
    numero_consignacao: int
    referencia_reserva: str
    tipo_atribuicao: TipoAtribuicao
    entidade_id: str
    usado_em: datetime
    valor_total: Decimal
    peso: Decimal
    comissao: Decimal


class RelatorioAcertoResponse(BaseModel):
    """Relatório de acerto do período"""
    mes: int
    ano: int
    tipo_atribuicao: Optional[TipoAtribuicao] = None
    entidade_id: Optional[str] = None
    linhas: List[LinhaAcerto]
    total_transacoes: int
    peso_total: Decimal
    comissao_total: Decimal
    total_geral: Decimal
    encargo_automatico: Decimal
    encargo_manual: Optional[Decimal] = Field(None, description="Presente quando há encargo manual no período")
    encargo_efetivo: Decimal
    saldo_restante: Decimal


class EncargoManualUpdate(BaseModel):
    """Schema para definir o encargo manual"""
    mes: int = Field(..., ge=1, le=12)
    ano: int
    valor: Decimal = Field(..., ge=0)
    tipo_atribuicao: Optional[TipoAtribuicao] = Field(None, description="Vazio = encargo global")
    entidade_id: Optional[str] = Field(None, max_length=64)
    observacao: Optional[str] = None
    definido_por: Optional[str] = Field(None, max_length=100)


class EncargoManualResponse(BaseModel):
    """Schema para resposta da API"""
    id: int
    mes: int
    ano: int
    tipo_atribuicao: Optional[TipoAtribuicao] = None
    entidade_id: Optional[str] = None
    valor: Decimal
    observacao: Optional[str] = None
    definido_por: Optional[str] = None
    updated_at: datetime

    class Config:
        from_attributes = True
