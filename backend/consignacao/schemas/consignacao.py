from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime
from decimal import Decimal
from consignacao.models.atribuicao import TipoAtribuicao
from consignacao.models.uso_consignacao import StatusPagamento, StatusReserva, TipoPagamento


class ProximoNumeroResponse(BaseModel):
    """Candidato, sem reserva"""
    numero_consignacao: int


class AlocacaoRequest(BaseModel):
    """Dados da reserva que consome o número"""
    referencia_reserva: str = Field(..., min_length=1, max_length=100)
    tipo_pagamento: TipoPagamento = TipoPagamento.FP
    peso: Optional[Decimal] = Field(None, ge=0, description="Peso cobrável (kg)")
    peso_real: Optional[str] = Field(None, max_length=30, description="Peso real como digitado")
    peso_por_kg: Optional[str] = Field(None, max_length=30, description="Peso por kg como digitado")
    valor_frete: Decimal = Field(Decimal("0"), ge=0)
    valor_total: Decimal = Field(Decimal("0"), ge=0)
    dados_reserva: Optional[Dict[str, Any]] = Field(None, description="Snapshot da reserva")
    usado_em: Optional[datetime] = Field(None, description="Data da reserva (default: agora)")


class UsoResponse(BaseModel):
    """Schema para resposta da API"""
    id: int
    tipo_atribuicao: TipoAtribuicao
    entidade_id: str
    numero_consignacao: int
    referencia_reserva: str
    dados_reserva: Optional[Dict[str, Any]] = None
    usado_em: datetime
    status_reserva: StatusReserva
    status_pagamento: StatusPagamento
    tipo_pagamento: TipoPagamento
    fatura_id: Optional[int] = None
    peso: Optional[Decimal] = None
    peso_real: Optional[str] = None
    peso_por_kg: Optional[str] = None
    valor_frete: Decimal
    valor_total: Decimal

    class Config:
        from_attributes = True


class UsoListResponse(BaseModel):
    """Schema para listagem paginada"""
    items: List[UsoResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class StatusReservaUpdate(BaseModel):
    status_reserva: StatusReserva
