from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from datetime import datetime, date
from decimal import Decimal
from consignacao.models.atribuicao import TipoAtribuicao
from consignacao.models.fatura import StatusFatura


class FaturaCreate(BaseModel):
    """Schema para geração de fatura"""
    tipo_atribuicao: TipoAtribuicao
    entidade_id: str = Field(..., min_length=1, max_length=64)
    data_inicio: datetime
    data_fim: datetime
    percentual_combustivel: Optional[Decimal] = Field(None, ge=0, le=100, description="Default: 15%")
    criado_por: Optional[str] = Field(None, max_length=100)

    @model_validator(mode="after")
    def validar_periodo(self):
        if self.data_fim < self.data_inicio:
            raise ValueError("data_fim deve ser maior ou igual a data_inicio")
        return self


class FaturaPagamento(BaseModel):
    """Schema para registrar pagamento"""
    forma_pagamento: Optional[str] = Field(None, max_length=50)
    referencia_pagamento: Optional[str] = Field(None, max_length=100)


class ItemFaturaResponse(BaseModel):
    id: int
    uso_id: int
    numero_consignacao: int
    data_reserva: datetime
    peso: Decimal
    valor_frete: Decimal
    taxa_awb: Decimal
    valor_combustivel: Decimal
    valor_cgst: Decimal
    valor_sgst: Decimal
    valor_total: Decimal

    class Config:
        from_attributes = True


class FaturaResumoResponse(BaseModel):
    """Fatura sem itens (listagens)"""
    id: int
    numero: str
    tipo_atribuicao: TipoAtribuicao
    entidade_id: str
    data_inicio: datetime
    data_fim: datetime
    data_vencimento: date
    percentual_combustivel: Decimal
    subtotal: Decimal
    total_awb: Decimal
    total_combustivel: Decimal
    total_cgst: Decimal
    total_sgst: Decimal
    total_geral: Decimal
    status: StatusFatura
    data_pagamento: Optional[datetime] = None
    forma_pagamento: Optional[str] = None
    referencia_pagamento: Optional[str] = None
    criado_por: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class FaturaResponse(FaturaResumoResponse):
    """Schema para resposta da API"""
    itens: List[ItemFaturaResponse] = []


class FaturaListResponse(BaseModel):
    """Schema para listagem paginada"""
    items: List[FaturaResumoResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class ResumoFaturasResponse(BaseModel):
    total_faturas: int
    faturas_em_aberto: int
    faturas_vencidas: int
    faturas_pagas: int
    valor_total: Decimal
    valor_em_aberto: Decimal
    valor_pago: Decimal
