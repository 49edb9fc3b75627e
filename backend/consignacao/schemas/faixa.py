from pydantic import BaseModel, Field, EmailStr, model_validator
from typing import Optional, List
from datetime import datetime
from consignacao.models.atribuicao import TipoAtribuicao


class FaixaCreate(BaseModel):
    """Schema para concessão de faixa"""
    tipo_atribuicao: TipoAtribuicao
    entidade_id: str = Field(..., min_length=1, max_length=64)
    numero_inicial: int = Field(..., gt=0)
    numero_final: int = Field(..., gt=0)
    concedido_por: str = Field(..., min_length=1, max_length=100, description="Administrador que concedeu")
    nome_atribuido: Optional[str] = Field(None, max_length=200)
    email_atribuido: Optional[EmailStr] = None
    observacoes: Optional[str] = None

    @model_validator(mode="after")
    def validar_ordem(self):
        """Ordem da faixa (piso e tamanho são validados no serviço)"""
        if self.numero_final < self.numero_inicial:
            raise ValueError("numero_final deve ser maior ou igual a numero_inicial")
        return self


class FaixaResponse(BaseModel):
    """Schema para resposta da API"""
    id: int
    codigo: str
    tipo_atribuicao: TipoAtribuicao
    entidade_id: str
    nome_atribuido: Optional[str] = None
    email_atribuido: Optional[str] = None
    numero_inicial: int
    numero_final: int
    total_numeros: int
    faixa_display: str
    concedido_por: str
    concedido_em: datetime
    observacoes: Optional[str] = None
    ativo: bool
    revogado_em: Optional[datetime] = None

    class Config:
        from_attributes = True


class FaixaListResponse(BaseModel):
    """Schema para listagem paginada"""
    items: List[FaixaResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class MaiorNumeroResponse(BaseModel):
    maior_numero: int
    proximo_inicio: int


class ResumoQuotaResponse(BaseModel):
    """Quota calculada na leitura"""
    possui_atribuicao: bool
    faixas: List[FaixaResponse]
    total_atribuido: int
    total_usado: int
    total_disponivel: int
    percentual_uso: int
