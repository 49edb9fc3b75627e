"""
Rotas de Faixas de Numeração
Concessão, consulta e revogação de faixas por entidade
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional, List
from consignacao.api.deps import get_db
from consignacao.models.atribuicao import TipoAtribuicao
from consignacao.schemas.faixa import (
    FaixaCreate,
    FaixaResponse,
    FaixaListResponse,
    MaiorNumeroResponse,
    ResumoQuotaResponse
)
from consignacao.services.faixa_service import faixa_service

router = APIRouter()


@router.post("/", response_model=FaixaResponse, status_code=201)
def conceder_faixa(
    faixa: FaixaCreate,
    db: Session = Depends(get_db)
):
    """Conceder faixa a uma entidade (rejeita sobreposição com qualquer faixa ativa)"""
    return faixa_service.conceder(db, **faixa.model_dump())


@router.get("/", response_model=FaixaListResponse)
def listar_faixas(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    tipo_atribuicao: Optional[TipoAtribuicao] = Query(None),
    entidade_id: Optional[str] = Query(None),
    ativo: Optional[bool] = Query(None),
    db: Session = Depends(get_db)
):
    """Listar faixas com paginação e filtros"""
    return faixa_service.listar(
        db,
        tipo_atribuicao=tipo_atribuicao,
        entidade_id=entidade_id,
        ativo=ativo,
        page=page,
        page_size=page_size
    )


@router.get("/maior-numero", response_model=MaiorNumeroResponse)
def maior_numero(db: Session = Depends(get_db)):
    """Maior número já atribuído e sugestão de início para a próxima faixa"""
    return faixa_service.maior_numero_atribuido(db)


@router.get("/{tipo_atribuicao}/{entidade_id}", response_model=List[FaixaResponse])
def listar_faixas_entidade(
    tipo_atribuicao: TipoAtribuicao,
    entidade_id: str,
    db: Session = Depends(get_db)
):
    """Faixas ativas da entidade, na ordem de consumo"""
    return faixa_service.listar_ativas(db, tipo_atribuicao, entidade_id)


@router.get("/{tipo_atribuicao}/{entidade_id}/resumo", response_model=ResumoQuotaResponse)
def resumo_quota(
    tipo_atribuicao: TipoAtribuicao,
    entidade_id: str,
    db: Session = Depends(get_db)
):
    """Números atribuídos, usados e disponíveis"""
    return faixa_service.resumo_quota(db, tipo_atribuicao, entidade_id)


@router.post("/{atribuicao_id}/revogar", response_model=FaixaResponse)
def revogar_faixa(
    atribuicao_id: int,
    db: Session = Depends(get_db)
):
    """Revogar faixa (números já usados continuam registrados)"""
    return faixa_service.revogar(db, atribuicao_id)
