"""
Rotas de Faturas
"""
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session
from typing import List, Optional
from consignacao.api.deps import get_db, get_entidade_opcional
from consignacao.models.atribuicao import TipoAtribuicao
from consignacao.models.fatura import StatusFatura
from consignacao.schemas.fatura import (
    FaturaCreate,
    FaturaPagamento,
    FaturaResponse,
    FaturaResumoResponse,
    FaturaListResponse,
    ResumoFaturasResponse
)
from consignacao.services.fatura_service import fatura_service
from consignacao.services.pdf_service import pdf_service

router = APIRouter()


@router.post("/", response_model=FaturaResponse, status_code=201)
def gerar_fatura(
    dados: FaturaCreate,
    db: Session = Depends(get_db)
):
    """Gerar fatura dos envios FP em aberto no período"""
    return fatura_service.gerar_fatura(
        db,
        dados.tipo_atribuicao,
        dados.entidade_id,
        dados.data_inicio,
        dados.data_fim,
        criado_por=dados.criado_por,
        percentual_combustivel=dados.percentual_combustivel
    )


@router.get("/", response_model=FaturaListResponse)
def listar_faturas(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status: Optional[StatusFatura] = Query(None),
    entidade: tuple = Depends(get_entidade_opcional),
    db: Session = Depends(get_db)
):
    """Listar faturas (de uma entidade ou todas) com paginação e filtro de status"""
    tipo_atribuicao, entidade_id = entidade
    return fatura_service.listar_faturas(
        db,
        tipo_atribuicao=tipo_atribuicao,
        entidade_id=entidade_id,
        status=status,
        page=page,
        page_size=page_size
    )


@router.get("/vencidas", response_model=List[FaturaResumoResponse])
def listar_faturas_vencidas(db: Session = Depends(get_db)):
    """Faturas em aberto com vencimento passado"""
    return fatura_service.faturas_vencidas(db)


@router.get("/resumo/{tipo_atribuicao}/{entidade_id}", response_model=ResumoFaturasResponse)
def resumo_faturas(
    tipo_atribuicao: TipoAtribuicao,
    entidade_id: str,
    db: Session = Depends(get_db)
):
    """Quantidades e valores das faturas da entidade"""
    return fatura_service.resumo(db, tipo_atribuicao, entidade_id)


@router.get("/{fatura_id}", response_model=FaturaResponse)
def obter_fatura(
    fatura_id: int,
    db: Session = Depends(get_db)
):
    """Obter fatura com itens"""
    return fatura_service.obter(db, fatura_id)


@router.get("/{fatura_id}/pdf")
def baixar_pdf_fatura(
    fatura_id: int,
    db: Session = Depends(get_db)
):
    """Download do PDF da fatura"""
    fatura = fatura_service.obter(db, fatura_id)
    pdf_bytes = pdf_service.gerar_pdf_fatura(fatura)

    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{fatura.numero}.pdf"'}
    )


@router.patch("/{fatura_id}/pagar", response_model=FaturaResponse)
def pagar_fatura(
    fatura_id: int,
    dados: FaturaPagamento,
    db: Session = Depends(get_db)
):
    """Registrar pagamento da fatura (usos vinculados passam para pago)"""
    return fatura_service.marcar_fatura_paga(
        db,
        fatura_id,
        forma_pagamento=dados.forma_pagamento,
        referencia_pagamento=dados.referencia_pagamento
    )
