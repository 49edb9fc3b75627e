"""
Rotas de Consignações
Alocação de números e consulta do livro de uso
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional, List
from datetime import datetime
from consignacao.api.deps import get_db
from consignacao.models.atribuicao import TipoAtribuicao
from consignacao.models.uso_consignacao import StatusPagamento, TipoPagamento
from consignacao.schemas.consignacao import (
    ProximoNumeroResponse,
    AlocacaoRequest,
    UsoResponse,
    UsoListResponse,
    StatusReservaUpdate
)
from consignacao.services.alocador_service import alocador_service
from consignacao.services.uso_service import uso_service

router = APIRouter()


@router.get("/{tipo_atribuicao}/{entidade_id}/proximo", response_model=ProximoNumeroResponse)
def proximo_numero(
    tipo_atribuicao: TipoAtribuicao,
    entidade_id: str,
    db: Session = Depends(get_db)
):
    """Próximo número livre (apenas sugestão, nada é reservado)"""
    return {"numero_consignacao": alocador_service.proximo_numero(db, tipo_atribuicao, entidade_id)}


@router.post("/{tipo_atribuicao}/{entidade_id}/alocar", response_model=UsoResponse, status_code=201)
def alocar(
    tipo_atribuicao: TipoAtribuicao,
    entidade_id: str,
    dados: AlocacaoRequest,
    db: Session = Depends(get_db)
):
    """Alocar e registrar o próximo número para uma reserva"""
    return alocador_service.alocar_e_registrar(db, tipo_atribuicao, entidade_id, dados.model_dump())


@router.get("/{tipo_atribuicao}/{entidade_id}/uso", response_model=UsoListResponse)
def listar_uso(
    tipo_atribuicao: TipoAtribuicao,
    entidade_id: str,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status_pagamento: Optional[StatusPagamento] = Query(None),
    data_inicio: Optional[datetime] = Query(None),
    data_fim: Optional[datetime] = Query(None),
    db: Session = Depends(get_db)
):
    """Histórico de uso da entidade (manifesto/despacho)"""
    return uso_service.listar_uso(
        db, tipo_atribuicao, entidade_id,
        status_pagamento=status_pagamento,
        data_inicio=data_inicio,
        data_fim=data_fim,
        page=page,
        page_size=page_size
    )


@router.get("/{tipo_atribuicao}/{entidade_id}/nao-pagos", response_model=List[UsoResponse])
def listar_nao_pagos(
    tipo_atribuicao: TipoAtribuicao,
    entidade_id: str,
    tipo_pagamento: Optional[TipoPagamento] = Query(None),
    db: Session = Depends(get_db)
):
    """Envios em aberto, mais recentes primeiro"""
    return uso_service.buscar_nao_pagos(db, tipo_atribuicao, entidade_id, tipo_pagamento)


@router.get("/{tipo_atribuicao}/{entidade_id}/nao-pagos-periodo", response_model=List[UsoResponse])
def listar_nao_pagos_periodo(
    tipo_atribuicao: TipoAtribuicao,
    entidade_id: str,
    data_inicio: datetime = Query(...),
    data_fim: datetime = Query(...),
    db: Session = Depends(get_db)
):
    """Envios FP em aberto no período, mais antigos primeiro"""
    return uso_service.buscar_nao_pagos_periodo(db, tipo_atribuicao, entidade_id, data_inicio, data_fim)


@router.patch("/uso/{uso_id}/status-reserva", response_model=UsoResponse)
def atualizar_status_reserva(
    uso_id: int,
    dados: StatusReservaUpdate,
    db: Session = Depends(get_db)
):
    """Cancelar ou concluir a reserva (o número continua consumido)"""
    return uso_service.atualizar_status_reserva(db, uso_id, dados.status_reserva)
