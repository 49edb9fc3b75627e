"""
Rotas de Acerto Mensal
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from consignacao.api.deps import get_db, get_entidade_opcional
from consignacao.core.exceptions import RegistroNaoEncontrado
from consignacao.schemas.acerto import RelatorioAcertoResponse, EncargoManualUpdate, EncargoManualResponse
from consignacao.services.acerto_service import acerto_service

router = APIRouter()


@router.get("/", response_model=RelatorioAcertoResponse)
def relatorio_acerto(
    mes: int = Query(...),
    ano: int = Query(...),
    entidade: tuple = Depends(get_entidade_opcional),
    db: Session = Depends(get_db)
):
    """Acerto do período para uma entidade, ou global se nenhuma for informada"""
    tipo_atribuicao, entidade_id = entidade
    return acerto_service.calcular_periodo(db, mes, ano, tipo_atribuicao, entidade_id)


@router.get("/encargo-manual", response_model=EncargoManualResponse)
def obter_encargo_manual(
    mes: int = Query(...),
    ano: int = Query(...),
    entidade: tuple = Depends(get_entidade_opcional),
    db: Session = Depends(get_db)
):
    """Encargo manual vigente (da entidade ou o global do período)"""
    tipo_atribuicao, entidade_id = entidade
    encargo = acerto_service.obter_encargo_manual(db, mes, ano, tipo_atribuicao, entidade_id)
    if not encargo:
        raise RegistroNaoEncontrado("Nenhum encargo manual para o período")
    return encargo


@router.put("/encargo-manual", response_model=EncargoManualResponse)
def definir_encargo_manual(
    dados: EncargoManualUpdate,
    db: Session = Depends(get_db)
):
    """Definir encargo manual (substitui o calculado no relatório)"""
    tipo_atribuicao, entidade_id = get_entidade_opcional(dados.tipo_atribuicao, dados.entidade_id)
    return acerto_service.definir_encargo_manual(
        db,
        dados.mes,
        dados.ano,
        dados.valor,
        tipo_atribuicao=tipo_atribuicao,
        entidade_id=entidade_id,
        observacao=dados.observacao,
        definido_por=dados.definido_por
    )


@router.delete("/encargo-manual", status_code=204)
def remover_encargo_manual(
    mes: int = Query(...),
    ano: int = Query(...),
    entidade: tuple = Depends(get_entidade_opcional),
    db: Session = Depends(get_db)
):
    """Remover encargo manual e voltar ao valor calculado"""
    tipo_atribuicao, entidade_id = entidade
    if not acerto_service.remover_encargo_manual(db, mes, ano, tipo_atribuicao, entidade_id):
        raise RegistroNaoEncontrado("Nenhum encargo manual para o período")
