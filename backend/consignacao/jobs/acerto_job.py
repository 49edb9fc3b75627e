"""
Job de preenchimento do acerto mensal
Executa periodicamente o acerto do mes corrente para cada entidade com uso,
gravando peso e comissao dos registros que ainda nao tem lancamento
"""
import logging
from datetime import datetime
from typing import Optional
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.orm import Session
from consignacao.database import SessionLocal
from consignacao.services.acerto_service import acerto_service

logger = logging.getLogger(__name__)

# Scheduler global
scheduler: Optional[BackgroundScheduler] = None


def preencher_acertos(db: Session, mes: int, ano: int) -> dict:
    """
    Roda o acerto do periodo para todas as entidades com uso.
    Falha de uma entidade nao interrompe as demais.

    Returns:
        Resumo {entidades, transacoes, erros}
    """
    entidades = acerto_service.entidades_com_uso(db, mes, ano)

    transacoes = 0
    erros = 0
    for tipo_atribuicao, entidade_id in entidades:
        try:
            relatorio = acerto_service.calcular_periodo(db, mes, ano, tipo_atribuicao, entidade_id)
            transacoes += relatorio["total_transacoes"]
        except Exception:
            db.rollback()
            erros += 1
            logger.exception(f"[ACERTO JOB] Erro em {tipo_atribuicao.value}:{entidade_id}")

    return {"entidades": len(entidades), "transacoes": transacoes, "erros": erros}


def preencher_acertos_mes_corrente():
    """
    Executada pelo scheduler a cada X minutos, com sessao propria.
    """
    agora = datetime.utcnow()
    logger.info(f"[ACERTO JOB] Iniciando preenchimento {agora.month:02d}/{agora.year}")

    db: Session = SessionLocal()
    try:
        resumo = preencher_acertos(db, agora.month, agora.year)
        logger.info(
            f"[ACERTO JOB] Concluido - Entidades: {resumo['entidades']}, "
            f"Transacoes: {resumo['transacoes']}, Erros: {resumo['erros']}"
        )
    finally:
        db.close()


def iniciar_scheduler(intervalo_minutos: int = 60):
    """
    Inicia o scheduler do acerto.

    Args:
        intervalo_minutos: Intervalo entre execucoes (padrao: 60 minutos)
    """
    global scheduler

    if scheduler is not None:
        logger.info("[ACERTO JOB] Scheduler ja iniciado")
        return

    scheduler = BackgroundScheduler()

    scheduler.add_job(
        func=preencher_acertos_mes_corrente,
        trigger=IntervalTrigger(minutes=intervalo_minutos),
        id='acerto_backfill',
        name='Preenchimento do acerto mensal',
        replace_existing=True
    )

    scheduler.start()
    logger.info(f"[ACERTO JOB] Scheduler iniciado - a cada {intervalo_minutos} minutos")


def parar_scheduler():
    """Para o scheduler"""
    global scheduler

    if scheduler is not None:
        scheduler.shutdown()
        scheduler = None
        logger.info("[ACERTO JOB] Scheduler parado")


def status_scheduler() -> dict:
    """Retorna status do scheduler"""
    if scheduler is None:
        return {
            "ativo": False,
            "mensagem": "Scheduler nao iniciado"
        }

    jobs = scheduler.get_jobs()
    return {
        "ativo": True,
        "jobs": [
            {
                "id": job.id,
                "nome": job.name,
                "proxima_execucao": str(job.next_run_time) if job.next_run_time else None
            }
            for job in jobs
        ]
    }
