"""
Livro de uso de numeros de consignacao
Registro, consulta e progressao de pagamento
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Set
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from consignacao.core.exceptions import UsoDuplicado, NumeroNaoAtribuido
from consignacao.api.utils import get_by_id, transition_status, paginate_response, apply_filters
from consignacao.models.atribuicao import AtribuicaoConsignacao, TipoAtribuicao
from consignacao.models.uso_consignacao import (
    UsoConsignacao, StatusPagamento, StatusReserva, TipoPagamento, TRANSICOES_PAGAMENTO
)

logger = logging.getLogger(__name__)


class UsoService:
    """
    Livro somente-inclusao de numeros consumidos.
    Nao existe operacao de exclusao.
    """

    def _numero_atribuido(
        self,
        db: Session,
        tipo_atribuicao: TipoAtribuicao,
        entidade_id: str,
        numero: int
    ) -> bool:
        return db.query(AtribuicaoConsignacao.id).filter(
            AtribuicaoConsignacao.tipo_atribuicao == tipo_atribuicao,
            AtribuicaoConsignacao.entidade_id == entidade_id,
            AtribuicaoConsignacao.ativo == True,
            AtribuicaoConsignacao.numero_inicial <= numero,
            AtribuicaoConsignacao.numero_final >= numero
        ).first() is not None

    def registrar_uso(
        self,
        db: Session,
        tipo_atribuicao: TipoAtribuicao,
        entidade_id: str,
        numero: int,
        referencia_reserva: str,
        tipo_pagamento: TipoPagamento = TipoPagamento.FP,
        peso: Optional[Decimal] = None,
        valor_frete: Decimal = Decimal("0"),
        valor_total: Decimal = Decimal("0"),
        peso_real: Optional[str] = None,
        peso_por_kg: Optional[str] = None,
        dados_reserva: Optional[dict] = None,
        usado_em: Optional[datetime] = None
    ) -> UsoConsignacao:
        """
        Registra o consumo de um numero.

        A escrita e unica e verificada pela constraint uq_uso_entidade_numero:
        quem chegar depois recebe UsoDuplicado, nunca um segundo registro.

        Raises:
            NumeroNaoAtribuido: numero fora das faixas ativas da entidade
            UsoDuplicado: numero ja consumido por esta entidade
        """
        if not self._numero_atribuido(db, tipo_atribuicao, entidade_id, numero):
            raise NumeroNaoAtribuido(
                f"Numero {numero} nao pertence a nenhuma faixa ativa de {tipo_atribuicao.value}:{entidade_id}"
            )

        uso = UsoConsignacao(
            tipo_atribuicao=tipo_atribuicao,
            entidade_id=entidade_id,
            numero_consignacao=numero,
            referencia_reserva=referencia_reserva,
            dados_reserva=dados_reserva,
            usado_em=usado_em or datetime.utcnow(),
            status_reserva=StatusReserva.ACTIVE,
            status_pagamento=StatusPagamento.UNPAID,
            tipo_pagamento=tipo_pagamento,
            peso=peso,
            peso_real=peso_real,
            peso_por_kg=peso_por_kg,
            valor_frete=valor_frete or 0,
            valor_total=valor_total or 0
        )
        db.add(uso)

        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise UsoDuplicado(f"Numero {numero} ja esta em uso por {tipo_atribuicao.value}:{entidade_id}")

        db.refresh(uso)
        logger.info(f"[USO] #{numero} registrado para {tipo_atribuicao.value}:{entidade_id} (reserva {referencia_reserva})")
        return uso

    def numeros_usados(self, db: Session, tipo_atribuicao: TipoAtribuicao, entidade_id: str) -> Set[int]:
        """Conjunto de numeros ja consumidos pela entidade (inclui reservas canceladas)"""
        linhas = db.query(UsoConsignacao.numero_consignacao).filter(
            UsoConsignacao.tipo_atribuicao == tipo_atribuicao,
            UsoConsignacao.entidade_id == entidade_id
        ).all()
        return {linha[0] for linha in linhas}

    def buscar_nao_pagos(
        self,
        db: Session,
        tipo_atribuicao: TipoAtribuicao,
        entidade_id: str,
        tipo_pagamento: Optional[TipoPagamento] = None
    ) -> List[UsoConsignacao]:
        """Registros em aberto da entidade, mais recentes primeiro"""
        query = db.query(UsoConsignacao).filter(
            UsoConsignacao.tipo_atribuicao == tipo_atribuicao,
            UsoConsignacao.entidade_id == entidade_id,
            UsoConsignacao.status_pagamento == StatusPagamento.UNPAID,
            UsoConsignacao.status_reserva == StatusReserva.ACTIVE
        )
        if tipo_pagamento:
            query = query.filter(UsoConsignacao.tipo_pagamento == tipo_pagamento)

        return query.order_by(UsoConsignacao.usado_em.desc()).all()

    def buscar_nao_pagos_periodo(
        self,
        db: Session,
        tipo_atribuicao: TipoAtribuicao,
        entidade_id: str,
        inicio: datetime,
        fim: datetime
    ) -> List[UsoConsignacao]:
        """Envios FP em aberto com usado_em dentro de [inicio, fim], mais antigos primeiro"""
        return db.query(UsoConsignacao).filter(
            UsoConsignacao.tipo_atribuicao == tipo_atribuicao,
            UsoConsignacao.entidade_id == entidade_id,
            UsoConsignacao.status_pagamento == StatusPagamento.UNPAID,
            UsoConsignacao.tipo_pagamento == TipoPagamento.FP,
            UsoConsignacao.status_reserva == StatusReserva.ACTIVE,
            UsoConsignacao.usado_em >= inicio,
            UsoConsignacao.usado_em <= fim
        ).order_by(UsoConsignacao.usado_em.asc()).all()

    def _transicionar_pagamento(
        self,
        db: Session,
        ids: List[int],
        novo_status: StatusPagamento,
        fatura_id: Optional[int] = None
    ) -> int:
        """
        Aplica a transicao em lote, sem commit.
        Registros que ja estao no status de destino sao ignorados.
        """
        if not ids:
            return 0

        usos = db.query(UsoConsignacao).filter(UsoConsignacao.id.in_(ids)).all()

        alterados = 0
        for uso in usos:
            if uso.status_pagamento == novo_status:
                continue
            transition_status(uso, novo_status, TRANSICOES_PAGAMENTO, field="status_pagamento")
            if fatura_id is not None:
                uso.fatura_id = fatura_id
            alterados += 1

        return alterados

    def marcar_faturados(
        self,
        db: Session,
        ids: List[int],
        fatura_id: int,
        commit: bool = True
    ) -> int:
        """
        unpaid -> invoiced em lote. Idempotente: ja faturados sao ignorados.

        Returns:
            Quantidade de registros alterados
        """
        alterados = self._transicionar_pagamento(db, ids, StatusPagamento.INVOICED, fatura_id=fatura_id)
        if commit:
            db.commit()

        logger.info(f"[USO] {alterados} registro(s) marcados como faturados (fatura {fatura_id})")
        return alterados

    def marcar_pagos(self, db: Session, ids: List[int], commit: bool = True) -> int:
        """unpaid|invoiced -> paid em lote. Idempotente."""
        alterados = self._transicionar_pagamento(db, ids, StatusPagamento.PAID)
        if commit:
            db.commit()

        logger.info(f"[USO] {alterados} registro(s) marcados como pagos")
        return alterados

    def atualizar_status_reserva(self, db: Session, uso_id: int, status: StatusReserva) -> UsoConsignacao:
        """
        Cancela ou conclui a reserva do registro.
        O numero continua consumido: nada e apagado nem liberado.
        """
        uso = get_by_id(db, UsoConsignacao, uso_id, error_message="Registro de uso nao encontrado")

        if uso.status_reserva != status:
            uso.status_reserva = status
            db.commit()
            db.refresh(uso)
            logger.info(f"[USO] #{uso.numero_consignacao} reserva -> {status.value}")

        return uso

    def listar_uso(
        self,
        db: Session,
        tipo_atribuicao: TipoAtribuicao,
        entidade_id: str,
        status_pagamento: Optional[StatusPagamento] = None,
        data_inicio: Optional[datetime] = None,
        data_fim: Optional[datetime] = None,
        page: int = 1,
        page_size: int = 20
    ) -> dict:
        """Listagem paginada para manifesto/despacho"""
        query = db.query(UsoConsignacao).filter(
            UsoConsignacao.tipo_atribuicao == tipo_atribuicao,
            UsoConsignacao.entidade_id == entidade_id
        )
        query = apply_filters(query, [
            (UsoConsignacao.status_pagamento, status_pagamento, "eq"),
            (UsoConsignacao.usado_em, data_inicio, "gte"),
            (UsoConsignacao.usado_em, data_fim, "lte"),
        ])
        return paginate_response(query, page, page_size, order_by=UsoConsignacao.usado_em.desc())


# Instancia global
uso_service = UsoService()
