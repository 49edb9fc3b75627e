"""
Faturamento dos envios FP em aberto
"""
import calendar
import logging
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload
from consignacao.config import settings
from consignacao.core.exceptions import FaturaDuplicada, SemUsosParaFaturar
from consignacao.api.utils import (
    get_by_id, generate_sequential_number, Prefixes, require_status, transition_status,
    apply_filters, paginate_response
)
from consignacao.models.atribuicao import TipoAtribuicao
from consignacao.models.fatura import Fatura, ItemFatura, StatusFatura, TRANSICOES_FATURA
from consignacao.services.acerto_service import acerto_service
from consignacao.services.uso_service import uso_service

logger = logging.getLogger(__name__)

CENTAVOS = Decimal("0.01")


def _arredondar(valor: Decimal) -> Decimal:
    return valor.quantize(CENTAVOS, rounding=ROUND_HALF_UP)


def _fim_do_mes(referencia: date) -> date:
    return date(referencia.year, referencia.month, calendar.monthrange(referencia.year, referencia.month)[1])


class FaturaService:
    """Servico para geracao e pagamento de faturas"""

    def calcular_item(self, valor_frete: Decimal, percentual_combustivel: Decimal) -> dict:
        """
        Encargos de um envio:
        AWB fixo + combustivel (% do frete) + CGST + SGST sobre o frete
        """
        frete = Decimal(valor_frete or 0)
        taxa_awb = Decimal(settings.TAXA_AWB)
        combustivel = _arredondar(frete * Decimal(percentual_combustivel) / 100)
        cgst = _arredondar(frete * Decimal(settings.ALIQUOTA_CGST) / 100)
        sgst = _arredondar(frete * Decimal(settings.ALIQUOTA_SGST) / 100)

        return {
            "valor_frete": frete,
            "taxa_awb": taxa_awb,
            "valor_combustivel": combustivel,
            "valor_cgst": cgst,
            "valor_sgst": sgst,
            "valor_total": frete + taxa_awb + combustivel + cgst + sgst,
        }

    def _buscar_existente(
        self,
        db: Session,
        tipo_atribuicao: TipoAtribuicao,
        entidade_id: str,
        data_inicio: datetime,
        data_fim: datetime
    ) -> Optional[Fatura]:
        return db.query(Fatura).filter(
            Fatura.tipo_atribuicao == tipo_atribuicao,
            Fatura.entidade_id == entidade_id,
            Fatura.data_inicio == data_inicio,
            Fatura.data_fim == data_fim
        ).first()

    def gerar_fatura(
        self,
        db: Session,
        tipo_atribuicao: TipoAtribuicao,
        entidade_id: str,
        data_inicio: datetime,
        data_fim: datetime,
        criado_por: Optional[str] = None,
        percentual_combustivel: Optional[Decimal] = None
    ) -> Fatura:
        """
        Consolida os envios FP em aberto do periodo numa fatura e marca-os como faturados.

        Raises:
            FaturaDuplicada: ja existe fatura da entidade para o mesmo periodo
            SemUsosParaFaturar: nenhum envio em aberto no periodo
        """
        existente = self._buscar_existente(db, tipo_atribuicao, entidade_id, data_inicio, data_fim)
        if existente:
            raise FaturaDuplicada(f"Ja existe a fatura {existente.numero} para este periodo")

        usos = uso_service.buscar_nao_pagos_periodo(db, tipo_atribuicao, entidade_id, data_inicio, data_fim)
        if not usos:
            raise SemUsosParaFaturar()

        if percentual_combustivel is None:
            percentual_combustivel = Decimal(settings.PERCENTUAL_COMBUSTIVEL_PADRAO)

        try:
            numero = generate_sequential_number(db, Prefixes.FATURA)

            fatura = Fatura(
                numero=numero,
                tipo_atribuicao=tipo_atribuicao,
                entidade_id=entidade_id,
                data_inicio=data_inicio,
                data_fim=data_fim,
                data_vencimento=_fim_do_mes(date.today()),
                percentual_combustivel=percentual_combustivel,
                status=StatusFatura.UNPAID,
                criado_por=criado_por
            )

            subtotal = total_awb = total_combustivel = total_cgst = total_sgst = Decimal("0")
            for uso in usos:
                valores = self.calcular_item(uso.valor_frete, percentual_combustivel)
                fatura.itens.append(ItemFatura(
                    uso_id=uso.id,
                    numero_consignacao=uso.numero_consignacao,
                    data_reserva=uso.usado_em,
                    peso=acerto_service.extrair_peso(uso),
                    **valores
                ))
                subtotal += valores["valor_frete"]
                total_awb += valores["taxa_awb"]
                total_combustivel += valores["valor_combustivel"]
                total_cgst += valores["valor_cgst"]
                total_sgst += valores["valor_sgst"]

            fatura.subtotal = subtotal
            fatura.total_awb = total_awb
            fatura.total_combustivel = total_combustivel
            fatura.total_cgst = total_cgst
            fatura.total_sgst = total_sgst
            fatura.total_geral = subtotal + total_awb + total_combustivel + total_cgst + total_sgst

            db.add(fatura)
            db.flush()

            uso_service.marcar_faturados(db, [uso.id for uso in usos], fatura.id, commit=False)
            db.commit()
        except IntegrityError:
            # Outra requisicao gerou a fatura do mesmo periodo depois da verificacao acima
            db.rollback()
            raise FaturaDuplicada()
        except Exception:
            db.rollback()
            raise

        db.refresh(fatura)
        logger.info(
            f"[FATURA] {fatura.numero} gerada para {tipo_atribuicao.value}:{entidade_id}: "
            f"{len(usos)} envio(s), total {fatura.total_geral}"
        )
        return fatura

    def obter(self, db: Session, fatura_id: int) -> Fatura:
        return get_by_id(
            db, Fatura, fatura_id,
            error_message="Fatura nao encontrada",
            options=[joinedload(Fatura.itens)]
        )

    def listar_faturas(
        self,
        db: Session,
        tipo_atribuicao: Optional[TipoAtribuicao] = None,
        entidade_id: Optional[str] = None,
        status: Optional[StatusFatura] = None,
        page: int = 1,
        page_size: int = 20
    ) -> dict:
        """Listagem paginada, mais recentes primeiro. Sem entidade lista todas (admin)."""
        query = apply_filters(db.query(Fatura), [
            (Fatura.tipo_atribuicao, tipo_atribuicao, "eq"),
            (Fatura.entidade_id, entidade_id, "eq"),
            (Fatura.status, status, "eq"),
        ])
        return paginate_response(query, page, page_size, order_by=(Fatura.created_at.desc(), Fatura.id.desc()))

    def faturas_vencidas(self, db: Session, hoje: Optional[date] = None) -> List[Fatura]:
        """Faturas em aberto com vencimento anterior a hoje, vencimento mais antigo primeiro"""
        hoje = hoje or date.today()
        return db.query(Fatura).filter(
            Fatura.status == StatusFatura.UNPAID,
            Fatura.data_vencimento < hoje
        ).order_by(Fatura.data_vencimento.asc(), Fatura.id.asc()).all()

    def resumo(
        self,
        db: Session,
        tipo_atribuicao: TipoAtribuicao,
        entidade_id: str,
        hoje: Optional[date] = None
    ) -> dict:
        """Quantidades e valores das faturas da entidade, por situacao"""
        hoje = hoje or date.today()
        linhas = db.query(
            Fatura.status,
            Fatura.data_vencimento,
            func.count(Fatura.id),
            func.coalesce(func.sum(Fatura.total_geral), 0)
        ).filter(
            Fatura.tipo_atribuicao == tipo_atribuicao,
            Fatura.entidade_id == entidade_id
        ).group_by(Fatura.status, Fatura.data_vencimento).all()

        resumo = {
            "total_faturas": 0,
            "faturas_em_aberto": 0,
            "faturas_vencidas": 0,
            "faturas_pagas": 0,
            "valor_total": Decimal("0.00"),
            "valor_em_aberto": Decimal("0.00"),
            "valor_pago": Decimal("0.00"),
        }
        for status, vencimento, quantidade, valor in linhas:
            valor = _arredondar(Decimal(valor))
            resumo["total_faturas"] += quantidade
            resumo["valor_total"] += valor
            if status == StatusFatura.PAID:
                resumo["faturas_pagas"] += quantidade
                resumo["valor_pago"] += valor
            else:
                resumo["faturas_em_aberto"] += quantidade
                resumo["valor_em_aberto"] += valor
                if vencimento < hoje:
                    resumo["faturas_vencidas"] += quantidade

        return resumo

    def marcar_fatura_paga(
        self,
        db: Session,
        fatura_id: int,
        forma_pagamento: Optional[str] = None,
        referencia_pagamento: Optional[str] = None
    ) -> Fatura:
        """
        unpaid -> paid. Os usos vinculados passam para 'paid' na mesma transacao.

        Raises:
            TransicaoStatusInvalida: fatura ja paga
        """
        fatura = self.obter(db, fatura_id)
        require_status(fatura.status, StatusFatura.UNPAID, "Pagamento")

        transition_status(fatura, StatusFatura.PAID, TRANSICOES_FATURA)
        fatura.data_pagamento = datetime.utcnow()
        fatura.forma_pagamento = forma_pagamento
        fatura.referencia_pagamento = referencia_pagamento

        uso_service.marcar_pagos(db, [uso.id for uso in fatura.usos], commit=False)
        db.commit()
        db.refresh(fatura)

        logger.info(f"[FATURA] {fatura.numero} paga ({forma_pagamento or 'sem forma informada'})")
        return fatura


# Instancia global
fatura_service = FaturaService()
