"""
Acerto mensal (settlement)

Agrega os usos de um periodo (mes/ano) em peso, comissao e encargo.
Peso e comissao de cada registro ficam em LancamentoAcerto e nao mudam
depois de preenchidos, entao o acerto pode ser reexecutado a qualquer momento.
"""
import calendar
import logging
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import List, Optional, Tuple
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from consignacao.config import settings
from consignacao.core.exceptions import PeriodoInvalido
from consignacao.models.acerto import LancamentoAcerto, EncargoManualPeriodo
from consignacao.models.atribuicao import TipoAtribuicao
from consignacao.models.uso_consignacao import UsoConsignacao, StatusReserva

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Mesma escala das colunas de LancamentoAcerto (Numeric(12,3) / Numeric(15,2))
GRAMAS = Decimal("0.001")
CENTAVOS = Decimal("0.01")


def _arredondar_peso(valor) -> Decimal:
    return Decimal(valor or 0).quantize(GRAMAS, rounding=ROUND_HALF_UP)


def _arredondar_valor(valor) -> Decimal:
    return Decimal(valor or 0).quantize(CENTAVOS, rounding=ROUND_HALF_UP)

# Numero no inicio do texto ("2.5 kg" -> 2.5), como o parseFloat do front
_NUMERO_INICIAL = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)")


def _parse_peso(valor) -> Optional[Decimal]:
    """Converte o peso digitado na reserva. None quando nao ha numero."""
    if valor is None:
        return None

    match = _NUMERO_INICIAL.match(str(valor))
    if not match:
        return None

    try:
        return Decimal(match.group(0).strip())
    except InvalidOperation:
        return None


class AcertoService:
    """Servico de acerto mensal por entidade ou global"""

    def validar_periodo(self, mes: int, ano: int) -> None:
        if not 1 <= mes <= 12:
            raise PeriodoInvalido("Mes deve estar entre 1 e 12")

        if not settings.ANO_MINIMO_ACERTO <= ano <= settings.ANO_MAXIMO_ACERTO:
            raise PeriodoInvalido(
                f"Ano deve estar entre {settings.ANO_MINIMO_ACERTO} e {settings.ANO_MAXIMO_ACERTO}"
            )

    def limites_periodo(self, mes: int, ano: int) -> Tuple[datetime, datetime]:
        """Primeiro e ultimo instante do mes"""
        self.validar_periodo(mes, ano)
        ultimo_dia = calendar.monthrange(ano, mes)[1]
        return (
            datetime(ano, mes, 1),
            datetime(ano, mes, ultimo_dia, 23, 59, 59, 999999)
        )

    def extrair_peso(self, uso: UsoConsignacao) -> Decimal:
        """
        Peso do registro, na ordem:
        peso cobravel (> 0) -> peso_real -> peso_por_kg -> 0

        Texto que nao comeca com numero passa para a proxima fonte.
        """
        if uso.peso is not None and Decimal(uso.peso) > 0:
            return Decimal(uso.peso)

        for texto in (uso.peso_real, uso.peso_por_kg):
            peso = _parse_peso(texto)
            if peso is not None and peso > 0:
                return peso

        return ZERO

    def calcular_comissao(self, peso: Decimal) -> Decimal:
        return _arredondar_valor(peso * Decimal(settings.TAXA_COMISSAO_POR_KG))

    def _usos_periodo(
        self,
        db: Session,
        inicio: datetime,
        fim: datetime,
        tipo_atribuicao: Optional[TipoAtribuicao] = None,
        entidade_id: Optional[str] = None
    ) -> List[UsoConsignacao]:
        query = db.query(UsoConsignacao).filter(
            UsoConsignacao.usado_em >= inicio,
            UsoConsignacao.usado_em <= fim,
            UsoConsignacao.status_reserva != StatusReserva.CANCELLED
        )
        if tipo_atribuicao is not None:
            query = query.filter(
                UsoConsignacao.tipo_atribuicao == tipo_atribuicao,
                UsoConsignacao.entidade_id == entidade_id
            )

        return query.order_by(UsoConsignacao.usado_em.asc(), UsoConsignacao.id.asc()).all()

    def _lancamento(self, db: Session, uso: UsoConsignacao, mes: int, ano: int) -> Tuple[LancamentoAcerto, bool]:
        """
        Lancamento do registro, preenchido se faltar.

        Returns:
            (lancamento, alterado)
        """
        lancamento = db.query(LancamentoAcerto).filter(LancamentoAcerto.uso_id == uso.id).first()

        if lancamento and lancamento.peso > 0 and lancamento.comissao > 0:
            return lancamento, False

        # Arredondado antes de gravar: a primeira execucao e as seguintes leem o mesmo valor
        peso = _arredondar_peso(self.extrair_peso(uso))
        comissao = self.calcular_comissao(peso)

        if lancamento is None:
            lancamento = LancamentoAcerto(uso_id=uso.id, mes=mes, ano=ano, peso=peso, comissao=comissao)
            db.add(lancamento)
            return lancamento, True

        if lancamento.peso != peso or lancamento.comissao != comissao:
            logger.info(f"[ACERTO] #{uso.numero_consignacao} atualizado: {peso}kg, comissao {comissao}")
            lancamento.peso = peso
            lancamento.comissao = comissao
            return lancamento, True

        return lancamento, False

    def calcular_periodo(
        self,
        db: Session,
        mes: int,
        ano: int,
        tipo_atribuicao: Optional[TipoAtribuicao] = None,
        entidade_id: Optional[str] = None
    ) -> dict:
        """
        Relatorio de acerto do periodo.

        Sem entidade, agrega todas as entidades (acerto global).

        Raises:
            PeriodoInvalido
        """
        inicio, fim = self.limites_periodo(mes, ano)
        usos = self._usos_periodo(db, inicio, fim, tipo_atribuicao, entidade_id)

        linhas = []
        alterados = 0
        for uso in usos:
            lancamento, alterado = self._lancamento(db, uso, mes, ano)
            if alterado:
                alterados += 1

            linhas.append({
                "uso_id": uso.id,
                "numero_consignacao": uso.numero_consignacao,
                "referencia_reserva": uso.referencia_reserva,
                "tipo_atribuicao": uso.tipo_atribuicao,
                "entidade_id": uso.entidade_id,
                "usado_em": uso.usado_em,
                "valor_total": _arredondar_valor(uso.valor_total),
                "peso": _arredondar_peso(lancamento.peso),
                "comissao": _arredondar_valor(lancamento.comissao),
            })

        if alterados:
            db.commit()
            logger.info(f"[ACERTO] {mes:02d}/{ano}: {alterados} lancamento(s) preenchido(s)")

        total_geral = sum((linha["valor_total"] for linha in linhas), _arredondar_valor(ZERO))
        peso_total = sum((linha["peso"] for linha in linhas), _arredondar_peso(ZERO))
        comissao_total = sum((linha["comissao"] for linha in linhas), _arredondar_valor(ZERO))

        encargo_automatico = total_geral - comissao_total

        manual = self.obter_encargo_manual(db, mes, ano, tipo_atribuicao, entidade_id)
        encargo_manual = _arredondar_valor(manual.valor) if manual else None
        encargo_efetivo = encargo_manual if manual else encargo_automatico

        return {
            "mes": mes,
            "ano": ano,
            "tipo_atribuicao": tipo_atribuicao,
            "entidade_id": entidade_id,
            "linhas": linhas,
            "total_transacoes": len(linhas),
            "peso_total": peso_total,
            "comissao_total": comissao_total,
            "total_geral": total_geral,
            "encargo_automatico": encargo_automatico,
            "encargo_manual": encargo_manual,
            "encargo_efetivo": encargo_efetivo,
            "saldo_restante": total_geral - encargo_efetivo,
        }

    def entidades_com_uso(self, db: Session, mes: int, ano: int) -> List[Tuple[TipoAtribuicao, str]]:
        """Entidades que consumiram numeros no periodo"""
        inicio, fim = self.limites_periodo(mes, ano)
        linhas = db.query(UsoConsignacao.tipo_atribuicao, UsoConsignacao.entidade_id).filter(
            UsoConsignacao.usado_em >= inicio,
            UsoConsignacao.usado_em <= fim
        ).distinct().all()
        return [(tipo, entidade) for tipo, entidade in linhas]

    # ============ ENCARGO MANUAL ============

    def _buscar_encargo(
        self,
        db: Session,
        mes: int,
        ano: int,
        tipo_atribuicao: Optional[TipoAtribuicao],
        entidade_id: Optional[str]
    ) -> Optional[EncargoManualPeriodo]:
        query = db.query(EncargoManualPeriodo).filter(
            EncargoManualPeriodo.mes == mes,
            EncargoManualPeriodo.ano == ano
        )
        if tipo_atribuicao is None:
            query = query.filter(
                EncargoManualPeriodo.tipo_atribuicao.is_(None),
                EncargoManualPeriodo.entidade_id.is_(None)
            )
        else:
            query = query.filter(
                EncargoManualPeriodo.tipo_atribuicao == tipo_atribuicao,
                EncargoManualPeriodo.entidade_id == entidade_id
            )
        return query.first()

    def obter_encargo_manual(
        self,
        db: Session,
        mes: int,
        ano: int,
        tipo_atribuicao: Optional[TipoAtribuicao] = None,
        entidade_id: Optional[str] = None
    ) -> Optional[EncargoManualPeriodo]:
        """Encargo manual da entidade; se nao houver, o global do periodo"""
        self.validar_periodo(mes, ano)

        if tipo_atribuicao is not None:
            encargo = self._buscar_encargo(db, mes, ano, tipo_atribuicao, entidade_id)
            if encargo:
                return encargo

        return self._buscar_encargo(db, mes, ano, None, None)

    def definir_encargo_manual(
        self,
        db: Session,
        mes: int,
        ano: int,
        valor: Decimal,
        tipo_atribuicao: Optional[TipoAtribuicao] = None,
        entidade_id: Optional[str] = None,
        observacao: Optional[str] = None,
        definido_por: Optional[str] = None
    ) -> EncargoManualPeriodo:
        """Cria ou substitui o encargo manual do periodo"""
        self.validar_periodo(mes, ano)

        def _gravar(encargo: Optional[EncargoManualPeriodo]) -> EncargoManualPeriodo:
            if encargo is None:
                encargo = EncargoManualPeriodo(
                    mes=mes,
                    ano=ano,
                    tipo_atribuicao=tipo_atribuicao,
                    entidade_id=entidade_id
                )
                db.add(encargo)

            encargo.valor = valor
            encargo.observacao = observacao
            encargo.definido_por = definido_por
            db.commit()
            return encargo

        try:
            encargo = _gravar(self._buscar_encargo(db, mes, ano, tipo_atribuicao, entidade_id))
        except IntegrityError:
            # Outra requisicao criou o encargo do periodo entre a busca e o insert
            db.rollback()
            encargo = _gravar(self._buscar_encargo(db, mes, ano, tipo_atribuicao, entidade_id))

        db.refresh(encargo)

        alvo = f"{tipo_atribuicao.value}:{entidade_id}" if tipo_atribuicao else "global"
        logger.info(f"[ACERTO] Encargo manual {mes:02d}/{ano} ({alvo}) = {valor}")
        return encargo

    def remover_encargo_manual(
        self,
        db: Session,
        mes: int,
        ano: int,
        tipo_atribuicao: Optional[TipoAtribuicao] = None,
        entidade_id: Optional[str] = None
    ) -> bool:
        """Volta a usar o encargo calculado. Retorna False se nao havia encargo manual."""
        self.validar_periodo(mes, ano)

        encargo = self._buscar_encargo(db, mes, ano, tipo_atribuicao, entidade_id)
        if encargo is None:
            return False

        db.delete(encargo)
        db.commit()
        return True


# Instancia global
acerto_service = AcertoService()
