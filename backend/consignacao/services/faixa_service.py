"""
Servico de faixas de numeracao
Concessao, listagem e revogacao de faixas por entidade
"""
import logging
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import func
from consignacao.config import settings
from consignacao.core.exceptions import FaixaInvalida, FaixaSobreposta
from consignacao.api.utils import get_by_id, generate_sequential_number, lock_sequence, Prefixes, apply_filters, paginate_response
from consignacao.models.atribuicao import AtribuicaoConsignacao, TipoAtribuicao
from consignacao.models.uso_consignacao import UsoConsignacao

logger = logging.getLogger(__name__)


class FaixaService:
    """Servico para faixas de consignacao atribuidas"""

    def validar_faixa(self, numero_inicial: int, numero_final: int) -> None:
        """
        Valida piso, ordem e tamanho da faixa antes de qualquer escrita.

        Raises:
            FaixaInvalida
        """
        minimo = settings.NUMERO_CONSIGNACAO_MINIMO
        maximo = settings.MAX_NUMEROS_POR_FAIXA

        if numero_inicial < minimo:
            raise FaixaInvalida(f"Numero inicial deve ser no minimo {minimo}")

        if numero_final < numero_inicial:
            raise FaixaInvalida("Numero final deve ser maior ou igual ao numero inicial")

        if numero_final - numero_inicial + 1 > maximo:
            raise FaixaInvalida(f"Maximo de {maximo} numeros podem ser atribuidos de uma vez")

    def buscar_sobreposicao(
        self,
        db: Session,
        numero_inicial: int,
        numero_final: int,
        excluir_id: Optional[int] = None
    ) -> Optional[AtribuicaoConsignacao]:
        """Retorna a primeira faixa ativa que cruza [numero_inicial, numero_final]"""
        query = db.query(AtribuicaoConsignacao).filter(
            AtribuicaoConsignacao.ativo == True,
            AtribuicaoConsignacao.numero_inicial <= numero_final,
            AtribuicaoConsignacao.numero_final >= numero_inicial
        )
        if excluir_id:
            query = query.filter(AtribuicaoConsignacao.id != excluir_id)

        return query.order_by(AtribuicaoConsignacao.numero_inicial).first()

    def conceder(
        self,
        db: Session,
        tipo_atribuicao: TipoAtribuicao,
        entidade_id: str,
        numero_inicial: int,
        numero_final: int,
        concedido_por: str,
        observacoes: Optional[str] = None,
        nome_atribuido: Optional[str] = None,
        email_atribuido: Optional[str] = None
    ) -> AtribuicaoConsignacao:
        """
        Concede uma faixa a uma entidade.

        A verificacao de sobreposicao e a insercao acontecem na mesma transacao,
        depois de travar a linha permanente da sequencia FX (SELECT ... FOR UPDATE).
        Duas concessoes simultaneas nunca enxergam o mesmo estado, inclusive
        na virada do ano. O codigo FX-AAAA-NNNNN continua contado por ano.

        Raises:
            FaixaInvalida: piso/ordem/tamanho
            FaixaSobreposta: cruza faixa ativa de qualquer entidade
        """
        self.validar_faixa(numero_inicial, numero_final)

        try:
            # Trava: serializa concessoes ate o commit
            lock_sequence(db, Prefixes.FAIXA)
            codigo = generate_sequential_number(db, Prefixes.FAIXA)

            conflitante = self.buscar_sobreposicao(db, numero_inicial, numero_final)
            if conflitante:
                raise FaixaSobreposta(conflitante)

            atribuicao = AtribuicaoConsignacao(
                codigo=codigo,
                tipo_atribuicao=tipo_atribuicao,
                entidade_id=entidade_id,
                nome_atribuido=nome_atribuido,
                email_atribuido=email_atribuido,
                numero_inicial=numero_inicial,
                numero_final=numero_final,
                total_numeros=numero_final - numero_inicial + 1,
                concedido_por=concedido_por,
                observacoes=observacoes
            )
            db.add(atribuicao)
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(atribuicao)

        logger.info(
            f"[FAIXA] {codigo} concedida por {concedido_por}: "
            f"{tipo_atribuicao.value}:{entidade_id} ({numero_inicial}-{numero_final})"
        )
        return atribuicao

    def listar_ativas(
        self,
        db: Session,
        tipo_atribuicao: TipoAtribuicao,
        entidade_id: str
    ) -> List[AtribuicaoConsignacao]:
        """
        Faixas ativas da entidade em ordem crescente de numero_inicial.
        Essa ordem define quais numeros sao entregues primeiro.
        """
        return db.query(AtribuicaoConsignacao).filter(
            AtribuicaoConsignacao.tipo_atribuicao == tipo_atribuicao,
            AtribuicaoConsignacao.entidade_id == entidade_id,
            AtribuicaoConsignacao.ativo == True
        ).order_by(AtribuicaoConsignacao.numero_inicial).all()

    def revogar(self, db: Session, atribuicao_id: int) -> AtribuicaoConsignacao:
        """Revogacao logica. Numeros ja consumidos continuam no livro de uso."""
        atribuicao = get_by_id(db, AtribuicaoConsignacao, atribuicao_id, error_message="Faixa nao encontrada")

        if atribuicao.ativo:
            atribuicao.ativo = False
            atribuicao.revogado_em = datetime.utcnow()
            db.commit()
            db.refresh(atribuicao)
            logger.info(f"[FAIXA] {atribuicao.codigo} revogada")

        return atribuicao

    def listar(
        self,
        db: Session,
        tipo_atribuicao: Optional[TipoAtribuicao] = None,
        entidade_id: Optional[str] = None,
        ativo: Optional[bool] = None,
        page: int = 1,
        page_size: int = 20
    ) -> dict:
        """Listagem administrativa paginada"""
        query = apply_filters(db.query(AtribuicaoConsignacao), [
            (AtribuicaoConsignacao.tipo_atribuicao, tipo_atribuicao, "eq"),
            (AtribuicaoConsignacao.entidade_id, entidade_id, "eq"),
            (AtribuicaoConsignacao.ativo, ativo, "eq"),
        ])
        return paginate_response(query, page, page_size, order_by=AtribuicaoConsignacao.numero_inicial)

    def maior_numero_atribuido(self, db: Session) -> dict:
        """Maior numero final entre as faixas ativas e sugestao de proximo inicio"""
        maior = db.query(func.max(AtribuicaoConsignacao.numero_final)).filter(
            AtribuicaoConsignacao.ativo == True
        ).scalar()

        if maior is None:
            maior = settings.NUMERO_CONSIGNACAO_MINIMO - 1

        return {
            "maior_numero": maior,
            "proximo_inicio": maior + 1
        }

    def resumo_quota(
        self,
        db: Session,
        tipo_atribuicao: TipoAtribuicao,
        entidade_id: str
    ) -> dict:
        """
        Quota da entidade calculada na leitura (faixas ativas + livro de uso).
        Nada aqui e guardado como contador.
        """
        atribuicoes = self.listar_ativas(db, tipo_atribuicao, entidade_id)

        if not atribuicoes:
            return {
                "possui_atribuicao": False,
                "faixas": [],
                "total_atribuido": 0,
                "total_usado": 0,
                "total_disponivel": 0,
                "percentual_uso": 0
            }

        # So conta usos dentro das faixas ativas
        usados = 0
        for atribuicao in atribuicoes:
            usados += db.query(func.count(UsoConsignacao.id)).filter(
                UsoConsignacao.tipo_atribuicao == tipo_atribuicao,
                UsoConsignacao.entidade_id == entidade_id,
                UsoConsignacao.numero_consignacao >= atribuicao.numero_inicial,
                UsoConsignacao.numero_consignacao <= atribuicao.numero_final
            ).scalar()

        total = sum(a.total_numeros for a in atribuicoes)

        return {
            "possui_atribuicao": True,
            "faixas": atribuicoes,
            "total_atribuido": total,
            "total_usado": usados,
            "total_disponivel": total - usados,
            "percentual_uso": round(usados / total * 100)
        }


# Instancia global
faixa_service = FaixaService()
