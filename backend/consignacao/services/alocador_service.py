"""
Alocador de numeros de consignacao

proximo_numero so propoe um candidato. Quem garante a unicidade e o
registro no livro de uso; alocar_e_registrar junta os dois com retentativa.
"""
import logging
from typing import Optional
from sqlalchemy.orm import Session
from consignacao.config import settings
from consignacao.core.exceptions import SemAtribuicao, FaixasEsgotadas, AlocacaoContencao, UsoDuplicado
from consignacao.models.atribuicao import TipoAtribuicao
from consignacao.models.uso_consignacao import UsoConsignacao
from consignacao.services.faixa_service import faixa_service
from consignacao.services.uso_service import uso_service

logger = logging.getLogger(__name__)


class AlocadorService:
    """Escolha do proximo numero livre entre as faixas ativas da entidade"""

    def proximo_numero(self, db: Session, tipo_atribuicao: TipoAtribuicao, entidade_id: str) -> int:
        """
        Primeiro numero ainda nao consumido, percorrendo as faixas ativas
        em ordem crescente e cada faixa do inicio ao fim.

        Nao grava nada.

        Raises:
            SemAtribuicao: entidade sem faixa ativa
            FaixasEsgotadas: todos os numeros ja consumidos
        """
        atribuicoes = faixa_service.listar_ativas(db, tipo_atribuicao, entidade_id)
        if not atribuicoes:
            raise SemAtribuicao(tipo_atribuicao.value)

        usados = uso_service.numeros_usados(db, tipo_atribuicao, entidade_id)

        for atribuicao in atribuicoes:
            for numero in range(atribuicao.numero_inicial, atribuicao.numero_final + 1):
                if numero not in usados:
                    return numero

        raise FaixasEsgotadas()

    def alocar_e_registrar(
        self,
        db: Session,
        tipo_atribuicao: TipoAtribuicao,
        entidade_id: str,
        dados_uso: dict,
        max_tentativas: Optional[int] = None
    ) -> UsoConsignacao:
        """
        Propoe um numero e tenta registra-lo. Se outra requisicao gravou o
        mesmo numero antes (UsoDuplicado), propoe de novo.

        Args:
            dados_uso: argumentos de uso_service.registrar_uso
                (referencia_reserva, tipo_pagamento, peso, valor_frete, ...)
            max_tentativas: default settings.MAX_TENTATIVAS_ALOCACAO

        Raises:
            SemAtribuicao, FaixasEsgotadas: terminais
            AlocacaoContencao: tentativas esgotadas
        """
        tentativas = settings.MAX_TENTATIVAS_ALOCACAO if max_tentativas is None else max_tentativas

        for tentativa in range(1, tentativas + 1):
            numero = self.proximo_numero(db, tipo_atribuicao, entidade_id)
            try:
                return uso_service.registrar_uso(db, tipo_atribuicao, entidade_id, numero, **dados_uso)
            except UsoDuplicado:
                logger.info(
                    f"[ALOCACAO] #{numero} tomado por outra requisicao "
                    f"({tipo_atribuicao.value}:{entidade_id}, tentativa {tentativa}/{tentativas})"
                )

        logger.warning(f"[ALOCACAO] Contencao em {tipo_atribuicao.value}:{entidade_id} apos {tentativas} tentativas")
        raise AlocacaoContencao()


# Instancia global
alocador_service = AlocadorService()
