"""
Sequencers - Geradores de números sequenciais

IMPORTANTE: Usa tabela 'sequencias' para garantir que números NUNCA reiniciem,
mesmo se os registros forem deletados. A sequência é persistente e sempre incrementa.
"""
from datetime import datetime
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

ESCOPO_GLOBAL = "global"

# Linha de trava permanente: nao depende do ano corrente
ANO_TRAVA = 0


def _obter_sequencia_travada(db: Session, escopo: str, prefix: str, ano: int):
    """
    Busca a linha da sequência com SELECT ... FOR UPDATE, criando se preciso.

    A linha fica travada até o commit/rollback da transação de quem chamou,
    o que serializa chamadas concorrentes no mesmo (escopo, prefixo, ano).
    """
    from consignacao.models.sequencia import Sequencia

    def _buscar():
        return db.query(Sequencia).filter(
            Sequencia.escopo == escopo,
            Sequencia.prefixo == prefix,
            Sequencia.ano == ano
        ).with_for_update().first()

    sequencia = _buscar()
    if sequencia:
        return sequencia

    # Primeira vez: outra transação pode criar a mesma linha ao mesmo tempo
    try:
        with db.begin_nested():
            db.add(Sequencia(escopo=escopo, prefixo=prefix, ano=ano, ultimo_numero=0))
    except IntegrityError:
        pass

    return _buscar()


def lock_sequence(db: Session, prefix: str, escopo: str = ESCOPO_GLOBAL) -> None:
    """
    Trava a linha (escopo, prefixo, ANO_TRAVA) até o commit/rollback.

    Serializa operações do mesmo prefixo mesmo na virada do ano, quando
    generate_sequential_number passa a usar outra linha de contador.

    Usage:
        lock_sequence(db, Prefixes.FAIXA)
    """
    _obter_sequencia_travada(db, escopo, prefix, ANO_TRAVA)


def generate_sequential_number(
    db: Session,
    prefix: str,
    escopo: str = ESCOPO_GLOBAL,
    year: int = None,
    digits: int = 5
) -> str:
    """
    Gera número sequencial no formato: PREFIX-AAAA-NNNNN

    IMPORTANTE: Não faz commit. O número fica reservado (e a linha travada)
    até o commit da transação que o usa.

    Args:
        db: Sessão do banco
        prefix: Prefixo (ex: "FX", "FT")
        escopo: Escopo da sequência (default: global)
        year: Ano (default: ano atual)
        digits: Quantidade de dígitos para padding (default: 5)

    Returns:
        Número formatado (ex: "FT-2025-00001")

    Usage:
        codigo = generate_sequential_number(db, Prefixes.FAIXA)
        # Retorna: "FX-2025-00001"
    """
    ano = year or datetime.now().year

    sequencia = _obter_sequencia_travada(db, escopo, prefix, ano)

    # Incrementar sequência
    sequencia.ultimo_numero += 1
    proximo = sequencia.ultimo_numero

    # Flush para garantir que o número seja reservado
    db.flush()

    return f"{prefix}-{ano}-{proximo:0{digits}d}"


# Constantes de prefixos para padronização
class Prefixes:
    FAIXA = "FX"
    FATURA = "FT"
