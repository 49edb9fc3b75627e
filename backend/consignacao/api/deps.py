from typing import Optional
from consignacao.database import SessionLocal
from consignacao.core.exceptions import ConsignacaoError
from consignacao.models.atribuicao import TipoAtribuicao


def get_db():
    """
    Dependency para obter sessão do banco de dados
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_entidade_opcional(
    tipo_atribuicao: Optional[TipoAtribuicao] = None,
    entidade_id: Optional[str] = None
) -> tuple:
    """
    Entidade opcional via query string (tipo_atribuicao + entidade_id).
    Os dois vêm juntos ou nenhum (acerto global).
    """
    if (tipo_atribuicao is None) != (entidade_id is None):
        raise ConsignacaoError("Informe tipo_atribuicao e entidade_id juntos, ou nenhum dos dois")
    return tipo_atribuicao, entidade_id
