"""
Database Helpers - Funções utilitárias para operações de banco de dados
"""
from typing import Type, TypeVar, Optional
from sqlalchemy.orm import Session
from consignacao.core.exceptions import RegistroNaoEncontrado

T = TypeVar('T')


def get_by_id(
    db: Session,
    model: Type[T],
    entity_id: int,
    raise_not_found: bool = True,
    error_message: str = None,
    options: list = None
) -> Optional[T]:
    """
    Busca entidade por ID.

    Args:
        db: Sessão do banco de dados
        model: Classe do modelo SQLAlchemy
        entity_id: ID da entidade
        raise_not_found: Se True, levanta RegistroNaoEncontrado (404)
        error_message: Mensagem customizada de erro (opcional)
        options: Lista de joinedload options (opcional)

    Returns:
        Entidade encontrada ou None

    Usage:
        fatura = get_by_id(db, Fatura, fatura_id, options=[joinedload(Fatura.itens)])
    """
    query = db.query(model).filter(model.id == entity_id)

    if options:
        for opt in options:
            query = query.options(opt)

    entity = query.first()

    if not entity and raise_not_found:
        msg = error_message or f"{model.__name__} não encontrado"
        raise RegistroNaoEncontrado(msg)

    return entity
