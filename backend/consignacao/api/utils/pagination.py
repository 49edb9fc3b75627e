"""
Pagination Helpers - Paginação e filtros para listagens de faixas e usos
"""
from typing import TypeVar, Any, Tuple, List, Optional
from sqlalchemy.orm import Query

T = TypeVar('T')


def paginate_query(
    query: Query,
    page: int = 1,
    page_size: int = 20,
    order_by: Any = None
) -> Tuple[List[T], int]:
    """
    Aplica paginação em uma query e retorna itens + total.

    Args:
        query: Query SQLAlchemy
        page: Número da página (1-indexed)
        page_size: Tamanho da página
        order_by: Coluna(s) para ordenação - pode ser único ou tupla

    Returns:
        Tupla (lista_de_itens, total)

    Usage:
        itens, total = paginate_query(query, 1, 20, order_by=UsoConsignacao.usado_em.desc())
    """
    total = query.count()

    if order_by is not None:
        if isinstance(order_by, tuple):
            query = query.order_by(*order_by)
        else:
            query = query.order_by(order_by)

    items = query.offset((page - 1) * page_size).limit(page_size).all()

    return items, total


def paginate_response(
    query: Query,
    page: int = 1,
    page_size: int = 20,
    order_by: Any = None,
    transform_fn: Optional[callable] = None
) -> dict:
    """
    Aplica paginação e retorna dict pronto para response.

    Returns:
        Dict com items, total, page, page_size, total_pages

    Usage:
        return paginate_response(query, page, page_size, AtribuicaoConsignacao.numero_inicial)
    """
    items, total = paginate_query(query, page, page_size, order_by)

    if transform_fn:
        items = [transform_fn(item) for item in items]

    return {
        "items": items,
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": (total + page_size - 1) // page_size if page_size else 0
    }


def apply_filters(
    query: Query,
    filters: List[Tuple[Any, Any, str]]
) -> Query:
    """
    Aplica múltiplos filtros opcionais de uma vez. Valores None são ignorados.

    Args:
        query: Query SQLAlchemy
        filters: Lista de (campo, valor, operador)
                 operador pode ser: "eq", "gte", "lte"

    Usage:
        query = apply_filters(query, [
            (AtribuicaoConsignacao.tipo_atribuicao, tipo, "eq"),
            (AtribuicaoConsignacao.ativo, ativo, "eq"),
        ])
    """
    for field, value, operator in filters:
        if value is None:
            continue

        if operator == "eq":
            query = query.filter(field == value)
        elif operator == "gte":
            query = query.filter(field >= value)
        elif operator == "lte":
            query = query.filter(field <= value)
        else:
            raise ValueError(f"Operador de filtro desconhecido: {operator}")

    return query
