"""
Status Helpers - Validação de status de entidades
"""
from typing import TypeVar, Union, List
from enum import Enum
from consignacao.core.exceptions import TransicaoStatusInvalida

T = TypeVar('T')


def require_status(
    current: Enum,
    required: Union[Enum, List[Enum]],
    operation: str = None
) -> None:
    """
    Valida que o status atual está entre os requeridos.

    Raises:
        TransicaoStatusInvalida se status não for permitido

    Usage:
        require_status(fatura.status, StatusFatura.UNPAID, "Pagamento")
    """
    allowed = required if isinstance(required, list) else [required]

    if current not in allowed:
        allowed_str = ", ".join(s.value for s in allowed)
        msg = f"Operação não permitida no status {current.value}"
        if operation:
            msg = f"{operation} não permitida no status {current.value}"
        msg += f". Status permitido(s): {allowed_str}"
        raise TransicaoStatusInvalida(msg)


def transition_status(
    entity: T,
    new_status: Enum,
    allowed_transitions: dict,
    field: str = "status"
) -> T:
    """
    Transiciona status com validação de transições permitidas.

    Args:
        entity: Entidade com o campo de status
        new_status: Novo status
        allowed_transitions: Dict de {status_atual: [status_permitidos]}
        field: Nome do campo de status (default: 'status')

    Returns:
        Entidade com status atualizado

    Raises:
        TransicaoStatusInvalida se transição não for permitida

    Usage:
        fatura = transition_status(fatura, StatusFatura.PAID, TRANSICOES_FATURA)
        uso = transition_status(uso, StatusPagamento.INVOICED, TRANSICOES_PAGAMENTO, field="status_pagamento")
    """
    current = getattr(entity, field)
    if new_status not in allowed_transitions.get(current, []):
        raise TransicaoStatusInvalida(
            f"Transição de {current.value} para {new_status.value} não permitida"
        )

    setattr(entity, field, new_status)
    return entity
