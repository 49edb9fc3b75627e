# API Utilities - DRY Helpers
from consignacao.api.utils.db_helpers import get_by_id
from consignacao.api.utils.pagination import paginate_query, paginate_response, apply_filters
from consignacao.api.utils.sequencers import generate_sequential_number, lock_sequence, Prefixes, ESCOPO_GLOBAL, ANO_TRAVA
from consignacao.api.utils.status import require_status, transition_status

__all__ = [
    # db_helpers
    "get_by_id",
    # pagination
    "paginate_query",
    "paginate_response",
    "apply_filters",
    # sequencers
    "generate_sequential_number",
    "lock_sequence",
    "Prefixes",
    "ESCOPO_GLOBAL",
    "ANO_TRAVA",
    # status
    "require_status",
    "transition_status",
]
