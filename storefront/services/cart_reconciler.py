# storefront/services/cart_reconciler.py
"""
Rozstrzyganie, ktory koszyk jest zrodlem prawdy przy checkoucie.

Klient ma koszyk w local storage, zalogowany klient ma tez koszyk w backendzie.
Ktorys z nich moze byc pusty tylko przez timing (fetch z backendu skonczyl sie
przed dodaniem lokalnym, albo local storage jest nieaktualny). Decyzja zapada
tylko tutaj:

- lokalny niepusty -> lokalny; gdy backend pusty, w tle wypychamy lokalny do backendu
- lokalny pusty -> backend
- oba puste -> EmptyOrderError
"""
from dataclasses import dataclass, field
from typing import Callable, List, Sequence, Union

from storefront.domain.errors import EmptyOrderError
from storefront.domain.schemas import CartLineItem
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

# nazwa ostrzezenia w logach, po niej szukamy nieudanych synchronizacji
SYNC_FAILED_WARNING = "cart_reconcile_sync_failed"

BackendResult = Union[Sequence[CartLineItem], Exception]


@dataclass
class ReconciliationResult:
    items: List[CartLineItem]
    source: str  # "local" albo "backend"
    sync_scheduled: bool = False
    warnings: List[str] = field(default_factory=list)


class CartReconciler:
    def __init__(self, schedule_sync: Callable[[int, list], object] | None = None):
        # schedule_sync(user_id, items) - fire-and-forget, np. CartSyncService.schedule_sync
        self.schedule_sync = schedule_sync

    def resolve(
        self,
        user_id: int,
        local_cart: Sequence[CartLineItem],
        backend_result: BackendResult,
    ) -> ReconciliationResult:
        backend_failed = isinstance(backend_result, Exception)
        backend_items = [] if backend_failed else list(backend_result)
        warnings = []

        if backend_failed:
            logger.warning(
                f"Backend cart fetch failed for user {user_id}, "
                f"falling back to local cart: {backend_result}"
            )
            warnings.append("backend_cart_unavailable")

        if local_cart:
            result = ReconciliationResult(items=list(local_cart), source="local", warnings=warnings)
            if not backend_failed and not backend_items:
                result.sync_scheduled = self._push_to_backend(user_id, result.items, warnings)
            logger.info(
                f"Resolved cart for user {user_id} from local storage ({len(result.items)} items, "
                f"sync_scheduled={result.sync_scheduled})"
            )
            return result

        if backend_items:
            logger.info(f"Resolved cart for user {user_id} from backend ({len(backend_items)} items)")
            return ReconciliationResult(items=backend_items, source="backend", warnings=warnings)

        logger.info(f"Both carts empty for user {user_id}, rejecting checkout")
        raise EmptyOrderError()

    def _push_to_backend(self, user_id: int, items: List[CartLineItem], warnings: List[str]) -> bool:
        if self.schedule_sync is None:
            return False
        payload = [item.model_dump(mode="json") for item in items]
        try:
            self.schedule_sync(user_id, payload)
        except Exception as e:
            # synchronizacja jest best-effort, checkout idzie dalej
            logger.warning(f"{SYNC_FAILED_WARNING}: user={user_id} items={len(items)} error={e}")
            warnings.append(SYNC_FAILED_WARNING)
            return False
        return True
