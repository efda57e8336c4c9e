"""
Cart Service - Guest cart, server cart and the merge between them

A cart is in one of two modes:
- local: guest lines held in persistent client storage
- server: the remote cart of the authenticated identity

Every session starts in local mode. When authentication is detected the
guest lines are merged into the remote cart exactly once and the service
switches to server mode. The merge is best-effort: each line is added on
its own, a failed line is logged and dropped, nothing is rolled back or
retried, and local storage is cleared whatever the outcome.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from storefront.connectors.cart_connector import CartAPIConnector
from storefront.core.errors import StorefrontError
from storefront.domain.cart import (
    Cart,
    CartResponse,
    DisplayItem,
    LocalCartLine,
    ProductInfo,
    ProductKind,
)
from storefront.repositories.local_cart_repository import LocalCartRepository

logger = logging.getLogger(__name__)


class CartMode(str, Enum):
    LOCAL = "local"
    SERVER = "server"


class CartPhase(str, Enum):
    """Authentication transition of the cart"""

    GUEST = "guest"
    AUTHENTICATING = "authenticating"
    MERGING = "merging"
    AUTHENTICATED = "authenticated"


@dataclass
class MergeLineResult:
    variation_id: int
    quantity: int
    success: bool
    error: Optional[str] = None


@dataclass
class MergeReport:
    """Outcome of one guest-to-server merge"""

    lines: List[MergeLineResult] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.lines)

    @property
    def merged(self) -> int:
        return sum(1 for line in self.lines if line.success)

    @property
    def failed(self) -> List[MergeLineResult]:
        return [line for line in self.lines if not line.success]


class CartService:
    """
    Dual-mode cart with a one-shot reconciliation on authentication

    Handles:
    - Guest upsert keyed by variation ID (quantities add up)
    - Remote cart operations, each recording its own error and loading flag
    - Guarded guest -> authenticated transition and merge
    - Mode-independent read API (counts, totals, display items)
    """

    OPERATIONS = ("fetch", "add", "update", "remove", "clear")

    def __init__(self, connector: CartAPIConnector, repository: LocalCartRepository):
        self.connector = connector
        self.repository = repository

        self.mode = CartMode.LOCAL
        self.phase = CartPhase.GUEST
        self.cart: Optional[Cart] = None
        self.local_lines: List[LocalCartLine] = []

        self.error: Optional[str] = None
        self.loading: Dict[str, bool] = {op: False for op in self.OPERATIONS}
        self.is_merging = False

    # ------------------------------------------------------------------
    # State helpers
    # ------------------------------------------------------------------

    @property
    def is_authenticated(self) -> bool:
        return self.phase != CartPhase.GUEST

    @property
    def is_loading(self) -> bool:
        return self.is_merging or any(self.loading.values())

    def _set_cart(self, response: CartResponse) -> None:
        if response.success:
            self.cart = response.data
            self.mode = CartMode.SERVER

    def _set_local_lines(self, lines: List[LocalCartLine]) -> None:
        self.local_lines = lines
        self.mode = CartMode.LOCAL
        self.repository.save(lines)

    def _find_local(self, variation_id: int) -> Optional[LocalCartLine]:
        return next((line for line in self.local_lines if line.variation_id == variation_id), None)

    # ------------------------------------------------------------------
    # Guest cart
    # ------------------------------------------------------------------

    def load_local_cart(self) -> List[LocalCartLine]:
        """Populate guest lines from persistent storage"""
        self.local_lines = self.repository.load()
        self.mode = CartMode.LOCAL
        logger.debug(f"Loaded {len(self.local_lines)} guest cart lines")
        return self.local_lines

    def _add_local_item(self, variation_id: int, quantity: int, product_info: Optional[ProductInfo]) -> None:
        if product_info is None:
            raise ValueError("product_info is required to add an item to a guest cart")
        if quantity < 1:
            raise ValueError(f"Quantity must be at least 1, got {quantity}")

        existing = self._find_local(variation_id)
        if existing:
            lines = [
                line.merged_with(quantity, product_info) if line.variation_id == variation_id else line
                for line in self.local_lines
            ]
        else:
            lines = self.local_lines + [LocalCartLine.create(variation_id, quantity, product_info)]

        self._set_local_lines(lines)

    def update_local_item_quantity(self, variation_id: int, quantity: int) -> None:
        """Set a guest line quantity; zero or below removes the line"""
        if self.is_authenticated:
            return
        if quantity <= 0:
            self.remove_local_item(variation_id)
            return

        lines = [
            line.model_copy(update={"quantity": quantity}) if line.variation_id == variation_id else line
            for line in self.local_lines
        ]
        self._set_local_lines(lines)

    def remove_local_item(self, variation_id: int) -> None:
        if self.is_authenticated:
            return
        self._set_local_lines([line for line in self.local_lines if line.variation_id != variation_id])

    # ------------------------------------------------------------------
    # Remote-backed operations
    # ------------------------------------------------------------------

    async def fetch_cart(self) -> Optional[Cart]:
        """
        Fetch the remote cart

        Errors are recorded in ``error`` and not raised.
        """
        if not self.is_authenticated:
            return None

        self.loading["fetch"] = True
        self.error = None
        try:
            self._set_cart(await self.connector.get_cart())
        except StorefrontError as e:
            self.error = str(e) or "Failed to fetch cart"
            logger.error(f"Failed to fetch cart: {e}")
        finally:
            self.loading["fetch"] = False
        return self.cart

    async def add_item(self, variation_id: int, quantity: int, product_info: Optional[ProductInfo] = None) -> None:
        """
        Add a variation to the cart of the current mode

        Guest: upsert into local lines (product_info required).
        Authenticated: POST to the remote cart; errors are recorded and raised.
        """
        if not self.is_authenticated:
            self._add_local_item(variation_id, quantity, product_info)
            return

        self.loading["add"] = True
        self.error = None
        try:
            self._set_cart(await self.connector.add_item(variation_id, quantity))
        except StorefrontError as e:
            self.error = str(e) or "Failed to add item to cart"
            raise
        finally:
            self.loading["add"] = False

    async def update_item_quantity(self, item_id: int, quantity: int) -> None:
        """Set a server line quantity; zero or below removes the line"""
        if not self.is_authenticated:
            return
        if quantity <= 0:
            await self.remove_item(item_id)
            return

        self.loading["update"] = True
        self.error = None
        try:
            self._set_cart(await self.connector.update_item_quantity(item_id, quantity))
        except StorefrontError as e:
            self.error = str(e) or "Failed to update cart item"
            raise
        finally:
            self.loading["update"] = False

    async def remove_item(self, item_id: int) -> None:
        if not self.is_authenticated:
            return

        self.loading["remove"] = True
        self.error = None
        try:
            self._set_cart(await self.connector.remove_item(item_id))
        except StorefrontError as e:
            self.error = str(e) or "Failed to remove item from cart"
            raise
        finally:
            self.loading["remove"] = False

    async def clear_cart(self) -> None:
        if not self.is_authenticated:
            self.cart = None
            self.local_lines = []
            self.repository.clear()
            return

        self.loading["clear"] = True
        self.error = None
        try:
            await self.connector.clear_cart()
            self.cart = None
            self.local_lines = []
        except StorefrontError as e:
            self.error = str(e) or "Failed to clear cart"
            raise
        finally:
            self.loading["clear"] = False

    # ------------------------------------------------------------------
    # Authentication transition
    # ------------------------------------------------------------------

    async def on_authenticated(self) -> Optional[MergeReport]:
        """
        Handle a newly-authenticated identity

        Only the first signal after a guest phase starts a merge; repeated
        signals return None.
        """
        if self.phase != CartPhase.GUEST:
            logger.debug(f"Authentication signal ignored in phase {self.phase.value}")
            return None

        self.phase = CartPhase.AUTHENTICATING
        self.phase = CartPhase.MERGING
        try:
            return await self.merge_local_cart()
        finally:
            self.phase = CartPhase.AUTHENTICATED
            self.mode = CartMode.SERVER

    async def merge_local_cart(self) -> MergeReport:
        """
        Move guest lines into the remote cart

        1. Fetch the remote cart (baseline)
        2. Add every guest line, one request at a time, recording each result
        3. Re-fetch the remote cart
        4. Clear guest lines and storage unconditionally

        Only runs inside the authentication transition; any other call
        leaves the cart untouched and returns an empty report.
        """
        report = MergeReport()
        if self.phase != CartPhase.MERGING:
            logger.warning(f"Merge skipped in phase {self.phase.value}")
            return report

        lines = list(self.local_lines)

        self.is_merging = True
        try:
            await self.fetch_cart()

            for line in lines:
                try:
                    await self.connector.add_item(line.variation_id, line.quantity)
                    report.lines.append(MergeLineResult(line.variation_id, line.quantity, True))
                except StorefrontError as e:
                    logger.error(f"Failed to migrate item {line.variation_id}: {e}")
                    report.lines.append(MergeLineResult(line.variation_id, line.quantity, False, str(e)))

            if lines:
                await self.fetch_cart()
        finally:
            self.local_lines = []
            self.repository.clear()
            self.mode = CartMode.SERVER
            self.is_merging = False

        if lines:
            logger.info(f"Merged {report.merged}/{report.attempted} guest cart lines")
        return report

    def reset(self) -> None:
        """Back to an empty guest cart (logout); storage is not repopulated"""
        self.cart = None
        self.local_lines = []
        self.error = None
        self.mode = CartMode.LOCAL
        self.phase = CartPhase.GUEST

    # ------------------------------------------------------------------
    # Dual-mode reads
    # ------------------------------------------------------------------

    def get_total_item_count(self) -> int:
        if self.mode == CartMode.LOCAL:
            return sum(line.quantity for line in self.local_lines)
        if self.cart is None:
            return 0
        return sum(item.quantity for item in self.cart.items)

    def get_total_amount(self) -> Decimal:
        if self.mode == CartMode.LOCAL:
            return sum((line.subtotal for line in self.local_lines), Decimal("0"))
        if self.cart is None:
            return Decimal("0")
        return self.cart.total_amount

    def has_service_products(self) -> bool:
        if self.mode == CartMode.LOCAL:
            return any(line.product_kind == ProductKind.SERVICE for line in self.local_lines)
        if self.cart is None:
            return False
        return any(item.product.kind == ProductKind.SERVICE for item in self.cart.items)

    def get_display_items(self) -> List[DisplayItem]:
        if self.mode == CartMode.LOCAL:
            return [DisplayItem.from_local(line) for line in self.local_lines]
        if self.cart is None:
            return []
        return [DisplayItem.from_server(item) for item in self.cart.items]
