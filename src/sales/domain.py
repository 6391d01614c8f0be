"""Sales bounded context: live and bazaar selling, order aggregation and checkout.

Staff record sales into a per-customer, per-day open order while a live
broadcast or a bazaar session runs. At checkout the order is priced (coupon,
shipping, gifts) and handed to the hosted payment collaborator.
"""

from protean.domain import Domain

from sales.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

# Domain Composition Root
sales = Domain(name="sales")
