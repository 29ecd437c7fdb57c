"""Marketplace bounded context: order fulfillment with inventory reservation.

Products (with per-warehouse stock), orders and the accounts that act on them
live in one domain so that stock deduction and order status changes share a
single consistency boundary.
"""

from protean.domain import Domain

from marketplace.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

# Get logger for this module
logger = get_logger(__name__)

# Domain Composition Root
marketplace = Domain(name="marketplace")
