"""Role-scoped order listing."""

from protean.utils.globals import current_domain

from marketplace.access.actor import Actor
from marketplace.access.policy import can_list_orders, enforce
from marketplace.account.account import Role
from marketplace.order.order import Order


def list_orders(actor: Actor, buyer_id=None, enterprise_id=None) -> list[Order]:
    """Orders visible to ``actor``, newest first.

    Buyers see their own orders and enterprises the orders addressed to them,
    whatever filters they pass. Admins see everything, optionally narrowed by
    buyer and/or enterprise.
    """
    enforce(can_list_orders(actor))
    repo = current_domain.repository_for(Order)

    if actor.role == Role.BUYER:
        return repo.find_by_filter(buyer_id=actor.id)
    if actor.role == Role.ENTERPRISE:
        return repo.find_by_filter(enterprise_id=actor.id)
    return repo.find_by_filter(buyer_id=buyer_id, enterprise_id=enterprise_id)
