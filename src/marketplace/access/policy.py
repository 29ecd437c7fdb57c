"""Access policy: role and ownership rules for order operations.

Predicates never raise. They return a ``Decision`` that callers hand to
``enforce`` when the operation should stop on refusal.
"""

from dataclasses import dataclass

from marketplace.access.actor import Actor
from marketplace.account.account import EnterpriseStatus, Role
from marketplace.errors import AccountBlocked, EnterpriseNotApproved, Forbidden, MarketplaceError

ENTERPRISE_TARGETS = frozenset({"approved", "rejected"})
ADMIN_TARGETS = frozenset({"shipped", "delivered", "cancelled"})


@dataclass(frozen=True)
class Decision:
    allowed: bool
    error: MarketplaceError | None = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, error: MarketplaceError) -> "Decision":
        return cls(allowed=False, error=error)


def is_blocked(actor) -> bool:
    return bool(actor is not None and actor.is_blocked)


def is_approved_enterprise(subject) -> bool:
    """True for an unblocked enterprise account or actor whose status is approved.

    Accepts an ``Account`` (string-valued fields) or an ``Actor`` (enum-valued).
    A missing subject is never approved.
    """
    if subject is None:
        return False
    role = subject.role.value if isinstance(subject.role, Role) else subject.role
    status = subject.enterprise_status
    if isinstance(status, EnterpriseStatus):
        status = status.value
    return role == Role.ENTERPRISE.value and status == EnterpriseStatus.APPROVED.value and not subject.is_blocked


def _gate(actor: Actor) -> Decision | None:
    """Checks shared by every order operation."""
    if is_blocked(actor):
        return Decision.deny(AccountBlocked(actor.id))
    if actor.role == Role.ENTERPRISE and not is_approved_enterprise(actor):
        return Decision.deny(EnterpriseNotApproved(actor.id))
    return None


def can_place_order(actor: Actor) -> Decision:
    refused = _gate(actor)
    if refused:
        return refused
    if actor.role != Role.BUYER:
        return Decision.deny(Forbidden("Only buyers can place orders", role=actor.role.value))
    return Decision.allow()


def can_list_orders(actor: Actor) -> Decision:
    refused = _gate(actor)
    if refused:
        return refused
    return Decision.allow()


def can_act_on_order(actor: Actor, order, target_status: str) -> Decision:
    """Decide whether ``actor`` may move ``order`` to ``target_status``.

    Enterprises may approve or reject their own orders; admins may ship,
    deliver or cancel any order. Whether the order's current status allows
    the move is the state machine's concern, not the policy's.
    """
    refused = _gate(actor)
    if refused:
        return refused

    if actor.role == Role.ENTERPRISE:
        if str(order.enterprise_id) != actor.id:
            return Decision.deny(Forbidden("Not authorized to update this order", order_id=str(order.id)))
        if target_status not in ENTERPRISE_TARGETS:
            return Decision.deny(
                Forbidden(f"Enterprises cannot set order status to {target_status}", target_status=target_status)
            )
        return Decision.allow()

    if actor.role == Role.ADMIN:
        if target_status not in ADMIN_TARGETS:
            return Decision.deny(
                Forbidden(f"Admins cannot set order status to {target_status}", target_status=target_status)
            )
        return Decision.allow()

    return Decision.deny(Forbidden("Not authorized to update order status", role=actor.role.value))


def enforce(decision: Decision) -> None:
    if not decision.allowed:
        raise decision.error
