"""Account aggregate: the marketplace's view of a registered user.

Registration, credentials and tokens are handled elsewhere. The marketplace
only reads the facts it needs to authorize order operations: the account's
role, the approval status of enterprise accounts, and whether the account has
been blocked by an administrator.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, String

from marketplace.domain import marketplace


class Role(Enum):
    ADMIN = "admin"
    ENTERPRISE = "enterprise"
    BUYER = "buyer"


class EnterpriseStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@marketplace.aggregate
class Account:
    """A user of the marketplace acting as admin, enterprise (seller) or buyer."""

    name = String(required=True, max_length=100)
    email = String(required=True, max_length=254)
    role = String(required=True, choices=Role)
    enterprise_status = String(choices=EnterpriseStatus)
    is_blocked = Boolean(default=False)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def register(cls, name, email, role, enterprise_status=None, is_blocked=False):
        """Create an account record.

        Enterprise accounts start out ``pending`` unless a status is given;
        other roles carry no enterprise status.
        """
        role = Role(role)
        if role == Role.ENTERPRISE:
            status = EnterpriseStatus(enterprise_status or EnterpriseStatus.PENDING.value).value
        elif enterprise_status is not None:
            raise ValidationError({"enterprise_status": ["Only enterprise accounts carry an enterprise status"]})
        else:
            status = None

        now = datetime.now(UTC)
        return cls(
            name=name,
            email=email,
            role=role.value,
            enterprise_status=status,
            is_blocked=is_blocked,
            created_at=now,
            updated_at=now,
        )
