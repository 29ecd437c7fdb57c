"""The resolved, authenticated caller of a marketplace operation."""

from dataclasses import dataclass

from marketplace.account.account import Account, EnterpriseStatus, Role


@dataclass(frozen=True)
class Actor:
    """Identity and authorization facts supplied by the auth layer."""

    id: str
    role: Role
    enterprise_status: EnterpriseStatus | None = None
    is_blocked: bool = False

    @classmethod
    def from_account(cls, account: Account) -> "Actor":
        return cls(
            id=str(account.id),
            role=Role(account.role),
            enterprise_status=EnterpriseStatus(account.enterprise_status) if account.enterprise_status else None,
            is_blocked=bool(account.is_blocked),
        )

    @classmethod
    def admin(cls, id: str) -> "Actor":
        return cls(id=id, role=Role.ADMIN)

    @classmethod
    def buyer(cls, id: str, is_blocked: bool = False) -> "Actor":
        return cls(id=id, role=Role.BUYER, is_blocked=is_blocked)

    @classmethod
    def enterprise(
        cls,
        id: str,
        status: EnterpriseStatus = EnterpriseStatus.APPROVED,
        is_blocked: bool = False,
    ) -> "Actor":
        return cls(id=id, role=Role.ENTERPRISE, enterprise_status=status, is_blocked=is_blocked)
