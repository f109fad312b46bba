"""
Lookups against the collaborators this engine depends on: the business
directory, the payout account registry and the service catalog.
"""
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.lib.exceptions import NotFoundException
from src.lib.permissions import require_party
from src.models.business_profiles import BusinessProfile
from src.models.business_services import BusinessService
from src.models.bank_accounts import BankAccount


class BusinessDirectory:
    """Read-only access to businesses, their services and owners' payout accounts."""

    def __init__(self, db: Session):
        self.db = db

    def get_business(self, business_id: UUID) -> Optional[BusinessProfile]:
        return self.db.get(BusinessProfile, business_id)

    def require_business(self, business_id: UUID, active_only: bool = False) -> BusinessProfile:
        """
        Load a business or raise NotFoundException.

        Args:
            business_id: Business to load
            active_only: Treat deactivated businesses as missing
        """
        business = self.get_business(business_id)
        if business is None or (active_only and not business.is_active):
            raise NotFoundException("Business", str(business_id), message="Business not found")
        return business

    def has_verified_payout_account(self, user_id: UUID) -> bool:
        stmt = (
            select(BankAccount.id)
            .where(BankAccount.user_id == user_id, BankAccount.is_verified.is_(True))
            .limit(1)
        )
        return self.db.execute(stmt).first() is not None

    def get_service(self, business_id: UUID, service_id: UUID) -> Optional[BusinessService]:
        stmt = select(BusinessService).where(
            BusinessService.id == service_id,
            BusinessService.business_id == business_id,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def require_owner(self, business_id: UUID, actor_id: UUID, message: str = "Forbidden") -> BusinessProfile:
        """Load a business and check that actor_id is its owner."""
        business = self.require_business(business_id)
        require_party(actor_id, business.user_id, message=message)
        return business
