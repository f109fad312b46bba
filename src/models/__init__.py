"""
SQLAlchemy models package.
Import all models here to ensure they're registered with Base.metadata.
"""
from src.models.business_profiles import BusinessProfile
from src.models.business_services import BusinessService
from src.models.bank_accounts import BankAccount
from src.models.bookings import Booking, BookingStatus
from src.models.reviews import BusinessReview
from src.models.inquiries import BusinessInquiry, InquiryStatus, InquiryType, PreferredContact
from src.models.activity_log import BusinessActivityLog, ActivityType

__all__ = [
    "BusinessProfile",
    "BusinessService",
    "BankAccount",
    "Booking",
    "BookingStatus",
    "BusinessReview",
    "BusinessInquiry",
    "InquiryStatus",
    "InquiryType",
    "PreferredContact",
    "BusinessActivityLog",
    "ActivityType",
]
