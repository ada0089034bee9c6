from .tables import (
    ACTIVE_BOOKING_STATUSES,
    AvailabilityOverrides,
    Base,
    Bookings,
    SessionCreditBalances,
    SessionCreditTransactions,
    SiteSettings,
)

__all__ = [
    "ACTIVE_BOOKING_STATUSES",
    "AvailabilityOverrides",
    "Base",
    "Bookings",
    "SessionCreditBalances",
    "SessionCreditTransactions",
    "SiteSettings",
]
