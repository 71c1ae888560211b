"""Server-side CRM screens."""

from .base import BasePage
from .handle_customer import HandleCustomerPage
from .leads import LeadsPage
from .sessions import PAGE_TYPES, PageSession, PageSessionManager

__all__ = [
    "BasePage",
    "HandleCustomerPage",
    "LeadsPage",
    "PAGE_TYPES",
    "PageSession",
    "PageSessionManager",
]
