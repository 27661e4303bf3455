"""Database models — re-exported here.

Import from here:  from reqflow.models import Requisition, Quote, ...
Or from submodules: from reqflow.models.quotes import Quote
"""

from .base import Base  # noqa: F401

# Tenants & actors
from .organization import Organization, Profile, Supplier  # noqa: F401

# Core: Requisitions
from .requisitions import Requisition  # noqa: F401

# Quote sub-workflow
from .quotes import Quote, QuoteRequest  # noqa: F401

# Payment tracking
from .invoices import Invoice  # noqa: F401

# Requisition message thread
from .messages import PRMessage  # noqa: F401
