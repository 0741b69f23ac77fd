"""Database models — re-exports all models.

Import from here:  from app.models import MarketRequest, Quotation, ...
Or from submodules: from app.models.market import MarketRequest
"""

from .base import Base  # noqa: F401

# Auth & Users
from .auth import User  # noqa: F401

# Campaigns (fund attribution targets)
from .campaigns import Campaign  # noqa: F401

# Open Market: Requests & Quotations
from .market import MarketRequest, Quotation  # noqa: F401

# Purchase Transactions
from .transactions import Transaction  # noqa: F401
