"""Open Market — charity procurement marketplace and donation ledger API."""
