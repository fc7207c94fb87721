"""
Ledger modules: the inventory and financial recorders, reporting, and the
LedgerFacade that callers use.

Modules orchestrate kernel services and pure engines and own the
transaction boundaries.
"""
