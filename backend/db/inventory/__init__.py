"""
Branch inventory ledger.

Models:
- ReasonCode (closed, seeded lookup of movement reasons)
- StockBalance (on-hand quantity per variant per branch)
- LedgerEntry (append-only record of every sale, write-off and adjustment)
"""
