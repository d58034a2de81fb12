"""HTTP service and persistence around the ledger reconstruction engine."""
