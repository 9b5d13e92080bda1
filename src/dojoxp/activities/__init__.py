"""Activity gates: idempotency keys and period caps per activity family."""
