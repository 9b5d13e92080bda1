"""XP ledger: balance mutation, reconciliation and streaks."""
