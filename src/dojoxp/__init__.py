"""dojoxp — XP ledger and trust-tier moderation engine."""
