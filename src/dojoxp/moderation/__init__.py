"""Video moderation: content fingerprinting and the trust-tier engine."""
