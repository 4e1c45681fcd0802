"""whatnow - gamified task recommendation and scoring service."""
