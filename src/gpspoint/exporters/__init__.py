"""Writers for TrwLayer contents."""
