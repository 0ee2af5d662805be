"""Runtime configuration for ytgrab."""
