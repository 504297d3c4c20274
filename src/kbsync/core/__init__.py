"""Core sync engine for kbsync."""
