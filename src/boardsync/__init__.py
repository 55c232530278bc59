"""Board reordering and offline synchronization engine."""
