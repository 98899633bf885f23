"""Bank reconciliation and journal posting backend."""
