"""Multi-tenant client billing portal backend."""
