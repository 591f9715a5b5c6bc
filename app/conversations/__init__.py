"""Job-scoped conversations between customers and mechanics."""
