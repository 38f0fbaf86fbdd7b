"""MyEscrow dashboard backend."""
