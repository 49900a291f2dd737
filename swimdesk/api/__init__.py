"""API-layer helpers: dependency providers shared by the routers."""
