"""Domain layer for DocBase: entities and the services that operate on them."""
