"""PayID engine — record store services and ORM models."""
