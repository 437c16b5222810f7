"""SMC signal engine application: storage, services and HTTP API."""
