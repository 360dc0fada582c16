"""Provider platform: Provider CRUD API with JWT authentication."""
