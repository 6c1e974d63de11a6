"""HTTP routers for the provider registry API."""
