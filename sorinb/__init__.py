"""SorinB: location tracking API with JWT auth, plus its Python client."""
