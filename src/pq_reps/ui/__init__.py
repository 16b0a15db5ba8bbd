"""Static single-page UI served by the API."""
