"""Application services - weather loading and result caching."""
