"""Property search and result-caching core for the Aqar listings site."""
