"""Models and file-backed repositories shared by the bot and its HTTP server."""
