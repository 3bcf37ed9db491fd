"""Chess rules, PGN import and the opening book."""
