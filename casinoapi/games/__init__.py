"""Pure game logic: randomness, decks and round resolvers. No I/O here."""
