"""Pure helpers without database access."""
