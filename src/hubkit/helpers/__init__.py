"""Pure helpers working on branch names and aliases."""
