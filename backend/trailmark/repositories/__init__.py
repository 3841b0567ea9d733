"""Database-backed repositories for users, teams and submissions."""
