"""Result store and run history implementations."""
