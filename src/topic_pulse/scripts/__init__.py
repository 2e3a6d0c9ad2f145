"""Helper entry points for operating the scoring worker."""
