"""Sales League: salesperson metrics, leagues and achievements."""
