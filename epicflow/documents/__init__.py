"""Epic documents: PRDs, changelogs and the shared learnings log."""
