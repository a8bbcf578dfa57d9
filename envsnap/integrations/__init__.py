"""Optional integrations: git, zip archives and the file watcher."""
