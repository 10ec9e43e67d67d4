"""Git integration: diff production and pull request publishing."""
