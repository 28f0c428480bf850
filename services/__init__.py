"""Services: settings and logging."""
