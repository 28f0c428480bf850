"""Local state database and database-server access for TableDesk."""
