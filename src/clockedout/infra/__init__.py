"""Persistence infrastructure: engine, migrations, repositories."""
