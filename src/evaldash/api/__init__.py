"""Read-only HTTP API over stored report records.

- Reads records from the DB and returns them as stored
- Forbidden: document parsing, aggregation
"""
