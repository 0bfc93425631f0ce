"""
Migration Plan Compiler

Compiles a declarative data-migration script into a validated, ordered set of
object plans ready for a transfer engine.

Supports:
- Live orgs and local CSV file sets as source or target
- SOQL query parsing and rewriting per object
- Endpoint connection and capability probing
- Automatic injection of dependency objects (RecordType)
- Insert, Update, Upsert, Delete and Readonly operations
"""

__version__ = "0.1.0"
