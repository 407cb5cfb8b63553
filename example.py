#!/usr/bin/env python3
"""Example usage of profiledb.

Handlers are lazy: nothing connects until ``set_active_profile()``.  Every
CRUD call after that checks the idle timer first and transparently reopens
the connection once it has expired.
"""

import tempfile
from pathlib import Path

from profiledb import DatabaseManager, DatabaseProfile, configure_logging

configure_logging("INFO")

workdir = Path(tempfile.mkdtemp())

manager = DatabaseManager(session_expiry_seconds=120)
manager.register_profile(
    "shop-ui",
    DatabaseProfile(name="local", backend="sqlite", database=str(workdir / "shop.db")),
)
manager.register_profile(
    "shop-ui",
    DatabaseProfile(name="archive", backend="sqlite", database=str(workdir / "archive.db")),
)

# ── Explicit activate / close ───────────────────────────────────────────
db = manager.create_handler("shop-ui")
try:
    db.set_active_profile("local")
    db.create("orders", "CREATE TABLE orders (id INTEGER PRIMARY KEY, status TEXT)")
    db.insert_data_in_batch(
        "orders",
        [
            "INSERT INTO orders VALUES (1, 'new')",
            "INSERT INTO orders VALUES (2, 'shipped')",
        ],
    )
    print("JSON:", db.get_data_as_json_string("orders", "SELECT * FROM orders"))
finally:
    db.close()

# ── Context-manager style, switching profiles ───────────────────────────
with manager.create_handler("shop-ui") as db:
    db.set_active_profile("local")
    doc = db.get_data_as_json_document("orders", "SELECT * FROM orders")
    print("Shipped:", doc.read("$[?(@.status == 'shipped')].id"))

    # Closes the "local" connection before opening "archive".
    db.set_active_profile("archive")
    db.create("orders", "CREATE TABLE orders (id INTEGER PRIMARY KEY, status TEXT)")
    print("Archive rows:", len(db.get_data_as_json_document("orders", "SELECT * FROM orders")))
