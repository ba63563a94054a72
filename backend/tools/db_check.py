import sqlite3
import sys

DB = sys.argv[1] if len(sys.argv) > 1 else "stockroom.db"
PRODUCT_ID = sys.argv[2] if len(sys.argv) > 2 else None

conn = sqlite3.connect(DB)
cur = conn.cursor()

print("=== Products ===")
if PRODUCT_ID:
    cur.execute(
        "SELECT id, sku, name, unit, quantity, min_stock, created_at, updated_at FROM products WHERE id=?",
        (PRODUCT_ID,),
    )
else:
    cur.execute(
        "SELECT id, sku, name, unit, quantity, min_stock, created_at, updated_at FROM products ORDER BY name LIMIT 50"
    )
for r in cur.fetchall():
    print(
        {
            "id": r[0],
            "sku": r[1],
            "name": r[2],
            "unit": r[3],
            "quantity": r[4],
            "min_stock": r[5],
            "created_at": r[6],
            "updated_at": r[7],
        }
    )

print("\n=== Recent Movements ===")
if PRODUCT_ID:
    cur.execute(
        "SELECT id, product_id, kind, quantity, reason, created_at FROM movements WHERE product_id=? ORDER BY created_at DESC LIMIT 50",
        (PRODUCT_ID,),
    )
else:
    cur.execute(
        "SELECT id, product_id, kind, quantity, reason, created_at FROM movements ORDER BY created_at DESC LIMIT 20"
    )
for r in cur.fetchall():
    print(r)

print("\n=== Orphan check ===")
cur.execute(
    "SELECT COUNT(*) FROM movements m LEFT JOIN products p ON p.id = m.product_id WHERE p.id IS NULL"
)
print("movements without product:", cur.fetchone()[0])

conn.close()
