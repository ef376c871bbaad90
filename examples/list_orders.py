# examples/list_orders.py
import os
import asyncio
import httpx

BASE = os.getenv("PAYMENTS_BASE", "http://127.0.0.1:8080")
TOKEN = os.getenv("ADMIN_TOKEN")
LIMIT = int(os.getenv("LIMIT", "20"))

def _headers():
    h = {"accept": "application/json"}
    if TOKEN:
        h["x-token"] = TOKEN
    return h

async def main():
    async with httpx.AsyncClient() as client:
        r = await client.get(f"{BASE}/api/orders", params={"limit": LIMIT}, headers=_headers(), timeout=10.0)
        r.raise_for_status()
        body = r.json()
        print("orders:", body.get("count", 0))
        for o in body.get("orders", []):
            keys = ",".join(list(o.keys())[:20])
            print("id:", o.get("orderId"), "invoiceId:", o.get("invoiceId") or "",
                  "status:", o.get("status"), "keys:", keys)

if __name__ == "__main__":
    asyncio.run(main())
