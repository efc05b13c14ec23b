#!/usr/bin/env python3
"""
run_demo.py - End-to-end demo against a running storefront
- Logs in the seeded admin, registers/logs in a customer
- Admin creates a category and two products, publishes homepage content
- Customer saves a default address, fills the cart, places an order from it
- Admin marks the order paid and reads the overview statistics
"""

import requests
import json
import os
from typing import Dict, Any, Optional, List

class DemoRunner:
    def __init__(self):
        self.base_url = os.getenv("STOREFRONT_URL", "http://localhost:8000")
        self.api = f"{self.base_url}/api"
        self.admin_api = f"{self.api}/admin"

        self.admin_email = os.getenv("ADMIN_EMAIL", "admin@example.com")
        self.admin_pass = os.getenv("ADMIN_PASSWORD", "P@ssw0rd!")
        self.cust_email = "cust@example.com"
        self.cust_pass = "P@ssw0rd!"

        self.admin_access_token: Optional[str] = None
        self.cust_access_token: Optional[str] = None

    # ---------- helpers ----------
    def show_step(self, title: str):
        print(f"\n=== {title} ===")

    def mask_token(self, token: str) -> str:
        if not token:
            return "<none>"
        return token if len(token) <= 12 else f"{token[:8]}...{token[-6:]}"

    def headers(self, token: Optional[str]) -> Dict[str, str]:
        return {"Authorization": f"Bearer {token}"} if token else {}

    def call_api(
        self,
        method: str,
        url: str,
        headers: Optional[Dict] = None,
        data: Optional[Any] = None,
        expected_status: List[int] = [200, 201],
        timeout: int = 30,
    ) -> Dict[str, Any]:
        print(f"\n-> {method} {url}")
        if data is not None:
            print(f"   Body: {json.dumps(data, indent=2)}")
        try:
            resp = requests.request(method=method, url=url, headers=headers, json=data, timeout=timeout)
        except requests.exceptions.RequestException as e:
            print(f"   Error: \033[91m{e}\033[0m")
            return {"status": None, "body": None}

        status_color = "\033[92m" if resp.status_code in expected_status else "\033[93m"
        print(f"   Status: {status_color}{resp.status_code}\033[0m")
        try:
            body = resp.json()
        except ValueError:
            print(f"   Content: {resp.text}")
            return {"status": resp.status_code, "body": None}
        print(f"   {body.get('message', '')}")
        return {"status": resp.status_code, "body": body}

    def data_of(self, result: Dict[str, Any]) -> Any:
        body = result.get("body") or {}
        return body.get("data")

    def login(self, email: str, password: str) -> Optional[str]:
        res = self.call_api("POST", f"{self.api}/auth/login", data={"email": email, "password": password})
        token = (self.data_of(res) or {}).get("access_token")
        print(f"   Token: {self.mask_token(token)}")
        return token

    # ---------- flow ----------
    def run_demo(self):
        print("Starting Storefront Demo")
        print("=" * 50)

        self.show_step("Preflight: health")
        self.call_api("GET", f"{self.base_url}/health", expected_status=[200])

        self.show_step("Admin: login (run scripts/seed.py --admin-password first)")
        self.admin_access_token = self.login(self.admin_email, self.admin_pass)
        admin = self.headers(self.admin_access_token)

        self.show_step("Admin: create category and products")
        cat = self.data_of(self.call_api("POST", f"{self.admin_api}/categories", headers=admin,
                                         data={"name": "Shoes"}, expected_status=[201, 409]))
        category_id = cat["id"] if cat else None
        products = []
        for name, price in (("Air Zoom", 100), ("Trail Socks", 50)):
            p = self.data_of(self.call_api("POST", f"{self.admin_api}/products", headers=admin,
                                           data={"name": name, "price_cents": price, "stock": 10, "category_id": category_id},
                                           expected_status=[201]))
            if p: products.append(p["id"])

        self.show_step("Admin: publish homepage content")
        self.call_api("PUT", f"{self.admin_api}/contents/homepage", headers=admin,
                      data={"headline": "Spring sale", "banner": "/img/spring.png"})
        self.call_api("GET", f"{self.api}/contents/homepage", expected_status=[200])

        self.show_step("Customer: register + login")
        self.call_api("POST", f"{self.api}/auth/register",
                      data={"name": "Demo Customer", "email": self.cust_email, "password": self.cust_pass},
                      expected_status=[201, 409])
        self.cust_access_token = self.login(self.cust_email, self.cust_pass)
        cust = self.headers(self.cust_access_token)

        self.show_step("Customer: save default address")
        addr = self.data_of(self.call_api("POST", f"{self.api}/user_addresses", headers=cust, data={
            "label": "Home", "recipient_name": "Demo Customer", "phone": "+62811000000",
            "address_line_1": "1 Demo Street", "city": "Jakarta", "state": "DKI Jakarta",
            "postal_code": "10110", "is_default": True,
        }, expected_status=[201]))

        self.show_step("Customer: fill cart")
        cart_ids = []
        for product_id, qty in zip(products, (2, 1)):
            c = self.data_of(self.call_api("POST", f"{self.api}/carts", headers=cust,
                                           data={"product_id": product_id, "quantity": qty}, expected_status=[201]))
            if c: cart_ids.append(c["id"])

        self.show_step("Customer: place order from cart")
        order = None
        if addr and cart_ids:
            order = self.data_of(self.call_api("POST", f"{self.api}/orders", headers=cust,
                                               data={"user_address_id": addr["id"], "cart_ids": cart_ids},
                                               expected_status=[201]))
            if order:
                print(f"Order ID: {order['id']}; Total: {order['total_price_cents']} cents")
        else:
            print("Skipping order - no address or cart rows")

        self.show_step("Customer: cart after checkout")
        self.call_api("GET", f"{self.api}/carts", headers=cust, expected_status=[200])

        self.show_step("Admin: mark order paid")
        if order:
            self.call_api("PATCH", f"{self.admin_api}/orders/{order['id']}", headers=admin,
                          data={"status": "paid"}, expected_status=[200])

        self.show_step("Admin: statistics overview")
        stats = self.data_of(self.call_api("GET", f"{self.admin_api}/statistics/overview", headers=admin,
                                           expected_status=[200]))
        if stats:
            print(json.dumps(stats, indent=2))

        print("\n\033[92m=== DEMO COMPLETE ===\033[0m")


if __name__ == "__main__":
    DemoRunner().run_demo()
