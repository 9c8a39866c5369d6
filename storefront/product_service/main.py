# storefront/product_service/main.py
"""
Mock katalogu produktow do developmentu, ten sam kontrakt co prawdziwy
product-service: GET /products/{id} -> {id, name, price, stock, category, image}.
"""
from typing import Optional

from fastapi import FastAPI, HTTPException, Query

app = FastAPI(title="Product Service (dev mock)")


CATALOG = [
    {"id": 1, "name": "Keyboard", "price": 199.99, "stock": 25, "category": "accessories", "image": "/img/keyboard.png"},
    {"id": 2, "name": "Mouse", "price": 49.50, "stock": 100, "category": "accessories", "image": "/img/mouse.png"},
    {"id": 3, "name": "Monitor", "price": 899.00, "stock": 8, "category": "displays", "image": "/img/monitor.png"},
    {"id": 4, "name": "Headphones", "price": 500.00, "stock": 15, "category": "audio", "image": "/img/headphones.png"},
]
PRODUCTS_BY_ID = {p["id"]: p for p in CATALOG}


@app.get("/products")
def list_products(category: Optional[str] = Query(None)):
    if category:
        return [p for p in CATALOG if p["category"] == category]
    return CATALOG


@app.get("/products/{product_id}")
def get_product(product_id: int):
    product = PRODUCTS_BY_ID.get(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
