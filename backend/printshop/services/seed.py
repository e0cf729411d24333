from sqlalchemy.orm import Session

from printshop.core.security import hash_password
from printshop.core.store import SqlStore
from printshop.models.user import User


def seed_demo(db: Session):
    if db.query(User).filter(User.email == 'owner@demo.com').first():
        return
    user = User(email='owner@demo.com', full_name='Demo', hashed_password=hash_password('secret123'), role='owner')
    db.add(user)
    db.commit()

    store = SqlStore(db)
    store.insert('inventory', [
        {'name': 'PLA Negro', 'type': 'Filamento', 'brand': 'Bambu Lab', 'color': 'Negro', 'stock_grams': 1000, 'price_per_kg': 15000},
        {'name': 'PETG Blanco', 'type': 'Filamento', 'brand': 'Bambu Lab', 'color': 'Blanco', 'stock_grams': 1000, 'price_per_kg': 18000},
        {'name': 'Imán 10mm', 'type': 'Repuesto', 'measurement_unit': 'units', 'stock_grams': 50, 'price_per_unit': 150},
    ])
    store.insert('products', [
        {'name': 'Llavero personalizado', 'base_price': 3000, 'weight_grams': 12, 'estimated_hours': 0, 'estimated_mins': 40},
        {'name': 'Soporte de celular', 'base_price': 8000, 'weight_grams': 60, 'estimated_hours': 2, 'estimated_mins': 30},
    ])
    store.insert('tags', [{'name': 'Inversión'}, {'name': 'Reinversión'}, {'name': 'Materiales'}, {'name': 'Activo Fijo'}])
