from services import inventory_service
from models import Product


class TestCreateProduct:

    def test_type_is_normalized(self, db):
        p, merged = inventory_service.create_product(db, product_name="BB-6204", product_type="ball bearing", quantity=4)
        assert merged is False
        assert p.product_type == "BallBearing"

    def test_duplicate_name_and_type_merges_quantity(self, db):
        inventory_service.create_product(db, product_name="Bolt", product_type="Pin", quantity=5)
        p, merged = inventory_service.create_product(db, product_name="bolt", product_type=" Pin", quantity=3)
        assert merged is True
        assert p.quantity == 8
        assert db.query(Product).count() == 1

    def test_same_name_other_type_is_new_row(self, db):
        inventory_service.create_product(db, product_name="X1", product_type="Pin", quantity=5)
        inventory_service.create_product(db, product_name="X1", product_type="Ball Bearing", quantity=5)
        assert db.query(Product).count() == 2

    def test_dimensions_stored_as_blob(self, db):
        p, _ = inventory_service.create_product(
            db, product_name="Pin-8", product_type="Pin", dimensions={"diameter": 8.0, "height": 40.0}, quantity=1,
        )
        db.expire_all()
        assert db.get(Product, p.id).dimensions == {"diameter": 8.0, "height": 40.0}


class TestQuantityAndDelete:

    def test_quantity_never_stored_negative(self, db):
        p, _ = inventory_service.create_product(db, product_name="P", product_type="Pin", quantity=3)
        assert inventory_service.update_product_quantity(db, p.id, -4).quantity == 0

    def test_delete_is_idempotent(self, db):
        p, _ = inventory_service.create_product(db, product_name="P", product_type="Pin", quantity=3)
        assert inventory_service.delete_product(db, p.id) == p.id
        assert inventory_service.delete_product(db, p.id) == p.id
        assert db.query(Product).count() == 0
