# models.py
import datetime

from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)

from database import Base


# =========================================
# ============ Stock (products) ===========
# =========================================

class Product(Base):
    """Raw material or finished-goods stock row (pins, ball bearings, conrods)."""
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    product_name = Column(String, nullable=False)
    product_type = Column(String, nullable=False, index=True)   # BallBearing / Pin / Conrod
    dimensions = Column(JSON, nullable=False, default=dict)     # diameter, height, smallEndDiameter ...
    quantity = Column(Integer, nullable=False, default=0)
    date = Column(Date, nullable=False, default=datetime.date.today)

    __table_args__ = (
        Index("ix_products_type_name", "product_type", "product_name"),
    )

    def __repr__(self):
        return f"<Product(name={self.product_name}, type={self.product_type}, qty={self.quantity})>"


# =========================================
# ============ Conrod catalog =============
# =========================================

class ConrodDefinition(Base):
    __tablename__ = "conrods"

    id = Column(Integer, primary_key=True, index=True)
    sr_no = Column(Integer, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    dimensions = Column(JSON, nullable=False, default=dict)  # smallEndDiameter, bigEndDiameter, centerDistance
    pin = Column(String, nullable=False)            # required Pin product name
    ball_bearing = Column(String, nullable=False)   # required Ball Bearing product name

    def __repr__(self):
        return f"<ConrodDefinition(sr_no={self.sr_no}, name={self.name})>"


# =========================================
# ============== Production ===============
# =========================================

class ProductionRecord(Base):
    __tablename__ = "production"

    id = Column(Integer, primary_key=True, index=True)
    # no FK: the conrod definition may be deleted and leave this dangling
    conrod_id = Column(Integer, nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=0)   # remaining billable units
    size = Column(String, nullable=True)
    date = Column(Date, nullable=False, default=datetime.date.today)

    def __repr__(self):
        return f"<ProductionRecord(conrod_id={self.conrod_id}, qty={self.quantity})>"


# =========================================
# =========== Customers / Bills ===========
# =========================================

class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    address = Column(Text, nullable=True)

    def __repr__(self):
        return f"<Customer(name={self.name})>"


class Bill(Base):
    """One invoice line. Several rows share an invoice_no."""
    __tablename__ = "bills"

    id = Column(Integer, primary_key=True, index=True)
    invoice_no = Column(String, nullable=False, index=True)
    customer_id = Column(Integer, nullable=True, index=True)
    production_id = Column(Integer, nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)   # line total (rate x qty)
    date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<Bill(invoice_no={self.invoice_no}, production_id={self.production_id}, qty={self.quantity})>"


# =========================================
# ============ Running numbers ============
# =========================================

class DocCounter(Base):
    __tablename__ = "doc_counters"
    doc_type = Column(String, primary_key=True)   # "CONROD"
    seq = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<DocCounter(doc_type={self.doc_type}, seq={self.seq})>"
