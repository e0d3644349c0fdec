from __future__ import annotations

from typing import Annotated, Optional, List, Dict
import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator

# Decimal in Python, plain number on the wire
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

# =========================
# ===== Base (Pydantic v2)
# =========================
class APIBase(BaseModel):
    """
    Base for every response schema:
    - from_attributes=True: build straight from SQLAlchemy rows
    """
    model_config = ConfigDict(from_attributes=True)

# =========================================
# ================ Products ===============
# =========================================
class ProductBase(APIBase):
    product_name: str
    product_type: str
    dimensions: Dict[str, Optional[float]] = Field(default_factory=dict)
    quantity: int
    date: dt.date

class ProductCreate(BaseModel):
    product_name: str = Field(min_length=1)
    product_type: str = Field(min_length=1)   # free text, normalized to BallBearing / Pin / Conrod
    dimensions: Dict[str, Optional[float]] = Field(default_factory=dict)
    quantity: int = Field(ge=0)
    date: Optional[dt.date] = None

    @field_validator("product_name")
    @classmethod
    def _name_not_blank(cls, v: str):
        if not v.strip():
            raise ValueError("product_name must not be blank")
        return v

class ProductQuantityUpdate(BaseModel):
    quantity: int = Field(ge=0)

class ProductOut(ProductBase):
    id: int

class ProductCreateOut(ProductOut):
    merged: bool = False   # True when an existing name/type row absorbed the quantity

# =========================================
# ============ Conrod catalog =============
# =========================================
class ConrodDimensions(BaseModel):
    smallEndDiameter: Optional[float] = None
    bigEndDiameter: Optional[float] = None
    centerDistance: Optional[float] = None

class ConrodBase(APIBase):
    name: str
    dimensions: ConrodDimensions
    pin: str
    ball_bearing: str

class ConrodCreate(BaseModel):
    name: str = Field(min_length=1)
    dimensions: ConrodDimensions = Field(default_factory=ConrodDimensions)
    pin: str = Field(min_length=1)
    ball_bearing: str = Field(min_length=1)

class ConrodUpdate(ConrodCreate):
    pass

class ConrodOut(ConrodBase):
    id: int
    sr_no: int

class ConrodImportIn(BaseModel):
    rows: List[ConrodCreate]

class ConrodCsvImportIn(BaseModel):
    csv_text: str

class ImportRowError(BaseModel):
    row: int
    message: str

class ConrodImportOut(BaseModel):
    created: List[ConrodOut]
    errors: List[ImportRowError]

# =========================================
# ============== Production ===============
# =========================================
class ProductionBase(APIBase):
    conrod_id: int
    quantity: int
    size: Optional[str] = None
    date: dt.date

class ProductionCreate(BaseModel):
    conrod_id: int
    quantity: int = Field(gt=0)
    size: Optional[str] = None
    date: Optional[dt.date] = None

class ProductionUpdate(BaseModel):
    quantity: int = Field(ge=0)
    size: Optional[str] = None

class ProductionOut(ProductionBase):
    id: int

class ComponentStatus(BaseModel):
    role: str
    required_name: str
    product: Optional[ProductOut] = None
    found: bool
    sufficient: bool
    available: int

class AssemblyCheckOut(BaseModel):
    conrod_id: int
    quantity: int
    pin: ComponentStatus
    ball_bearing: ComponentStatus
    conrod_stock: Optional[ProductOut] = None
    can_assemble: bool

# =========================================
# =============== Customers ===============
# =========================================
class CustomerBase(APIBase):
    name: str
    address: Optional[str] = None

class CustomerCreate(BaseModel):
    name: str = Field(min_length=1)
    address: Optional[str] = None

class CustomerUpdate(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None

class CustomerOut(CustomerBase):
    id: int

# =========================================
# ================= Bills =================
# =========================================
class BillBase(APIBase):
    invoice_no: str
    customer_id: Optional[int] = None
    production_id: int
    quantity: int
    amount: Money
    date: dt.datetime

class BillCreate(BaseModel):
    invoice_no: str = Field(min_length=1)
    customer_id: Optional[int] = None
    production_id: int
    quantity: int = Field(gt=0)
    amount: Decimal = Field(ge=0, decimal_places=2)   # line total, not a unit rate
    date: Optional[dt.datetime] = None

class BillOut(BillBase):
    id: int

class BillDeleteOut(BaseModel):
    deleted_bill_id: int
    updated_production_record: Optional[ProductionOut] = None

class InvoiceLineIn(BaseModel):
    production_id: int
    quantity: int = Field(gt=0)
    unit_rate: Decimal = Field(ge=0)

class InvoiceCreate(BaseModel):
    invoice_no: str = Field(min_length=1)
    customer_id: Optional[int] = None
    date: Optional[dt.datetime] = None
    lines: List[InvoiceLineIn] = Field(min_length=1)

class InvoiceLineError(BaseModel):
    line: int
    production_id: int
    detail: str

class InvoiceCreateOut(BaseModel):
    invoice_no: str
    bills: List[BillOut]
    failed: List[InvoiceLineError]

class InvoiceLineOut(APIBase):
    bill_id: int
    production_id: int
    quantity: int
    unit_rate: Money
    amount: Money

class InvoiceSummaryOut(APIBase):
    invoice_no: str
    customer_id: Optional[int] = None
    date: Optional[dt.datetime] = None
    lines: List[InvoiceLineOut]
    total_quantity: int
    total_amount: Money

# =========================================
# ================ Lookups ================
# =========================================
class NamesOut(BaseModel):
    items: List[str]
