"""
models.py — Data Models for Quote Confirmations

This module defines the data structures used for quote submission and storage.
It uses Pydantic models to get typed, serializable records out of the
untrusted client payload once the validator has normalized it.

Models:
    - LineItem: A single dish/product line on the confirmation.
    - QuoteSubmission: The normalized client submission (after validation).
    - QuoteRecord: The immutable, server-authoritative record that is logged.
"""

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

Number = Union[int, float]


class LineItem(BaseModel):
    """
    Represents a single line on the order confirmation.

    Attributes:
        name (str): Item name as shown to the customer.
        spec (str): Variant/size descriptor (e.g. "大份", "鸳鸯锅").
        price (Number): Unit price in yuan.
        qty (Number): Ordered quantity.
        subtotal (Number): Client-computed line subtotal. Advisory only;
            the order total is always recomputed from these values.
    """
    name: str = ""
    spec: str = ""
    price: Number = 0
    qty: Number = 0
    subtotal: Number = 0


class QuoteSubmission(BaseModel):
    """
    Normalized client submission, produced by the validator.

    Unknown top-level keys sent by the front end (e.g. `createdAt`, `remark`)
    are kept as extra fields and carried into the record.

    Attributes:
        customerName (str): Real name of the recipient.
        customerContact (str): 11-digit phone number.
        customerAddress (str, optional): Delivery address.
        items (List[LineItem]): Ordered line items, never empty.
        total (Number): Client-declared total (not trusted).
        calcTotal (Number): Server-recomputed total in yuan, rounded to cents.
        orderTime (str, optional): Client-declared order time.
    """
    model_config = ConfigDict(extra="allow")

    customerName: str
    customerContact: str
    customerAddress: Optional[str] = None
    items: List[LineItem] = Field(..., min_length=1)
    total: Number
    calcTotal: Number
    orderTime: Optional[str] = None


class QuoteRecord(BaseModel):
    """
    Server-authoritative record of an accepted confirmation.

    Records are frozen: attaching export metadata goes through
    `with_export()`, which returns a new instance.
    """
    model_config = ConfigDict(extra="allow", frozen=True)

    id: str
    customerName: str
    customerContact: str
    customerAddress: Optional[str] = None
    items: List[LineItem]
    total: Number
    orderTime: str
    receivedAt: str
    exportFilename: Optional[str] = None
    exportPath: Optional[str] = None

    def with_export(self, filename: str, path: str) -> "QuoteRecord":
        return self.model_copy(update={"exportFilename": filename, "exportPath": path})

    def to_payload(self) -> dict:
        """Returns the JSON-ready dict form, omitting unset export fields."""
        data = self.model_dump(mode="json")
        for key in ("exportFilename", "exportPath"):
            if data.get(key) is None:
                data.pop(key, None)
        return data
