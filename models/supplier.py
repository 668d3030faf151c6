from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ContactPerson(BaseModel):
    name: str
    phone: Optional[str] = None


class Supplier(BaseModel):
    """
    A supplier from the supplier master list.
    product_type is the material category the supplier is approved for.
    """
    id: str                                  # e.g. "SUP001"
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    gst_number: Optional[str] = None         # 15-character GSTIN
    product_type: Optional[str] = None
    state: Optional[str] = None
    address: Optional[str] = None
    pin_code: Optional[str] = None
    contact_persons: List[ContactPerson] = Field(default_factory=list)
    status: Literal["Active", "Inactive"] = "Active"

    model_config = ConfigDict(frozen=True)

    @property
    def gst_normalised(self) -> Optional[str]:
        """Return the GSTIN upper-cased with whitespace removed."""
        if self.gst_number:
            return "".join(self.gst_number.split()).upper()
        return None
