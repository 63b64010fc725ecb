from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class LineItem(BaseModel):
    description: str = ""
    unitPrice: float = 0.0
    quantity: float = 1.0
    total: float = 0.0


class Vendor(BaseModel):
    name: str = Field(min_length=1)
    address: str | None = ""
    taxId: str | None = ""


class InvoiceDetails(BaseModel):
    number: str = Field(min_length=1)
    date: str = Field(min_length=1)  # ISO calendar date (YYYY-MM-DD)
    currency: str | None = "USD"
    subtotal: float | None = None
    taxPercent: float | None = None
    total: float | None = None
    poNumber: str | None = None
    poDate: str | None = None
    lineItems: list[LineItem] = Field(default_factory=list)


class InvoiceRecordIn(BaseModel):
    """Body of POST /api/invoices"""
    model_config = ConfigDict(extra="ignore")

    fileId: str = Field(min_length=1)
    fileName: str = Field(min_length=1)
    vendor: Vendor
    invoice: InvoiceDetails = Field(validation_alias=AliasChoices("invoice", "invoiceDetails"))


class InvoiceRecordUpdate(BaseModel):
    """Body of PUT /api/invoices/{id}; supplied fields replace the stored ones wholesale"""
    model_config = ConfigDict(extra="ignore")

    fileId: str | None = Field(default=None, min_length=1)
    fileName: str | None = Field(default=None, min_length=1)
    vendor: Vendor | None = None
    invoice: InvoiceDetails | None = Field(
        default=None, validation_alias=AliasChoices("invoice", "invoiceDetails")
    )


# Extraction output: every field is always present, regardless of what the model returned

class ExtractedVendor(BaseModel):
    name: str = ""
    address: str = ""
    taxId: str = ""


class ExtractedInvoiceDetails(BaseModel):
    number: str = ""
    date: str = ""
    currency: str = "USD"
    subtotal: float = 0.0
    taxPercent: float = 0.0
    total: float = 0.0
    poNumber: str = ""
    poDate: str = ""
    lineItems: list[LineItem] = Field(default_factory=list)


class NormalizedInvoice(BaseModel):
    vendor: ExtractedVendor = Field(default_factory=ExtractedVendor)
    invoice: ExtractedInvoiceDetails = Field(default_factory=ExtractedInvoiceDetails)
