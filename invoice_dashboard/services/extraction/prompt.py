EXTRACTION_PROMPT = """
Extract invoice data from this PDF content and return ONLY a valid JSON object with this exact structure:

{
  "vendor": {
    "name": "string",
    "address": "string (optional)",
    "taxId": "string (optional)"
  },
  "invoice": {
    "number": "string",
    "date": "string (YYYY-MM-DD format)",
    "currency": "string (optional)",
    "subtotal": "number (optional)",
    "taxPercent": "number (optional)",
    "total": "number (optional)",
    "poNumber": "string (optional)",
    "poDate": "string (optional, YYYY-MM-DD format)",
    "lineItems": [
      {
        "description": "string",
        "unitPrice": "number",
        "quantity": "number",
        "total": "number"
      }
    ]
  }
}

Rules:
- Return ONLY the JSON object, no other text
- If a field is not found, omit optional fields or use empty string for required fields
- Ensure all numbers are actual numbers, not strings
- Dates must be in YYYY-MM-DD format (convert from any format like "1. März 2024" to "2024-03-01" or "Nov 23 2012" to "2012-11-23")
- If no line items found, return empty array
- Extract ALL relevant line items from the invoice
"""

TEXT_SYSTEM_PROMPT = f"You are an expert at extracting structured data from invoice text. {EXTRACTION_PROMPT}"

TEXT_USER_PROMPT = "Please extract invoice data from this PDF text content and return it as a JSON object:\n\n{text}"
